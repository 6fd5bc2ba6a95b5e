#!/usr/bin/env python
"""Explicit configuration for the quantification pipeline.

A single |PipelineConfig| is built once per run, either directly or from
command-line arguments (see :class:`~translatome.util.scriptlib.argparsers.ConfigParser`),
and passed to each component that needs parameters. Gene- and ORF-level
analyses differ only in the defaults below:

    ========================   ===========   ===========
    **Field**                  **gene**      **orf**
    ------------------------   -----------   -----------
    `min_mean_count`           128           4
    `pseudocount`              0.01          0.1
    `centering`                median        median
    `detection_threshold`      1.0           1.0
    `min_samples`              5             5
    ========================   ===========   ===========
"""

GRANULARITIES = ("gene","orf")
CENTERING_METHODS = ("median","mean-sd","none")
AMBIGUITY_POLICIES = ("raise","first")

_DEFAULTS = {
    "gene" : { "min_mean_count"      : 128,
               "pseudocount"         : 0.01,
             },
    "orf"  : { "min_mean_count"      : 4,
               "pseudocount"         : 0.1,
             },
}

_SHARED_DEFAULTS = {
    "centering"            : "median",
    "detection_threshold"  : 1.0,
    "min_samples"          : 5,
    "canonical_suffix"     : "_CDS",
    "ambiguity_policy"     : "raise",
    "allow_shared_samples" : False,
}


class PipelineConfig(object):
    """Parameters shared by the reconciliation, normalization, detection,
    and translational efficiency steps

    Parameters
    ----------
    granularity : str
        `'gene'` or `'orf'`

    min_mean_count : float
        Features qualify for TE only if their mean raw count is strictly
        greater than this value, in both the occupancy and transcript matrices

    pseudocount : float
        Constant added to TE before log2-transformation

    centering : str
        `'median'` (subtract row median of log2 TE), `'mean-sd'` (subtract
        row mean, divide by row standard deviation), or `'none'`

    detection_threshold : float
        Abundance (TPM/PPM) above which a feature counts as detected in a sample

    min_samples : int
        Minimum number of samples in which a feature must be detected

    canonical_suffix : str
        Suffix that marks canonical CDS feature keys

    ambiguity_policy : str
        `'raise'` to fail when a candidate identifier matches several
        metadata rows, `'first'` to take the first row in table order

    allow_shared_samples : bool
        If `True`, several candidates (e.g. sequencing lanes) may resolve to
        one sample, and their counts are summed
    """

    def __init__(self,granularity="gene",min_mean_count=128,pseudocount=0.01,
                 centering="median",detection_threshold=1.0,min_samples=5,
                 canonical_suffix="_CDS",ambiguity_policy="raise",
                 allow_shared_samples=False):
        self.granularity          = granularity
        self.min_mean_count       = float(min_mean_count)
        self.pseudocount          = float(pseudocount)
        self.centering            = centering
        self.detection_threshold  = float(detection_threshold)
        self.min_samples          = int(min_samples)
        self.canonical_suffix     = canonical_suffix
        self.ambiguity_policy     = ambiguity_policy
        self.allow_shared_samples = bool(allow_shared_samples)
        self.validate()

    @staticmethod
    def for_granularity(granularity,**overrides):
        """Create a |PipelineConfig| with the defaults for `granularity`

        Parameters
        ----------
        granularity : str
            `'gene'` or `'orf'`

        overrides : keyword arguments
            Field values to use instead of the defaults. `None` values
            are ignored, so that unset command-line options fall through.

        Returns
        -------
        |PipelineConfig|
        """
        if granularity not in _DEFAULTS:
            raise ValueError("Unknown feature granularity '%s'. Expected one of: %s" % (granularity,", ".join(GRANULARITIES)))

        kwargs = dict(_SHARED_DEFAULTS)
        kwargs.update(_DEFAULTS[granularity])
        kwargs.update({ K : V for K,V in overrides.items() if V is not None })
        return PipelineConfig(granularity=granularity,**kwargs)

    def validate(self):
        """Check field values

        Raises
        ------
        ValueError
            If any field is out of its domain
        """
        if self.granularity not in GRANULARITIES:
            raise ValueError("Unknown feature granularity '%s'. Expected one of: %s" % (self.granularity,", ".join(GRANULARITIES)))
        if self.centering not in CENTERING_METHODS:
            raise ValueError("Unknown centering method '%s'. Expected one of: %s" % (self.centering,", ".join(CENTERING_METHODS)))
        if self.ambiguity_policy not in AMBIGUITY_POLICIES:
            raise ValueError("Unknown ambiguity policy '%s'. Expected one of: %s" % (self.ambiguity_policy,", ".join(AMBIGUITY_POLICIES)))
        if self.pseudocount <= 0:
            raise ValueError("Pseudocount must be positive. Got %s" % self.pseudocount)
        if self.min_samples < 1:
            raise ValueError("Minimum sample support must be at least 1. Got %s" % self.min_samples)
        if self.min_mean_count < 0:
            raise ValueError("Minimum mean count must be non-negative. Got %s" % self.min_mean_count)
        if self.detection_threshold < 0:
            raise ValueError("Detection threshold must be non-negative. Got %s" % self.detection_threshold)

    def as_dict(self):
        return { "granularity"          : self.granularity,
                 "min_mean_count"       : self.min_mean_count,
                 "pseudocount"          : self.pseudocount,
                 "centering"            : self.centering,
                 "detection_threshold"  : self.detection_threshold,
                 "min_samples"          : self.min_samples,
                 "canonical_suffix"     : self.canonical_suffix,
                 "ambiguity_policy"     : self.ambiguity_policy,
                 "allow_shared_samples" : self.allow_shared_samples,
               }

    def __eq__(self,other):
        return isinstance(other,PipelineConfig) and self.as_dict() == other.as_dict()

    def __repr__(self):
        return "<PipelineConfig %s>" % ", ".join("%s=%r" % (K,V) for K,V in sorted(self.as_dict().items()))
