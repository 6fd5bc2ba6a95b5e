#!/usr/bin/env python
"""Translational efficiency (TE) from ribosome occupancy and transcript abundance.

TE of a feature in a sample is the ratio of its ribosome-occupancy abundance
(PPM, from ribosome profiling) to its transcript abundance (TPM, from RNA-seq).
Three related matrices are produced, since downstream uses differ:

    ============   ==============================================   ==========================
    **Matrix**     **Definition**                                   **Typical use**
    ------------   ----------------------------------------------   --------------------------
    `raw`          `occupancy / transcript`                         storage
    `log2`         `log2(raw + pseudocount)`                        distribution plots
    `centered`     `log2` centered per feature                      PCA, clustering
    ============   ==============================================   ==========================

Degenerate ratios
-----------------
Where the transcript abundance is zero, the ratio is infinite (non-zero
occupancy) or undefined (zero occupancy). Both are replaced by exactly `0`.
This conflates "no transcript, no ribosomes" with "no transcript, but
ribosomes", and is kept because published statistics were computed against
it. Each replacement is counted and reported with a |DataWarning|.

Feature qualification
---------------------
Occupancy and transcript quantifications disagree on which features pass a
minimum-depth filter. :func:`qualifying_features` takes the features whose
mean raw count is strictly greater than `config.min_mean_count` in *both*
count matrices. Both matrices are then normalized over exactly this set, so
scaling factors are computed over identical features.

Because scaling factors depend on the feature set, TE computed over
different subsets (see :func:`te_subsets`) is not comparable between
subsets.
"""
import numpy

from translatome.quant.config import PipelineConfig
from translatome.quant.matrices import filter_min_mean, harmonize_columns, is_canonical
from translatome.quant.normalize import normalize_abundance, as_length_series,\
                                        features_with_length
from translatome.util.io.openers import NullWriter
from translatome.util.services.exceptions import FeatureSetEmpty,\
                                                 DataWarning, warn


#===============================================================================
# INDEX: result type
#===============================================================================

class TEResult(object):
    """Raw, log2-transformed, and centered translational efficiency matrices

    Attributes
    ----------
    raw : :class:`pandas.DataFrame`
        Ratio of occupancy to transcript abundance, degenerate values set to 0

    log2 : :class:`pandas.DataFrame`
        `log2(raw + pseudocount)`

    centered : :class:`pandas.DataFrame`
        `log2`, centered per feature as configured

    occupancy : :class:`pandas.DataFrame` or None
        Occupancy abundance (PPM) the ratio was computed from

    transcript : :class:`pandas.DataFrame` or None
        Transcript abundance (TPM) the ratio was computed from
    """

    def __init__(self,raw,log2,centered,occupancy=None,transcript=None):
        self.raw        = raw
        self.log2       = log2
        self.centered   = centered
        self.occupancy  = occupancy
        self.transcript = transcript

    @property
    def features(self):
        return list(self.raw.index)

    @property
    def samples(self):
        return list(self.raw.columns)

    def __repr__(self):
        return "<TEResult features=%s samples=%s>" % self.raw.shape


#===============================================================================
# INDEX: feature qualification
#===============================================================================

def qualifying_features(occupancy_counts,transcript_counts,config=None,printer=None):
    """Find features present in both count matrices whose mean raw count
    exceeds `config.min_mean_count` in both

    Parameters
    ----------
    occupancy_counts : :class:`pandas.DataFrame`
        Feature x sample ribosome occupancy (P-site) counts

    transcript_counts : :class:`pandas.DataFrame`
        Feature x sample transcript counts

    config : |PipelineConfig|, optional

    printer : file-like, optional
        Logger implementing ``write()``

    Returns
    -------
    list
        Qualifying feature keys, in the order of `occupancy_counts`

    Raises
    ------
    FeatureSetEmpty
        If no feature qualifies
    """
    config  = PipelineConfig.for_granularity("gene") if config is None else config
    printer = NullWriter() if printer is None else printer

    occ_pass = filter_min_mean(occupancy_counts,config.min_mean_count).index
    tx_pass  = set(filter_min_mean(transcript_counts,config.min_mean_count).index)
    features = [X for X in occ_pass if X in tx_pass]

    printer.write("%s of %s occupancy and %s of %s transcript features have mean count > %s; %s in both." % (
                  len(occ_pass),len(occupancy_counts),len(tx_pass),len(transcript_counts),
                  config.min_mean_count,len(features)))
    if len(features) == 0:
        raise FeatureSetEmpty("No feature has mean count > %s in both occupancy (%s features) and transcript (%s features) matrices" % (
                              config.min_mean_count,len(occupancy_counts),len(transcript_counts)))

    return features


#===============================================================================
# INDEX: ratio, transform, centering
#===============================================================================

def translational_efficiency(occupancy,transcript,printer=None):
    """Ratio of occupancy to transcript abundance, with degenerate values set to 0

    Parameters
    ----------
    occupancy : :class:`pandas.DataFrame`
        Feature x sample occupancy abundance (PPM)

    transcript : :class:`pandas.DataFrame`
        Feature x sample transcript abundance (TPM), with the same feature
        and sample keys as `occupancy`. Order may differ.

    printer : file-like, optional
        Logger implementing ``write()``

    Returns
    -------
    :class:`pandas.DataFrame`
        TE matrix in the row and column order of `occupancy`

    Raises
    ------
    ColumnSetMismatch
        If sample keys differ

    ValueError
        If feature keys differ
    """
    printer = NullWriter() if printer is None else printer

    transcript = harmonize_columns(occupancy,transcript,"occupancy","transcript")
    if set(occupancy.index) != set(transcript.index) or len(occupancy) != len(transcript):
        only_occ = occupancy.index.difference(transcript.index,sort=False)
        only_tx  = transcript.index.difference(occupancy.index,sort=False)
        raise ValueError("Occupancy and transcript matrices must share feature keys. Only in occupancy: %s. Only in transcript: %s" % (
                         ", ".join(str(X) for X in only_occ[:10]),", ".join(str(X) for X in only_tx[:10])))
    transcript = transcript.loc[occupancy.index]

    with numpy.errstate(divide="ignore",invalid="ignore"):
        te = occupancy.astype(float) / transcript.astype(float)

    degenerate = ~numpy.isfinite(te.values)
    num_bad = int(degenerate.sum())
    if num_bad > 0:
        num_inf = int(numpy.isinf(te.values).sum())
        msg = "Set %s degenerate TE value(s) to 0 (%s infinite, %s undefined) where transcript abundance is zero." % (
              num_bad,num_inf,num_bad-num_inf)
        printer.write(msg)
        warn(msg,DataWarning)

    te = te.replace([numpy.inf,-numpy.inf],numpy.nan).fillna(0.0)
    return te

def log2_te(te,pseudocount):
    """Return `log2(te + pseudocount)`

    Parameters
    ----------
    te : :class:`pandas.DataFrame`
        Raw TE matrix

    pseudocount : float
        Positive constant

    Returns
    -------
    :class:`pandas.DataFrame`
    """
    if pseudocount <= 0:
        raise ValueError("Pseudocount must be positive. Got %s" % pseudocount)
    return numpy.log2(te + pseudocount)

def center_te(te_log2,method="median"):
    """Center log2 TE per feature, for comparison across samples

    Parameters
    ----------
    te_log2 : :class:`pandas.DataFrame`
        log2 TE matrix

    method : str, optional
        `'median'` to subtract each row's median, `'mean-sd'` to subtract
        each row's mean and divide by its sample standard deviation, or
        `'none'`. Rows with zero or undefined standard deviation become 0
        under `'mean-sd'`.

    Returns
    -------
    :class:`pandas.DataFrame`
    """
    if method == "median":
        return te_log2.sub(te_log2.median(axis=1),axis=0)
    elif method == "mean-sd":
        sd = te_log2.std(axis=1,ddof=1)
        sd = sd.where(sd > 0)
        scaled = te_log2.sub(te_log2.mean(axis=1),axis=0).div(sd,axis=0)
        return scaled.fillna(0.0)
    elif method == "none":
        return te_log2.copy()

    raise ValueError("Unknown centering method '%s'" % method)


#===============================================================================
# INDEX: end-to-end
#===============================================================================

def compute_te(occupancy_counts,transcript_counts,occupancy_lengths,transcript_lengths=None,
               config=None,printer=None):
    """Compute raw, log2 and centered TE from raw count matrices

    Features are first restricted to those qualifying in both matrices (see
    :func:`qualifying_features`) and having a usable length in both length
    tables. Each matrix is then normalized over exactly that feature set.

    Parameters
    ----------
    occupancy_counts : :class:`pandas.DataFrame`
        Feature x sample ribosome occupancy (P-site) counts

    transcript_counts : :class:`pandas.DataFrame`
        Feature x sample transcript counts, with the same sample keys

    occupancy_lengths : :class:`pandas.Series` or dict
        Feature lengths used to normalize `occupancy_counts`

    transcript_lengths : :class:`pandas.Series` or dict, optional
        Feature lengths used to normalize `transcript_counts`.
        If `None`, `occupancy_lengths` is used.

    config : |PipelineConfig|, optional
        Supplies `min_mean_count`, `pseudocount` and `centering`

    printer : file-like, optional
        Logger implementing ``write()``

    Returns
    -------
    |TEResult|

    Raises
    ------
    FeatureSetEmpty
        If no feature qualifies, or none of the qualifying features has a length

    ColumnSetMismatch
        If sample keys differ between the two count matrices
    """
    config  = PipelineConfig.for_granularity("gene") if config is None else config
    printer = NullWriter() if printer is None else printer

    transcript_counts = harmonize_columns(occupancy_counts,transcript_counts,"occupancy counts","transcript counts")
    features = qualifying_features(occupancy_counts,transcript_counts,config=config,printer=printer)

    occ_lengths = as_length_series(occupancy_lengths,name="occupancy lengths")
    tx_lengths  = occ_lengths if transcript_lengths is None else as_length_series(transcript_lengths,name="transcript lengths")

    features, no_occ_length = features_with_length(features,occ_lengths)
    features, no_tx_length  = features_with_length(features,tx_lengths)
    excluded = no_occ_length + no_tx_length
    if len(excluded) > 0:
        msg = "Excluding %s qualifying feature(s) without a usable length: %s" % (len(excluded),", ".join(str(X) for X in excluded[:10]))
        printer.write(msg)
        warn(msg,DataWarning)
    if len(features) == 0:
        raise FeatureSetEmpty("None of the qualifying features has a usable length")

    occupancy  = normalize_abundance(occupancy_counts.loc[features],occ_lengths,name="occupancy",printer=printer)
    transcript = normalize_abundance(transcript_counts.loc[features],tx_lengths,name="transcript",printer=printer)

    raw      = translational_efficiency(occupancy,transcript,printer=printer)
    logged   = log2_te(raw,config.pseudocount)
    centered = center_te(logged,config.centering)
    printer.write("Computed TE for %s features x %s samples (pseudocount %s, centering '%s')." % (
                  raw.shape[0],raw.shape[1],config.pseudocount,config.centering))

    return TEResult(raw,logged,centered,occupancy=occupancy,transcript=transcript)

def te_subsets(occupancy_counts,transcript_counts,occupancy_lengths,transcript_lengths=None,
               config=None,printer=None):
    """Compute TE over all features, canonical features only, and non-canonical features only

    Each subset is qualified and normalized independently, so its scaling
    factors differ from those of the other subsets. TE values are therefore
    **not comparable across subsets**; compare samples within one subset only.

    Parameters
    ----------
    occupancy_counts, transcript_counts, occupancy_lengths, transcript_lengths, config, printer
        As in :func:`compute_te`. Canonical features are recognized by
        `config.canonical_suffix`.

    Returns
    -------
    dict
        Dictionary mapping `'all'`, `'canonical'` and `'noncanonical'` to
        |TEResult| objects. Subsets containing no feature are omitted.
    """
    config  = PipelineConfig.for_granularity("orf") if config is None else config
    printer = NullWriter() if printer is None else printer

    canonical = is_canonical(occupancy_counts.index,config.canonical_suffix)
    selections = [("all",numpy.ones(len(canonical),dtype=bool)),
                  ("canonical",canonical),
                  ("noncanonical",~canonical)]

    dtmp = {}
    for name, mask in selections:
        if not mask.any():
            printer.write("No %s features; skipping subset." % name)
            continue

        printer.write("Computing TE over %s features..." % name)
        try:
            dtmp[name] = compute_te(occupancy_counts.loc[mask],transcript_counts,
                                    occupancy_lengths,transcript_lengths=transcript_lengths,
                                    config=config,printer=printer)
        except FeatureSetEmpty as e:
            if name == "all":
                raise
            msg = "Skipping %s subset: %s" % (name,e)
            printer.write(msg)
            warn(msg,DataWarning)

    return dtmp
