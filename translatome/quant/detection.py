#!/usr/bin/env python
"""Classify features as translated (or expressed) from a normalized abundance matrix.

A feature is *detected* in a sample when its abundance is strictly greater
than a fixed threshold, and *detected overall* when the number of samples
supporting it meets or exceeds a minimum support. The classifier is agnostic
to the kind of abundance it receives: PPM from ribosome profiling (translated
ORFs) and TPM from RNA-seq (expressed genes) are handled identically.

The threshold is chosen by the analyst, usually by inspecting the bimodal
density of log2 abundance over all features and samples.
:func:`calibrate_threshold` estimates the density minimum between the two
modes to support that inspection, but detection never calls it implicitly.

Examples
--------
Detect ORFs with PPM > 1 in at least 5 samples, and summarize by ORF class::

    >>> result = detect_translation(ppm_matrix,threshold=1.0,min_samples=5,categories=orf_types)
    >>> result.detected[:3]
    ['ENST00000361390_CDS', 'ENST00000361453_CDS', 'ENST00000331789_uORF1']
    >>> detection_summary(result)
              detected  total  fraction
    category
    dORF            12     80    0.1500
    lncRNA          31    210    0.1476
    ...
"""
import numpy
import pandas as pd
from scipy.stats import gaussian_kde

from translatome.quant.config import PipelineConfig
from translatome.util.services.exceptions import FeatureSetEmpty

UNASSIGNED_CATEGORY = "unassigned"
"""Category label given to features absent from a category table"""


class DetectionResult(object):
    """Per-feature outcome of threshold + sample-support detection

    Attributes
    ----------
    table : :class:`pandas.DataFrame`
        Indexed by feature, with columns `support` (number of samples above
        threshold), `category`, and `detected` (bool)

    threshold : float
        Abundance threshold that was applied

    min_samples : int
        Minimum sample support that was applied
    """

    def __init__(self,table,threshold,min_samples):
        self.table       = table
        self.threshold   = threshold
        self.min_samples = min_samples

    @property
    def detected(self):
        """Keys of detected features, in matrix order"""
        return list(self.table.index[self.table["detected"]])

    @property
    def support(self):
        """:class:`pandas.Series` of per-feature sample support"""
        return self.table["support"]

    def __len__(self):
        return int(self.table["detected"].sum())

    def __repr__(self):
        return "<DetectionResult detected=%s/%s threshold=%s min_samples=%s>" % (len(self),
                                                                                len(self.table),
                                                                                self.threshold,
                                                                                self.min_samples)


def detection_matrix(abundance,threshold):
    """Boolean matrix that is `True` where `abundance > threshold`

    Parameters
    ----------
    abundance : :class:`pandas.DataFrame`
        Feature x sample abundance matrix

    threshold : float

    Returns
    -------
    :class:`pandas.DataFrame`
    """
    return abundance > threshold

def detect_translation(abundance,config=None,threshold=None,min_samples=None,categories=None):
    """Classify features by abundance threshold and minimum sample support

    Parameters
    ----------
    abundance : :class:`pandas.DataFrame`
        Feature x sample abundance matrix (PPM or TPM)

    config : |PipelineConfig|, optional
        Supplies `detection_threshold` and `min_samples`

    threshold : float, optional
        Overrides `config.detection_threshold`

    min_samples : int, optional
        Overrides `config.min_samples`

    categories : :class:`pandas.Series` or dict, optional
        Feature key -> biotype or ORF class, for stratified summaries

    Returns
    -------
    |DetectionResult|
    """
    config = PipelineConfig.for_granularity("orf") if config is None else config
    threshold   = config.detection_threshold if threshold is None else float(threshold)
    min_samples = config.min_samples if min_samples is None else int(min_samples)
    if min_samples < 1:
        raise ValueError("Minimum sample support must be at least 1. Got %s" % min_samples)

    support = detection_matrix(abundance,threshold).sum(axis=1).astype(int)

    if categories is None:
        category = pd.Series(UNASSIGNED_CATEGORY,index=abundance.index)
    else:
        if not isinstance(categories,pd.Series):
            categories = pd.Series(categories)
        category = categories.reindex(abundance.index).fillna(UNASSIGNED_CATEGORY).astype(str)

    table = pd.DataFrame({ "support"  : support,
                           "category" : category,
                           "detected" : support >= min_samples,
                         },columns=["support","category","detected"])
    table.index.name = abundance.index.name
    return DetectionResult(table,threshold,min_samples)

def detection_summary(result):
    """Count detected and total features per category

    Parameters
    ----------
    result : |DetectionResult|

    Returns
    -------
    :class:`pandas.DataFrame`
        Indexed by category, with columns `detected`, `total` and `fraction`
    """
    grouped = result.table.groupby("category",sort=True)["detected"]
    summary = pd.DataFrame({ "detected" : grouped.sum().astype(int),
                             "total"    : grouped.size().astype(int),
                           },columns=["detected","total"])
    summary["fraction"] = summary["detected"] / summary["total"]
    return summary

def calibrate_threshold(abundance,points=1024,bw_method=None):
    """Estimate a detection threshold from the bimodal density of log2 abundance

    Non-zero abundance values are log2-transformed and their density is
    estimated with a Gaussian kernel. The threshold is the density minimum
    between the two highest modes, transformed back to linear scale.

    Parameters
    ----------
    abundance : :class:`pandas.DataFrame`
        Feature x sample abundance matrix

    points : int, optional
        Number of grid points at which the density is evaluated

    bw_method : str, scalar, or callable, optional
        Bandwidth selection, passed to :class:`scipy.stats.gaussian_kde`

    Returns
    -------
    float
        Suggested abundance threshold

    Raises
    ------
    FeatureSetEmpty
        If fewer than two distinct non-zero abundance values are present

    ValueError
        If the density has fewer than two modes
    """
    values = numpy.asarray(abundance,dtype=float).ravel()
    values = values[numpy.isfinite(values) & (values > 0)]
    if len(numpy.unique(values)) < 2:
        raise FeatureSetEmpty("Need at least two distinct non-zero abundance values to estimate a density")

    logs    = numpy.log2(values)
    kde     = gaussian_kde(logs,bw_method=bw_method)
    grid    = numpy.linspace(logs.min(),logs.max(),points)
    density = kde(grid)

    peaks = [X for X in range(1,len(grid)-1) if density[X] > density[X-1] and density[X] >= density[X+1]]
    if len(peaks) < 2:
        raise ValueError("Density of log2 abundance is not bimodal; choose a threshold manually")

    top = sorted(sorted(peaks,key=lambda x: density[x],reverse=True)[:2])
    trough = top[0] + int(numpy.argmin(density[top[0]:top[1]+1]))
    return float(2**grid[trough])
