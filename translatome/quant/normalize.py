#!/usr/bin/env python
"""Length- and library-size normalization of count matrices.

Raw counts are converted to per-million abundance in three steps, for each
sample `s` and feature `f`:

  #. `rate[f,s] = count[f,s] / (length[f] / 1000)`, reads (or P-sites)
     per kilobase

  #. `scaling[s] = sum_f rate[f,s] / 1e6`

  #. `abundance[f,s] = rate[f,s] / scaling[s]`

Applied to RNA-seq counts this yields transcripts per million (TPM); applied
to ribosome P-site counts it yields P-sites per million (PPM). Both use the
same arithmetic, so :func:`tpm` and :func:`ppm` are thin aliases of
:func:`normalize_abundance`.

Notes
-----
Scaling factors are computed over the features actually supplied. Normalizing
different subsets of one count matrix (e.g. canonical vs non-canonical ORFs)
therefore yields abundance values that are not comparable across subsets.

Features whose length is missing, non-numeric, or not positive are excluded
before normalization and reported with a |DataWarning|.
"""
import numpy
import pandas as pd

from translatome.util.io.openers import NullWriter
from translatome.util.services.exceptions import DegenerateSample,\
                                                 FeatureSetEmpty,\
                                                 DuplicateFeatureKeys,\
                                                 DataWarning, warn


def as_length_series(lengths,name="lengths"):
    """Coerce a feature-length table to a numeric :class:`pandas.Series`

    Parameters
    ----------
    lengths : :class:`pandas.Series`, dict, or single-column :class:`pandas.DataFrame`
        Feature key -> length in nucleotides

    name : str, optional
        Name of table, used in error messages

    Returns
    -------
    :class:`pandas.Series`
        Float lengths; non-numeric entries become `NaN`
    """
    if isinstance(lengths,pd.DataFrame):
        if lengths.shape[1] != 1:
            raise ValueError("Length table '%s' must have exactly one column. Found %s" % (name,lengths.shape[1]))
        lengths = lengths.iloc[:,0]
    elif not isinstance(lengths,pd.Series):
        lengths = pd.Series(lengths)

    lengths = pd.to_numeric(lengths,errors="coerce").astype(float)
    lengths.index = lengths.index.astype(str)
    dupes = lengths.index[lengths.index.duplicated()]
    if len(dupes) > 0:
        raise DuplicateFeatureKeys(name,sorted(set(dupes)))

    return lengths

def features_with_length(features,lengths):
    """Split `features` into those with a usable length and those without

    Parameters
    ----------
    features : list-like
        Feature keys

    lengths : :class:`pandas.Series`
        Output of :func:`as_length_series`

    Returns
    -------
    list
        Features with a finite, positive length, in input order

    list
        Remaining features, in input order
    """
    aligned = lengths.reindex(pd.Index(features).astype(str))
    good = numpy.isfinite(aligned.values) & (aligned.values > 0)
    features = list(features)
    return [X for X,Y in zip(features,good) if Y], [X for X,Y in zip(features,good) if not Y]

def scaling_factors(rate):
    """Per-sample scaling factors, i.e. the sum of per-kilobase rates divided by one million

    Parameters
    ----------
    rate : :class:`pandas.DataFrame`
        Feature x sample matrix of counts per kilobase

    Returns
    -------
    :class:`pandas.Series`
    """
    return rate.sum(axis=0) / 1e6

def normalize_abundance(counts,lengths,name="counts",printer=None):
    """Convert raw counts to per-million abundance (TPM or PPM)

    Parameters
    ----------
    counts : :class:`pandas.DataFrame`
        Feature x sample count matrix

    lengths : :class:`pandas.Series` or dict
        Feature key -> length in nucleotides. May contain features
        absent from `counts`.

    name : str, optional
        Name of matrix, used in messages

    printer : file-like, optional
        Logger implementing ``write()``

    Returns
    -------
    :class:`pandas.DataFrame`
        Abundance matrix over the features of `counts` that have a length,
        in their original order. Each column sums to one million.

    Raises
    ------
    FeatureSetEmpty
        If no feature of `counts` has a usable length

    DegenerateSample
        If any sample sums to zero over the retained features
    """
    printer = NullWriter() if printer is None else printer
    lengths = as_length_series(lengths,name="lengths for '%s'" % name)

    keep, excluded = features_with_length(counts.index,lengths)
    if len(excluded) > 0:
        shown = ", ".join(str(X) for X in excluded[:10])
        if len(excluded) > 10:
            shown += ", ..."
        msg = "Excluding %s feature(s) of '%s' without a usable length: %s" % (len(excluded),name,shown)
        printer.write(msg)
        warn(msg,DataWarning)

    if len(keep) == 0:
        raise FeatureSetEmpty("No feature of '%s' has a usable length" % name)

    kept = counts.loc[keep].astype(float)
    kb   = lengths.reindex(pd.Index(keep).astype(str)).values / 1000.0
    rate = kept.div(kb,axis=0)

    scale = scaling_factors(rate)
    zero  = list(scale.index[scale == 0])
    if len(zero) > 0:
        raise DegenerateSample(zero,table=name)

    abundance = rate.div(scale,axis=1)
    abundance.index.name = counts.index.name
    return abundance

def tpm(counts,lengths,name="transcript counts",printer=None):
    """Transcripts per million from RNA-seq counts. See :func:`normalize_abundance`"""
    return normalize_abundance(counts,lengths,name=name,printer=printer)

def ppm(counts,lengths,name="P-site counts",printer=None):
    """P-sites per million from ribosome profiling P-site counts. See :func:`normalize_abundance`"""
    return normalize_abundance(counts,lengths,name=name,printer=printer)
