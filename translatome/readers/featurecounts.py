#!/usr/bin/env python
"""Read count tables produced by `featureCounts`_.

featureCounts writes one tab-delimited table per run. The first line is a
comment describing the command (``# Program:featureCounts v2.0.1; Command: ...``),
followed by a header with six annotation columns and one column per alignment
file::

    Geneid  Chr   Start  End    Strand  Length  /path/star_tx/MB12/MB12.Aligned.sortedByCoord.out.bam ...

The annotation columns are discarded, except `Length`, which is returned as
the feature-length table. Sample headers are alignment paths; the directory
and the aligner's fixed output suffix are removed to obtain candidate
identifiers for :func:`~translatome.quant.reconcile.reconcile`.

.. _featureCounts: https://subread.sourceforge.net/featureCounts.html
"""
import io
import os

import pandas as pd

from translatome.util.io.filters import CommentReader, SkipBlankReader
from translatome.util.io.openers import opener, FEATURE_INDEX_NAME
from translatome.util.services.exceptions import SchemaMismatch,\
                                                 DuplicateFeatureKeys,\
                                                 MalformedFileError

FEATURECOUNTS_COLUMNS = ["Geneid","Chr","Start","End","Strand","Length"]
"""Annotation columns leading every featureCounts table"""

DEFAULT_BAM_SUFFIX = "Aligned.sortedByCoord.out.bam"
"""Suffix of coordinate-sorted alignments written by STAR"""


def strip_alignment_suffix(path,suffix=DEFAULT_BAM_SUFFIX):
    """Reduce an alignment path to a candidate sample identifier

    Examples
    --------
    >>> strip_alignment_suffix("/data/star_tx/MB12/MB12.Aligned.sortedByCoord.out.bam")
    'MB12'

    >>> strip_alignment_suffix("MB07_R1_001_Aligned.sortedByCoord.out.bam")
    'MB07_R1_001'

    Parameters
    ----------
    path : str
        Alignment file path, as reported in a featureCounts header

    suffix : str, optional
        Fixed suffix to remove, together with one separating `'.'` or `'_'`
        (Default: :data:`DEFAULT_BAM_SUFFIX`)

    Returns
    -------
    str
    """
    name = os.path.basename(path.rstrip("/"))
    if len(suffix) > 0 and name.endswith(suffix) and len(name) > len(suffix):
        name = name[:-len(suffix)]
        if name[-1] in "._":
            name = name[:-1]
    return name

def read_featurecounts(filename,suffix=DEFAULT_BAM_SUFFIX):
    """Read a featureCounts table into a count matrix and a length table

    Parameters
    ----------
    filename : str
        Path to table. Can be gzipped or bzipped.

    suffix : str, optional
        Aligner output suffix stripped from sample headers

    Returns
    -------
    :class:`pandas.DataFrame`
        Feature x candidate count matrix

    :class:`pandas.Series`
        Feature lengths in nucleotides

    Raises
    ------
    SchemaMismatch
        If any annotation column is missing

    DuplicateFeatureKeys
        If a feature ID occurs more than once

    MalformedFileError
        If the file cannot be parsed, has no sample columns, or two sample
        columns reduce to the same identifier
    """
    with opener(filename) as fh:
        reader = SkipBlankReader(CommentReader(fh))
        text = reader.read()

    if len(text.strip()) == 0:
        raise MalformedFileError(filename,"File contains no table")

    try:
        table = pd.read_csv(io.StringIO(text),sep="\t",header=0,dtype={ "Geneid" : str, "Chr" : str })
    except pd.errors.ParserError as e:
        raise MalformedFileError(filename,str(e))

    missing = [X for X in FEATURECOUNTS_COLUMNS if X not in table.columns]
    if len(missing) > 0:
        raise SchemaMismatch(filename,missing,table.columns)

    sample_columns = [X for X in table.columns if X not in FEATURECOUNTS_COLUMNS]
    if len(sample_columns) == 0:
        raise MalformedFileError(filename,"Table has no sample columns")

    dupes = table["Geneid"][table["Geneid"].duplicated()]
    if len(dupes) > 0:
        raise DuplicateFeatureKeys(filename,sorted(set(dupes)))

    candidates = [strip_alignment_suffix(X,suffix) for X in sample_columns]
    if len(set(candidates)) != len(candidates):
        raise MalformedFileError(filename,"Sample columns do not reduce to unique identifiers: %s" % ", ".join(candidates))

    counts = table[sample_columns].copy()
    counts.columns = candidates
    counts.index = table["Geneid"].astype(str)
    counts.index.name = FEATURE_INDEX_NAME

    lengths = pd.Series(table["Length"].values,index=counts.index,name="length")
    return counts, lengths
