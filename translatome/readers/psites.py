#!/usr/bin/env python
"""Read P-site counts and ORF lengths from `BED`_ files.

Two kinds of files are read:

Reference P-site files
    One row per potential P-site of each ORF, with the ORF ID in the
    `name` column (column 4). The number of rows per ORF is its length in
    nucleotides. See :func:`read_reference_psites`.

Sample intersection files
    Output of ``bedtools intersect -wa -wb -a SAMPLE_psites.bed -b REFERENCE_psites.bed``:
    six columns describing an observed P-site, whose `score` (column 5)
    holds the number of reads at that position, followed by the six
    columns of the overlapping reference P-site. P-site counts per ORF are
    the summed scores grouped by the reference ORF ID (column 10). Files are
    named ``SAMPLE_intersect.bed``. See :func:`read_intersect_bed`.

`track`, `browser` and `#` comment lines are ignored.
"""
import io
import os

import pandas as pd

from translatome.util.io.filters import CommentReader, SkipBlankReader
from translatome.util.io.openers import opener, FEATURE_INDEX_NAME
from translatome.util.services.exceptions import MalformedFileError

BED_HEADER_PREFIXES = ("#","track","browser")
INTERSECT_SUFFIX = "_intersect.bed"


def _read_bed_table(filename,min_columns):
    with opener(filename) as fh:
        reader = SkipBlankReader(CommentReader(fh,prefixes=BED_HEADER_PREFIXES))
        text = reader.read()

    if len(text.strip()) == 0:
        return pd.DataFrame(columns=list(range(min_columns)))

    try:
        table = pd.read_csv(io.StringIO(text),sep="\t",header=None,dtype=str)
    except pd.errors.ParserError as e:
        raise MalformedFileError(filename,str(e))

    if table.shape[1] < min_columns:
        raise MalformedFileError(filename,"Expected at least %s columns. Found %s" % (min_columns,table.shape[1]))

    return table

def read_reference_psites(filename,name_column=3):
    """Compute ORF lengths from a reference P-site file

    Parameters
    ----------
    filename : str
        BED file with one row per P-site position per ORF

    name_column : int, optional
        0-indexed column holding the ORF ID (Default: 3, the BED `name` column)

    Returns
    -------
    :class:`pandas.Series`
        ORF ID -> number of P-site positions, in order of first appearance
    """
    table = _read_bed_table(filename,name_column+1)
    lengths = table[name_column].value_counts(sort=False)
    lengths = lengths.reindex(pd.unique(table[name_column])).astype(int)
    lengths.index = lengths.index.astype(str)
    lengths.index.name = FEATURE_INDEX_NAME
    lengths.name = "length"
    return lengths

def read_intersect_bed(filename,score_column=4,name_column=9):
    """Sum P-site scores per reference ORF from a sample intersection file

    Parameters
    ----------
    filename : str
        Output of ``bedtools intersect -wa -wb``

    score_column : int, optional
        0-indexed column of the sample P-site read count (Default: 4)

    name_column : int, optional
        0-indexed column of the reference ORF ID (Default: 9)

    Returns
    -------
    :class:`pandas.Series`
        ORF ID -> P-site count. ORFs without P-sites are absent.

    Raises
    ------
    MalformedFileError
        If scores are not numeric
    """
    table = _read_bed_table(filename,max(score_column,name_column)+1)
    scores = pd.to_numeric(table[score_column],errors="coerce")
    if scores.isna().any():
        line = int(scores.index[scores.isna()][0]) + 1
        raise MalformedFileError(filename,"Non-numeric P-site score in data row %s" % line)

    counts = scores.groupby(table[name_column].astype(str),sort=False).sum()
    counts.index.name = FEATURE_INDEX_NAME
    return counts

def candidate_from_filename(filename,suffix=INTERSECT_SUFFIX):
    """Return the sample identifier embedded in a sample intersection filename

    Examples
    --------
    >>> candidate_from_filename("/data/psites/MB12_R1_001_intersect.bed")
    'MB12_R1_001'
    """
    name = os.path.basename(filename)
    if name.endswith(suffix) and len(name) > len(suffix):
        return name[:-len(suffix)]
    return name

def read_psite_counts(filenames,reference_lengths=None,suffix=INTERSECT_SUFFIX):
    """Assemble an ORF x candidate P-site count matrix from sample intersection files

    Parameters
    ----------
    filenames : list of str
        Sample intersection files

    reference_lengths : :class:`pandas.Series`, optional
        Output of :func:`read_reference_psites`. If given, the matrix
        contains exactly the reference ORFs, in reference order

    suffix : str, optional
        Filename suffix removed to obtain candidate identifiers

    Returns
    -------
    :class:`pandas.DataFrame`
        Integer P-site counts; ORFs without P-sites in a sample are 0
    """
    candidates = [candidate_from_filename(X,suffix) for X in filenames]
    if len(set(candidates)) != len(candidates):
        raise ValueError("Intersection files do not yield unique sample identifiers: %s" % ", ".join(candidates))

    dtmp = { K : read_intersect_bed(V) for K,V in zip(candidates,filenames) }
    counts = pd.DataFrame(dtmp,columns=candidates)
    if reference_lengths is not None:
        counts = counts.reindex(reference_lengths.index)

    counts = counts.fillna(0).astype(int)
    counts.index.name = FEATURE_INDEX_NAME
    return counts
