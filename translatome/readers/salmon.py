#!/usr/bin/env python
"""Read transcript quantifications produced by `Salmon`_.

Salmon writes one tab-delimited `quant.sf` per sample, in a directory named
after the sample::

    Name               Length  EffectiveLength  TPM       NumReads
    ENST00000456328.2  1657    1408.000         0.105     3.000

:func:`read_salmon_directory` collects all samples below one directory into a
count matrix of `NumReads`, using each sample directory's name as its
candidate identifier. All samples must report the same features.

.. _Salmon: https://salmon.readthedocs.io
"""
import os

import pandas as pd

from translatome.util.io.openers import FEATURE_INDEX_NAME
from translatome.util.services.exceptions import SchemaMismatch,\
                                                 DuplicateFeatureKeys,\
                                                 MalformedFileError

SALMON_COLUMNS = ["Name","Length","EffectiveLength","TPM","NumReads"]


def read_quant_file(filename):
    """Read a single Salmon `quant.sf` file

    Parameters
    ----------
    filename : str

    Returns
    -------
    :class:`pandas.DataFrame`
        Indexed by transcript name, with the remaining columns of :data:`SALMON_COLUMNS`
    """
    try:
        table = pd.read_csv(filename,sep="\t",header=0,comment="#",dtype={ "Name" : str })
    except pd.errors.ParserError as e:
        raise MalformedFileError(filename,str(e))

    missing = [X for X in SALMON_COLUMNS if X not in table.columns]
    if len(missing) > 0:
        raise SchemaMismatch(filename,missing,table.columns)

    dupes = table["Name"][table["Name"].duplicated()]
    if len(dupes) > 0:
        raise DuplicateFeatureKeys(filename,sorted(set(dupes)))

    table.index = table["Name"].astype(str)
    table.index.name = FEATURE_INDEX_NAME
    return table[SALMON_COLUMNS[1:]]

def find_quant_files(root,quant_name="quant.sf"):
    """Find per-sample quantification files one level below `root`

    Parameters
    ----------
    root : str
        Directory containing one subdirectory per sample

    quant_name : str, optional
        Name of quantification file in each sample directory

    Returns
    -------
    list
        `(candidate, path)` tuples, sorted by candidate
    """
    ltmp = []
    for name in sorted(os.listdir(root)):
        path = os.path.join(root,name,quant_name)
        if os.path.isfile(path):
            ltmp.append((name,path))

    return ltmp

def read_salmon_directory(root,quant_name="quant.sf",length_column="Length"):
    """Assemble a count matrix from all Salmon sample directories below `root`

    Parameters
    ----------
    root : str
        Directory containing one subdirectory per sample

    quant_name : str, optional
        Name of quantification file in each sample directory (Default: `'quant.sf'`)

    length_column : str, optional
        `'Length'` (default) or `'EffectiveLength'`

    Returns
    -------
    :class:`pandas.DataFrame`
        Transcript x candidate matrix of `NumReads`

    :class:`pandas.Series`
        Transcript lengths, taken from the first sample

    Raises
    ------
    MalformedFileError
        If no quantification files are found

    SchemaMismatch
        If samples report different transcripts
    """
    if length_column not in ("Length","EffectiveLength"):
        raise ValueError("`length_column` must be 'Length' or 'EffectiveLength'. Got '%s'" % length_column)

    files = find_quant_files(root,quant_name=quant_name)
    if len(files) == 0:
        raise MalformedFileError(root,"No '%s' files found in sample subdirectories" % quant_name)

    first_name, first_file = files[0]
    first = read_quant_file(first_file)
    dtmp = { first_name : first["NumReads"] }
    for name, path in files[1:]:
        table = read_quant_file(path)
        only_first = first.index.difference(table.index,sort=False)
        only_this  = table.index.difference(first.index,sort=False)
        if len(only_first) > 0 or len(only_this) > 0:
            raise SchemaMismatch(path,list(only_first[:10]) or list(only_this[:10]),kind="feature")
        dtmp[name] = table["NumReads"].reindex(first.index)

    counts = pd.DataFrame(dtmp,columns=[X[0] for X in files],index=first.index)
    lengths = first[length_column].rename("length")
    return counts, lengths
