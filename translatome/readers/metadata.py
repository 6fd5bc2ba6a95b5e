#!/usr/bin/env python
"""Read and filter sample metadata tables.

Metadata are curated as spreadsheets, often with a few title rows above the
header and with free-text column names. :func:`read_metadata` skips the
title rows, normalizes header names (lowercase, non-alphanumeric runs
replaced by `'_'`), applies an optional renaming to the canonical names in
:data:`CANONICAL_COLUMNS`, and checks that the required columns are present.

Canonical columns
-----------------

    ==================   ====================================================
    **Column**           **Contents**
    ------------------   ----------------------------------------------------
    `sample_id`          Stable sample identifier assigned by curators
    `sample_type`        e.g. tissue, cell line
    `subgroup`           Molecular subgroup
    `myc_status`         MYC amplification status
    `myc_group`          MYC group
    `rnaseq_files`       Free-text list of RNA-seq read files
    `riboseq_files`      Free-text list of ribosome profiling read files
    ==================   ====================================================

Only `sample_id` is always required. File columns are required when they are
to be matched against quantifier output.
"""
import re

import pandas as pd

from translatome.util.io.openers import NullWriter
from translatome.util.services.exceptions import SchemaMismatch,\
                                                 DuplicateSampleMapping,\
                                                 MalformedFileError,\
                                                 DataWarning, warn

CANONICAL_COLUMNS = ["sample_id","sample_type","subgroup","myc_status",
                     "myc_group","rnaseq_files","riboseq_files"]

FILE_COLUMNS = { "rna"  : "rnaseq_files",
                 "ribo" : "riboseq_files",
               }
"""Free-text file column for each assay"""


def normalize_header(name):
    """Lowercase `name` and replace runs of non-alphanumeric characters with `'_'`

    Examples
    --------
    >>> normalize_header("  Sample ID ")
    'sample_id'

    >>> normalize_header("RNA-seq files")
    'rna_seq_files'
    """
    return re.sub(r"[^0-9a-z]+","_",str(name).strip().lower()).strip("_")

def read_metadata(filename,skiprows=0,sheet_name=0,columns=None,required=None,sep=None):
    """Read a sample metadata table

    Parameters
    ----------
    filename : str
        `.xlsx` spreadsheet, or comma- or tab-delimited text

    skiprows : int, optional
        Number of title rows above the header (Default: 0)

    sheet_name : str or int, optional
        Worksheet to read from spreadsheets (Default: first)

    columns : dict, optional
        Mapping of normalized header names to canonical names, for headers
        that do not normalize to a canonical name by themselves

    required : list, optional
        Canonical columns that must be present in addition to `sample_id`

    sep : str, optional
        Delimiter of text files. If `None`, guessed from extension.

    Returns
    -------
    :class:`pandas.DataFrame`
        Metadata, one row per sample, with normalized column names and
        `sample_id` as string

    Raises
    ------
    SchemaMismatch
        If `sample_id` or any of `required` columns are absent

    DuplicateSampleMapping
        If sample IDs are not unique

    MalformedFileError
        If a text table cannot be parsed
    """
    if filename.lower().endswith((".xlsx",".xlsm")):
        table = pd.read_excel(filename,sheet_name=sheet_name,skiprows=skiprows,engine="openpyxl")
    else:
        if sep is None:
            sep = "," if ".csv" in filename.lower() else "\t"
        try:
            table = pd.read_csv(filename,sep=sep,skiprows=skiprows,comment=None)
        except pd.errors.ParserError as e:
            raise MalformedFileError(filename,str(e))

    table.columns = [normalize_header(X) for X in table.columns]
    if columns is not None:
        table = table.rename(columns={ normalize_header(K) : V for K,V in columns.items() })

    table = table.dropna(how="all")
    required = ["sample_id"] + ([] if required is None else [X for X in required if X != "sample_id"])
    missing = [X for X in required if X not in table.columns]
    if len(missing) > 0:
        raise SchemaMismatch(filename,missing,table.columns)

    table = table[table["sample_id"].notna()].copy()
    ids = table["sample_id"]
    # numeric codes are read as float when the column has blank cells
    if pd.api.types.is_float_dtype(ids) and (ids == ids.round()).all():
        ids = ids.astype("Int64")
    table["sample_id"] = ids.astype(str).str.strip()
    dupes = table["sample_id"][table["sample_id"].duplicated(keep=False)]
    if len(dupes) > 0:
        raise DuplicateSampleMapping({ K : ["row %s" % X for X in dupes.index[dupes == K]] for K in set(dupes) })

    return table.reset_index(drop=True)

def exclude_samples(metadata,excluded,printer=None):
    """Remove samples on an explicit exclusion list

    Parameters
    ----------
    metadata : :class:`pandas.DataFrame`
        Output of :func:`read_metadata`

    excluded : list
        Sample IDs to remove. IDs absent from `metadata` are reported
        with a |DataWarning|.

    printer : file-like, optional
        Logger implementing ``write()``

    Returns
    -------
    :class:`pandas.DataFrame`
    """
    printer  = NullWriter() if printer is None else printer
    excluded = [str(X) for X in excluded]

    known   = set(metadata["sample_id"])
    unknown = [X for X in excluded if X not in known]
    if len(unknown) > 0:
        warn("Excluded sample(s) not found in metadata: %s" % ", ".join(unknown),DataWarning)

    mask = metadata["sample_id"].isin(excluded)
    if mask.any():
        printer.write("Excluding %s sample(s): %s" % (mask.sum(),", ".join(metadata["sample_id"][mask])))

    return metadata[~mask].reset_index(drop=True)

def has_files(values):
    """Return a boolean :class:`pandas.Series` that is `True` where a free-text file field is non-empty"""
    return values.fillna("").astype(str).str.strip().str.len() > 0

def paired_samples(metadata,rna_column="rnaseq_files",ribo_column="riboseq_files",printer=None):
    """Keep samples with both RNA-seq and ribosome profiling files

    Parameters
    ----------
    metadata : :class:`pandas.DataFrame`

    rna_column, ribo_column : str, optional
        Free-text file columns

    printer : file-like, optional
        Logger implementing ``write()``

    Returns
    -------
    :class:`pandas.DataFrame`

    Raises
    ------
    SchemaMismatch
        If either file column is absent
    """
    printer = NullWriter() if printer is None else printer
    missing = [X for X in (rna_column,ribo_column) if X not in metadata.columns]
    if len(missing) > 0:
        raise SchemaMismatch("metadata",missing,metadata.columns)

    mask = has_files(metadata[rna_column]) & has_files(metadata[ribo_column])
    if not mask.all():
        unpaired = list(metadata["sample_id"][~mask])
        msg = "Dropping %s sample(s) without paired RNA-seq and Ribo-seq data: %s" % (len(unpaired),", ".join(unpaired))
        printer.write(msg)
        warn(msg,DataWarning)

    return metadata[mask].reset_index(drop=True)
