#!/usr/bin/env python
"""Assemble clean feature x sample count matrices from quantifier output.

Raw tables produced by the readers in :mod:`translatome.readers` are indexed by
feature and have one column per candidate sample identifier. Assembly:

  #. validates the matrix (unique feature keys and sample columns,
     finite non-negative counts);

  #. renames columns to canonical sample IDs via a |Reconciliation|, dropping
     columns that matched no sample, and summing columns that share a sample
     only if that was permitted (e.g. lanes of one library);

  #. optionally merges matrices from several feature namespaces (e.g. canonical
     CDS and non-canonical ORFs). Canonical keys receive a fixed suffix first
     (see :func:`mark_canonical`). Matrices must carry the same sample columns;
     column order may differ and is harmonized to the first matrix.

Every function returns a new :class:`pandas.DataFrame`; inputs are never
modified.
"""
import numpy
import pandas as pd

from translatome.quant.config import PipelineConfig
from translatome.util.io.openers import NullWriter, FEATURE_INDEX_NAME
from translatome.util.services.exceptions import SchemaMismatch,\
                                                 DuplicateFeatureKeys,\
                                                 DuplicateSampleMapping,\
                                                 ColumnSetMismatch,\
                                                 DataWarning, warn


#===============================================================================
# INDEX: validation
#===============================================================================

def require_columns(table,required,name="table"):
    """Raise |SchemaMismatch| if any of `required` columns are absent from `table`

    Parameters
    ----------
    table : :class:`pandas.DataFrame`

    required : list
        Column names

    name : str, optional
        Name of table, used in error messages
    """
    missing = [X for X in required if X not in table.columns]
    if len(missing) > 0:
        raise SchemaMismatch(name,missing,table.columns)

def check_count_matrix(counts,name="counts"):
    """Check the invariants of a count matrix

    Parameters
    ----------
    counts : :class:`pandas.DataFrame`
        Feature x sample matrix

    name : str, optional
        Name of matrix, used in error messages

    Raises
    ------
    DuplicateFeatureKeys
        If feature keys are not unique

    DuplicateSampleMapping
        If sample columns are not unique

    ValueError
        If counts are negative, missing, or non-numeric
    """
    dup_index = counts.index[counts.index.duplicated()]
    if len(dup_index) > 0:
        raise DuplicateFeatureKeys(name,sorted(set(dup_index)))

    dup_cols = counts.columns[counts.columns.duplicated()]
    if len(dup_cols) > 0:
        raise DuplicateSampleMapping({ X : [X]*int((counts.columns == X).sum()) for X in set(dup_cols) })

    non_numeric = [X for X in counts.columns if not pd.api.types.is_numeric_dtype(counts[X])]
    if len(non_numeric) > 0:
        raise ValueError("Matrix '%s' has non-numeric sample column(s): %s" % (name,", ".join(str(X) for X in non_numeric)))

    values = counts.to_numpy(dtype=float)
    if numpy.isnan(values).any() or numpy.isinf(values).any():
        raise ValueError("Matrix '%s' contains missing or infinite counts" % name)
    if (values < 0).any():
        bad = counts.index[(values < 0).any(axis=1)]
        raise ValueError("Matrix '%s' contains negative counts for feature(s): %s" % (name,", ".join(str(X) for X in bad[:10])))


#===============================================================================
# INDEX: sample reconciliation
#===============================================================================

def apply_reconciliation(counts,reconciliation,name="counts",config=None,printer=None):
    """Rename count columns from candidate identifiers to sample IDs

    Columns whose candidates matched no metadata row are dropped. Columns
    are ordered as the samples appear in the metadata table.

    Parameters
    ----------
    counts : :class:`pandas.DataFrame`
        Feature x candidate matrix

    reconciliation : |Reconciliation|
        Result of :func:`~translatome.quant.reconcile.reconcile` on `counts.columns`

    name : str, optional
        Name of matrix, used in messages

    config : |PipelineConfig|, optional
        If `config.allow_shared_samples` is `True`, columns resolving to
        the same sample are summed. Otherwise, they raise |DuplicateSampleMapping|.

    printer : file-like, optional
        Logger implementing ``write()``

    Returns
    -------
    :class:`pandas.DataFrame`
        Feature x sample matrix
    """
    config  = PipelineConfig.for_granularity("gene") if config is None else config
    printer = NullWriter() if printer is None else printer

    keep = reconciliation.candidates
    absent = [X for X in keep if X not in counts.columns]
    if len(absent) > 0:
        raise SchemaMismatch(name,absent,counts.columns)

    dropped = list(counts.columns[~counts.columns.isin(keep)])
    if len(dropped) > 0:
        msg = "Dropping %s column(s) of '%s' with no matching sample: %s" % (len(dropped),name,", ".join(str(X) for X in dropped))
        printer.write(msg)
        warn(msg,DataWarning)

    renamed = counts[keep].copy()
    renamed.columns = [reconciliation.mapping[X] for X in keep]

    if renamed.columns.duplicated().any():
        if not config.allow_shared_samples:
            shared = reconciliation.table[reconciliation.table["sample_id"].duplicated(keep=False)]
            raise DuplicateSampleMapping({ K : list(V["candidate"]) for K,V in shared.groupby("sample_id",sort=False) })

        order = reconciliation.sample_ids
        renamed = renamed.T.groupby(level=0,sort=False).sum().T[order]
        printer.write("Summed columns of '%s' sharing a sample, leaving %s samples." % (name,len(order)))

    renamed.index.name = FEATURE_INDEX_NAME
    return renamed


#===============================================================================
# INDEX: merging feature namespaces
#===============================================================================

def mark_canonical(counts,suffix="_CDS"):
    """Append `suffix` to every feature key that does not already end with it

    Parameters
    ----------
    counts : :class:`pandas.DataFrame`
        Matrix of canonical features

    suffix : str, optional
        Disambiguating suffix (Default: `'_CDS'`)

    Returns
    -------
    :class:`pandas.DataFrame`
    """
    out = counts.copy()
    out.index = [X if str(X).endswith(suffix) else "%s%s" % (X,suffix) for X in counts.index]
    out.index.name = counts.index.name
    return out

def is_canonical(keys,suffix="_CDS"):
    """Return a boolean array that is `True` where feature keys end in `suffix`

    Parameters
    ----------
    keys : list-like of str

    suffix : str, optional

    Returns
    -------
    :class:`numpy.ndarray`
    """
    return numpy.array([str(X).endswith(suffix) for X in keys],dtype=bool)

def harmonize_columns(reference,other,name1="matrix 1",name2="matrix 2"):
    """Reorder the columns of `other` to match `reference`

    Parameters
    ----------
    reference : :class:`pandas.DataFrame`

    other : :class:`pandas.DataFrame`

    name1, name2 : str, optional
        Names used in error messages

    Returns
    -------
    :class:`pandas.DataFrame`
        `other`, with columns in the order of `reference`

    Raises
    ------
    ColumnSetMismatch
        If the two matrices do not have the same set of columns
    """
    cols1 = list(reference.columns)
    cols2 = list(other.columns)
    if set(cols1) != set(cols2) or len(cols1) != len(cols2):
        raise ColumnSetMismatch(name1,name2,
                                list(pd.Index(cols1).difference(cols2,sort=False)),
                                list(pd.Index(cols2).difference(cols1,sort=False)))
    return other[cols1]

def concatenate_matrices(matrices,names=None,name="merged"):
    """Vertically concatenate matrices that share a sample-column set

    Parameters
    ----------
    matrices : list of :class:`pandas.DataFrame`
        Matrices to merge. Columns of each are reordered to match the first.

    names : list of str, optional
        Names of input matrices, used in error messages

    name : str, optional
        Name of merged matrix, used in error messages

    Returns
    -------
    :class:`pandas.DataFrame`

    Raises
    ------
    ColumnSetMismatch
        If sample columns differ between matrices

    DuplicateFeatureKeys
        If a feature key occurs more than once after merging
    """
    if len(matrices) == 0:
        raise ValueError("No matrices to concatenate")

    names = ["matrix %s" % (N+1) for N in range(len(matrices))] if names is None else names
    first = matrices[0]
    ltmp = [first]
    for other, other_name in zip(matrices[1:],names[1:]):
        ltmp.append(harmonize_columns(first,other,names[0],other_name))

    merged = pd.concat(ltmp,axis=0)
    dupes = merged.index[merged.index.duplicated()]
    if len(dupes) > 0:
        raise DuplicateFeatureKeys(name,sorted(set(dupes)))

    merged.index.name = FEATURE_INDEX_NAME
    return merged

def assemble_count_matrix(tables,reconciliation,canonical=None,config=None,names=None,printer=None):
    """Reconcile and merge one or more raw count tables into a single count matrix

    Parameters
    ----------
    tables : list of :class:`pandas.DataFrame`
        Feature x candidate count tables

    reconciliation : |Reconciliation|
        Candidate -> sample mapping, covering the columns of every table

    canonical : list of bool, optional
        For each table, whether its features are canonical CDS regions whose
        keys should receive `config.canonical_suffix`. If `None`, no keys
        are modified.

    config : |PipelineConfig|, optional

    names : list of str, optional
        Names of tables, used in messages

    printer : file-like, optional
        Logger implementing ``write()``

    Returns
    -------
    :class:`pandas.DataFrame`
        Feature x sample count matrix
    """
    config  = PipelineConfig.for_granularity("gene") if config is None else config
    printer = NullWriter() if printer is None else printer
    names   = ["table %s" % (N+1) for N in range(len(tables))] if names is None else names
    canonical = [False]*len(tables) if canonical is None else canonical
    if not len(tables) == len(names) == len(canonical):
        raise ValueError("`tables`, `names`, and `canonical` must have the same length")

    ltmp = []
    for table, table_name, is_canon in zip(tables,names,canonical):
        check_count_matrix(table,table_name)
        counts = apply_reconciliation(table,reconciliation,name=table_name,config=config,printer=printer)
        if is_canon:
            counts = mark_canonical(counts,config.canonical_suffix)
        ltmp.append(counts)
        printer.write("'%s': %s features x %s samples." % (table_name,counts.shape[0],counts.shape[1]))

    merged = concatenate_matrices(ltmp,names=names)
    printer.write("Assembled count matrix: %s features x %s samples." % merged.shape)
    return merged


#===============================================================================
# INDEX: filters
#===============================================================================

def filter_min_mean(counts,threshold):
    """Keep features whose mean count across samples is strictly greater than `threshold`

    Parameters
    ----------
    counts : :class:`pandas.DataFrame`
        Feature x sample raw count matrix

    threshold : float

    Returns
    -------
    :class:`pandas.DataFrame`
    """
    return counts.loc[counts.mean(axis=1) > threshold].copy()

def select_samples(counts,samples,name="counts"):
    """Subset and reorder the columns of `counts` to `samples`

    Parameters
    ----------
    counts : :class:`pandas.DataFrame`

    samples : list
        Sample IDs to keep. All must be present.

    name : str, optional
        Name of matrix, used in error messages

    Returns
    -------
    :class:`pandas.DataFrame`
    """
    require_columns(counts,samples,name)
    return counts[list(samples)].copy()
