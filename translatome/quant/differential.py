#!/usr/bin/env python
"""Boundary to an external differential-expression engine.

Statistical testing (e.g. negative-binomial GLMs as fit by DESeq2) is done by
an external engine. This module packages what the engine needs and unpacks
what it returns:

  - :func:`prepare_design` checks a count matrix against sample metadata and
    a design formula, and aligns them into a |DifferentialDesign|

  - :func:`write_inputs` writes the design as flat files for an engine run
    in another process, e.g. an R script

  - :func:`run_engine` calls an engine implemented as a Python callable
    and validates its result

  - :func:`read_results` and :func:`read_normalized_counts` read the
    engine's result table and normalized count matrix

  - :func:`ranked_statistic` turns a result table into the ranked feature
    statistic consumed by gene-set enrichment

Result tables must contain the columns listed in :data:`RESULT_COLUMNS`.
"""
import re
import numpy
import pandas as pd

from translatome.quant.matrices import check_count_matrix, require_columns
from translatome.util.io.openers import NullWriter, FEATURE_INDEX_NAME, guess_separator
from translatome.util.services.exceptions import SchemaMismatch,\
                                                 DuplicateSampleMapping,\
                                                 DataWarning, warn

RESULT_COLUMNS = ["baseMean","log2FoldChange","lfcSE","stat","pvalue","padj"]
"""Columns required in a differential-expression result table"""


class DifferentialDesign(object):
    """Count matrix, sample table, and design formula, aligned for an engine

    Attributes
    ----------
    counts : :class:`pandas.DataFrame`
        Integer feature x sample count matrix

    coldata : :class:`pandas.DataFrame`
        Sample table indexed by sample ID, in the column order of `counts`,
        holding the variables named in `formula`

    formula : str
        Design formula, e.g. `'~ subgroup + myc_status'`

    reference_levels : dict
        Variable -> reference level. Reference levels are placed first in
        the categories of the corresponding `coldata` column
    """

    def __init__(self,counts,coldata,formula,reference_levels=None):
        self.counts           = counts
        self.coldata          = coldata
        self.formula          = formula
        self.reference_levels = {} if reference_levels is None else dict(reference_levels)

    @property
    def terms(self):
        return formula_terms(self.formula)

    def __repr__(self):
        return "<DifferentialDesign %s features x %s samples, formula='%s'>" % (self.counts.shape[0],
                                                                                self.counts.shape[1],
                                                                                self.formula)


def formula_terms(formula):
    """Extract variable names from an R-style design formula

    Examples
    --------
    >>> formula_terms("~ subgroup + myc_status")
    ['subgroup', 'myc_status']

    >>> formula_terms("~0 + sample_type:subgroup")
    ['sample_type', 'subgroup']

    Parameters
    ----------
    formula : str

    Returns
    -------
    list
        Unique variable names, in order of appearance
    """
    formula = formula.strip()
    if not formula.startswith("~"):
        raise ValueError("Design formula must start with '~'. Got '%s'" % formula)

    ltmp = []
    for token in re.split(r"[+*:]",formula[1:]):
        token = token.strip()
        if token in ("","0","1"):
            continue
        if re.match(r"^[A-Za-z.][A-Za-z0-9._]*$",token) is None:
            raise ValueError("Cannot parse term '%s' in design formula '%s'" % (token,formula))
        if token not in ltmp:
            ltmp.append(token)

    if len(ltmp) == 0:
        raise ValueError("Design formula '%s' names no variables" % formula)

    return ltmp

def prepare_design(counts,metadata,formula,sample_column="sample_id",reference_levels=None,printer=None):
    """Align a raw count matrix with sample metadata for differential testing

    Parameters
    ----------
    counts : :class:`pandas.DataFrame`
        Feature x sample raw counts. Real-valued counts (e.g. from Salmon)
        are rounded to integers.

    metadata : :class:`pandas.DataFrame`
        Sample table, with one row per sample

    formula : str
        R-style design formula. Every variable must be a column of `metadata`

    sample_column : str, optional
        Column of `metadata` holding sample IDs (Default: `'sample_id'`)

    reference_levels : dict, optional
        Variable -> reference level

    printer : file-like, optional
        Logger implementing ``write()``

    Returns
    -------
    |DifferentialDesign|

    Raises
    ------
    SchemaMismatch
        If formula variables are absent from `metadata`, or if count
        columns are absent from its sample IDs

    DuplicateSampleMapping
        If sample IDs in `metadata` are not unique
    """
    printer = NullWriter() if printer is None else printer
    reference_levels = {} if reference_levels is None else dict(reference_levels)

    terms = formula_terms(formula)
    require_columns(metadata,[sample_column] + terms,"metadata")
    unknown_refs = [X for X in reference_levels if X not in terms]
    if len(unknown_refs) > 0:
        raise ValueError("Reference levels given for variables not in design formula: %s" % ", ".join(unknown_refs))

    sample_ids = metadata[sample_column].astype(str)
    dupes = sample_ids[sample_ids.duplicated(keep=False)]
    if len(dupes) > 0:
        raise DuplicateSampleMapping({ K : ["row %s" % X for X in dupes.index[dupes == K]] for K in set(dupes) })

    meta = metadata.copy()
    meta.index = sample_ids
    samples = [str(X) for X in counts.columns]
    missing = [X for X in samples if X not in meta.index]
    if len(missing) > 0:
        raise SchemaMismatch("metadata",missing,kind="sample")

    unused = list(meta.index[~meta.index.isin(samples)])
    if len(unused) > 0:
        printer.write("Ignoring %s metadata sample(s) absent from count matrix: %s" % (len(unused),", ".join(unused)))

    coldata = meta.loc[samples,terms].copy()
    coldata.index.name = sample_column
    incomplete = list(coldata.index[coldata.isna().any(axis=1)])
    if len(incomplete) > 0:
        raise ValueError("Sample(s) lack values for design variables: %s" % ", ".join(incomplete))

    for term, level in reference_levels.items():
        levels = list(pd.unique(coldata[term].astype(str)))
        if level not in levels:
            raise ValueError("Reference level '%s' not found in variable '%s' (levels: %s)" % (level,term,", ".join(levels)))
        coldata[term] = pd.Categorical(coldata[term].astype(str),
                                       categories=[level] + [X for X in levels if X != level])

    check_count_matrix(counts,"counts")
    int_counts = counts.copy()
    int_counts.columns = samples
    rounded = int_counts.round()
    if not (rounded == int_counts).all().all():
        msg = "Rounding real-valued counts to integers for differential testing."
        printer.write(msg)
        warn(msg,DataWarning)
    int_counts = rounded.astype(int)
    int_counts.index.name = FEATURE_INDEX_NAME

    printer.write("Prepared design '%s' for %s features x %s samples." % (formula,int_counts.shape[0],int_counts.shape[1]))
    return DifferentialDesign(int_counts,coldata,formula,reference_levels)

def design_filenames(outbase):
    """Return the names of files written by :func:`write_inputs` for `outbase`"""
    return ["%s_counts.csv" % outbase,"%s_coldata.csv" % outbase,"%s_design.txt" % outbase]

def write_inputs(design,outbase):
    """Write a |DifferentialDesign| as plain files for an external engine

    Three files are written:

        ======================   ===================================================
        **File**                 **Contents**
        ----------------------   ---------------------------------------------------
        `OUTBASE_counts.csv`     integer count matrix, features as rows
        `OUTBASE_coldata.csv`    sample table, samples as rows in count-column order
        `OUTBASE_design.txt`     formula on the first line, then one line
                                 `variable<tab>reference_level` per reference level
        ======================   ===================================================

    The files carry no comment header, so that they can be read by engines
    that do not skip comments.

    Parameters
    ----------
    design : |DifferentialDesign|

    outbase : str
        Prefix for output files

    Returns
    -------
    list
        Names of written files
    """
    counts_file, coldata_file, design_file = design_filenames(outbase)
    design.counts.to_csv(counts_file,index_label=FEATURE_INDEX_NAME)
    design.coldata.to_csv(coldata_file,index_label=design.coldata.index.name)
    with open(design_file,"w") as fout:
        fout.write("%s\n" % design.formula)
        for term, level in sorted(design.reference_levels.items()):
            fout.write("%s\t%s\n" % (term,level))

    return [counts_file,coldata_file,design_file]

def validate_results(results,name="results"):
    """Check that a result table has the required columns and unique feature keys

    Parameters
    ----------
    results : :class:`pandas.DataFrame`

    name : str, optional
        Name of table, used in error messages

    Returns
    -------
    :class:`pandas.DataFrame`
        `results`, with its index cast to str
    """
    require_columns(results,RESULT_COLUMNS,name)
    results = results.copy()
    results.index = results.index.astype(str)
    results.index.name = FEATURE_INDEX_NAME
    check_unique = results.index[results.index.duplicated()]
    if len(check_unique) > 0:
        raise ValueError("Result table '%s' has duplicate feature keys: %s" % (name,", ".join(check_unique[:10])))
    return results

def read_results(filename,**kwargs):
    """Read a differential-expression result table

    Parameters
    ----------
    filename : str
        Comma- or tab-delimited file, with feature keys in the first column

    kwargs : keyword arguments
        Passed to :func:`pandas.read_csv`

    Returns
    -------
    :class:`pandas.DataFrame`

    Raises
    ------
    SchemaMismatch
        If any of :data:`RESULT_COLUMNS` is absent
    """
    args = { "sep"       : guess_separator(filename),
             "comment"   : "#",
             "index_col" : 0,
           }
    args.update(kwargs)
    return validate_results(pd.read_csv(filename,**args),name=filename)

def read_normalized_counts(filename,**kwargs):
    """Read an engine-normalized count matrix

    Parameters
    ----------
    filename : str

    kwargs : keyword arguments
        Passed to :func:`pandas.read_csv`

    Returns
    -------
    :class:`pandas.DataFrame`
    """
    args = { "sep"       : guess_separator(filename),
             "comment"   : "#",
             "index_col" : 0,
           }
    args.update(kwargs)
    counts = pd.read_csv(filename,**args)
    counts.index = counts.index.astype(str)
    counts.index.name = FEATURE_INDEX_NAME
    check_count_matrix(counts,filename)
    return counts

def run_engine(design,engine,printer=None):
    """Run a differential-expression engine implemented as a Python callable

    Parameters
    ----------
    design : |DifferentialDesign|

    engine : callable
        Called as ``engine(counts, coldata, formula, reference_levels)``;
        must return a :class:`pandas.DataFrame` indexed by feature with
        the columns in :data:`RESULT_COLUMNS`

    printer : file-like, optional
        Logger implementing ``write()``

    Returns
    -------
    :class:`pandas.DataFrame`
        Validated result table

    Raises
    ------
    SchemaMismatch
        If the engine's result lacks required columns, or reports features
        that are not in the count matrix
    """
    printer = NullWriter() if printer is None else printer
    printer.write("Running differential engine on %s features x %s samples..." % design.counts.shape)
    results = engine(design.counts,design.coldata,design.formula,design.reference_levels)
    if not isinstance(results,pd.DataFrame):
        raise TypeError("Differential engine must return a pandas.DataFrame. Got %s" % type(results).__name__)

    results = validate_results(results,name="engine results")
    unknown = list(results.index[~results.index.isin(design.counts.index.astype(str))])
    if len(unknown) > 0:
        raise SchemaMismatch("count matrix",unknown,kind="feature")

    printer.write("Engine reported %s features." % len(results))
    return results

def ranked_statistic(results,column="stat"):
    """Rank features by a result statistic, for gene-set enrichment

    Parameters
    ----------
    results : :class:`pandas.DataFrame`
        Validated result table

    column : str, optional
        Column to rank by (Default: `'stat'`, the Wald statistic). Use
        `'signed_p'` to rank by `sign(log2FoldChange) * -log10(pvalue)`

    Returns
    -------
    :class:`pandas.Series`
        Statistic indexed by feature, sorted in decreasing order,
        with features lacking a value removed
    """
    if column == "signed_p":
        require_columns(results,["log2FoldChange","pvalue"],"results")
        stat = numpy.sign(results["log2FoldChange"]) * -numpy.log10(results["pvalue"])
        stat.name = column
    else:
        require_columns(results,[column],"results")
        stat = results[column].copy()

    stat = stat.replace([numpy.inf,-numpy.inf],numpy.nan).dropna()
    return stat.sort_values(ascending=False,kind="mergesort")
