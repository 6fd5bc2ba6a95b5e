#!/usr/bin/env python
"""Various wrappers and utilities for opening, closing, and writing files.

Important methods
-----------------
:py:func:`argsopener`
    Opens a file for writing within a command-line script and writes to it
    all command-line arguments as a pretty-printed dictionary of metadata,
    commented out. The open file handle is then returned for subsequent
    writing

:py:func:`read_matrix`
    Open a feature x sample matrix saved by one of :data:`translatome`'s
    command-line scripts into a :class:`pandas.DataFrame`, indexed by feature

:py:func:`write_matrix`
    Write a feature x sample matrix via :py:func:`argsopener`

:py:func:`opener`
    Guesses whether a file is bzipped, gzipped, or uncompressed based upon
    file extension, opens it appropriately, and returns a file-like object.

:py:func:`outputs_exist`
    Test whether every output of a pipeline stage is already on disk, so that
    re-running a stage can skip completed work

:py:func:`NullWriter`
    Returns an open filehandle to the system's null location.
"""
import sys
import os
import datetime
import pandas as pd
from translatome.util.io.filters import AbstractWriter

FEATURE_INDEX_NAME = "feature_id"
"""Name given to the row index of every matrix written by :data:`translatome`"""


class NullWriter(AbstractWriter):
    """Writes to system-dependent null location.
    On Unix-like systems & OSX, this is typically /dev/null. On Windows, simply "nul"
    """

    def __init__(self):
        self.stream = open(os.devnull,"w")

    def filter(self,stream):
        return stream

    def __repr__(self):
        return "NullWriter()"


def opener(filename,mode="r",**kwargs):
    """Open a file, detecting whether it is compressed or not, based upon
    its file extension:

       +----------------+------------------+
       | File ends with | Presumed to be   |
       +================+==================+
       | gz             |    gzipped       |
       +----------------+------------------+
       | bz2            |    bzipped       |
       +----------------+------------------+
       | anything else  |    uncompressed  |
       +----------------+------------------+

    Compressed files are opened in text mode unless `mode` contains `"b"`.

    Parameters
    ----------
    filename : str
        Name of file to open

    mode : str
        Mode in which to open file (e.g. "r", "a, "w" with or without "b")

    **kwargs
        Other parameters to pass to appropriate file opener
    """
    if filename.endswith(".gz"):
        import gzip
        if "b" not in mode and "t" not in mode:
            mode += "t"
        call_func = gzip.open
    elif filename.endswith(".bz2"):
        import bz2
        if "b" not in mode and "t" not in mode:
            mode += "t"
        call_func = bz2.open
    else:
        call_func = open

    return call_func(filename,mode,**kwargs)

def guess_separator(filename):
    """Guess the delimiter of a table from its file extension.
    Files ending in `.csv` (optionally compressed) are comma-delimited;
    everything else is taken to be tab-delimited.

    Parameters
    ----------
    filename : str

    Returns
    -------
    str
    """
    stem = filename
    for ext in (".gz",".bz2"):
        if stem.endswith(ext):
            stem = stem[:-len(ext)]
    return "," if stem.lower().endswith(".csv") else "\t"

def read_matrix(filename,**kwargs):
    """Open a feature x sample matrix saved by one of :data:`translatome`'s
    command-line scripts, passing default arguments to :func:`pandas.read_csv`:

        ==========   ===========================================
        Key          Value
        ----------   -------------------------------------------
        sep          guessed from extension (see :func:`guess_separator`)
        comment      `"#"`
        index_col    `0`
        header       `0`
        ==========   ===========================================

    Parameters
    ----------
    filename : str
        Name of file. Can be gzipped or bzipped.

    kwargs : keyword arguments
        Other keyword arguments to pass to :func:`pandas.read_csv`.
        Will override defaults.

    Returns
    -------
    :class:`pandas.DataFrame`
        Matrix, indexed by feature ID, with sample IDs as columns
    """
    args = { "sep"       : guess_separator(filename),
             "comment"   : "#",
             "index_col" : 0,
             "header"    : 0,
           }
    args.update(kwargs)
    table = pd.read_csv(filename,**args)
    table.index = table.index.astype(str)
    table.index.name = FEATURE_INDEX_NAME
    return table

def write_matrix(matrix,filename,namespace,float_format="%.8g"):
    """Write a feature x sample matrix, preceded by a comment header
    describing the command-line arguments that created it

    Parameters
    ----------
    matrix : :class:`pandas.DataFrame` or :class:`pandas.Series`
        Matrix indexed by feature

    filename : str
        Output filename. Delimiter is guessed from the extension.

    namespace : :py:class:`argparse.Namespace`
        Command-line arguments to record in the header
    """
    with argsopener(filename,namespace) as fout:
        matrix.to_csv(fout,
                      sep=guess_separator(filename),
                      header=True,
                      index=True,
                      index_label=FEATURE_INDEX_NAME,
                      na_rep="nan",
                      float_format=float_format)

def outputs_exist(filenames):
    """Return `True` if every file in `filenames` exists and is non-empty.
    Used by command-line scripts to skip stages whose results are already
    on disk.

    Parameters
    ----------
    filenames : list of str

    Returns
    -------
    bool
    """
    if len(filenames) == 0:
        return False
    return all(os.path.isfile(X) and os.path.getsize(X) > 0 for X in filenames)

def get_short_name(inpt,separator=os.path.sep,terminator=""):
    """Gives the basename of a filename or module name passed as a string.
    If the string doesn't match the pattern specified by the separator
    and terminator, it is returned unchanged.

    Examples
    --------
    >>> get_short_name("test")
    'test'

    >>> get_short_name("/home/jdoe/te.py",terminator=".py")
    'te'

    >>> get_short_name("translatome.bin.te",separator=r"\\.",terminator="")
    'te'

    Parameters
    ----------
    inpt : str
        Input

    terminator : str
        File terminator (default: "")

    Returns
    -------
    str
    """
    import re
    tlen = len(terminator)
    if tlen > 0 and inpt[-tlen:] == terminator:
        inpt = inpt[:-tlen]

    pat = r"([^%s]+)+$" % separator
    try:
        stmp = re.search(pat,inpt).group(1)
    except AttributeError:
        return inpt

    return stmp

def argsopener(filename,namespace,mode="w",**kwargs):
    """Open a file for writing, and write to it command-line arguments
    formatted as a pretty-printed dictionary in comment metadata.

    Parameters
    ----------
    filename : str
        Name of file to open. If it terminates in `'.gz'` or `'.bz2'`
        the filehandle will write to a gzipped or bzipped file

    namespace : :py:class:`argparse.Namespace`
        Namespace object from argparse.ArgumentParser

    mode : str
        Mode of writing (`'w'` or `'wb'`)

    **kwargs
        Other keyword arguments to pass to file opener

    Returns
    -------
    open filehandle
    """
    if "w" not in mode:
        mode += "w"
    fout = opener(filename,mode,**kwargs)
    fout.write(args_to_comment(namespace))
    return fout

def args_to_comment(namespace):
    """Formats a :class:`argparse.Namespace` into a comment block
    useful for printing in headers of output files

    Parameters
    ----------
    namespace  : :py:class:`argparse.Namespace`
        Namespace object returned by argparse.ArgumentParser

    Returns
    -------
    string
    """
    dtmp = vars(namespace)
    ltmp = ["## date = '%s'" % datetime.datetime.today(),
            "## execstr = '%s'" % " ".join(sys.argv)
            ]
    ltmp.append("## args = {  ")
    ltmp2 = pretty_print_dict(dtmp).split("\n")[1:-2]
    for i in range(len(ltmp2)):
        ltmp2[i] = "##" + ltmp2[i]
    sout = "\n".join(ltmp) + "\n" + ",\n".join(ltmp2) + "\n##        }\n"
    return sout

def pretty_print_dict(dtmp):
    """Pretty prints an un-nested dictionary

    Parameters
    ----------
    dtmp : dict

    Returns
    -------
    str
        pretty-printed dictionary
    """
    if len(dtmp) == 0:
        return "{\n\n}\n"

    ltmp = []
    maxlen = 2 + max([len(K) for K in dtmp])
    for k,v in sorted(dtmp.items(),key=lambda x: x[0]):
        if isinstance(v,str):
            v = "'%s'" % v
        new_k = "'%s'" % k
        stmp = ("          {0:<%s} : {1}," % maxlen).format(new_k,v)
        ltmp.append(stmp)
    sout = "\n".join(ltmp)
    return "{\n%s\n}\n" % sout
