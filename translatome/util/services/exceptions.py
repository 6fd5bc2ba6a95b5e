#!/usr/bin/env python
"""This module contains custom exception and warning classes, implements
a custom warning filter action, called `"onceperfamily"`, and monkey-patches
warning output to improve legibility.

Contents:

.. contents::
   :local:

Exception types
---------------
All conditions that must halt a pipeline stage derive from |TranslatomeError|.
Each carries a message naming the offending sample(s), feature(s), or matrix.

|ReconciliationAmbiguous|
    A candidate identifier matched more than one metadata row, and the
    reconciliation policy does not permit choosing one

|DuplicateSampleMapping|
    Reconciliation resolved two or more candidates (or metadata rows) to
    the same sample ID, without permission to merge them

|SchemaMismatch|
    Expected columns are absent from an input table

|DuplicateFeatureKeys|
    Feature keys are not unique after merging matrices. Subclass of
    |SchemaMismatch|

|ColumnSetMismatch|
    Matrices that must be combined disagree on their sample columns

|DegenerateSample|
    A sample sums to zero, so its per-million scaling factor is undefined

|FeatureSetEmpty|
    No features survive cross-matrix intersection and filtering

|MalformedFileError|
    Raised when a file cannot be parsed as expected


Warning types
-------------
|ArgumentWarning|
    Warning for command-line arguments that are nonsensical, but recoverable

|DataWarning|
    Warning raised when data has unexpected but recoverable attributes,
    e.g. candidate identifiers that match no metadata row, or features
    without a length


The `onceperfamily` action
--------------------------
`onceperfamily` groups warning messages by families regular expressions,
and only prints the first warning instance that matches a given family's
regular expression. In contrast, Python's native `once` action prints any string
literal once, even if it matches the same regex as another warning already given.

To use this action, use :func:`filterwarnings` to create the filter, and
:func:`warn` to issue warnings.


See also
--------
:mod:`warnings`
    Warnings module
"""
import re
import warnings
import inspect
import linecache
import textwrap
from translatome.util.io.filters import colored

_wrapper = textwrap.TextWrapper(break_long_words=False,width=77)


#===============================================================================
# INDEX: Exception classes
#===============================================================================

class TranslatomeError(Exception):
    """Base class for conditions that must abort a pipeline stage"""
    pass


class ReconciliationAmbiguous(TranslatomeError):
    """A candidate identifier matched more than one metadata row

    Parameters
    ----------
    candidate : str
        Candidate identifier

    sample_ids : list
        Sample IDs of all metadata rows matched by `candidate`
    """

    def __init__(self,candidate,sample_ids):
        self.candidate  = candidate
        self.sample_ids = list(sample_ids)
        TranslatomeError.__init__(self,str(self))

    def __str__(self):
        return "Candidate '%s' matches %s metadata rows (samples: %s)" % (self.candidate,
                                                                           len(self.sample_ids),
                                                                           ", ".join(str(X) for X in self.sample_ids))


class DuplicateSampleMapping(TranslatomeError):
    """Reconciliation is not one-to-one

    Parameters
    ----------
    duplicates : dict
        Dictionary mapping each over-subscribed sample ID to the list of
        candidates (or metadata rows) that resolved to it
    """

    def __init__(self,duplicates):
        self.duplicates = dict(duplicates)
        TranslatomeError.__init__(self,str(self))

    def __str__(self):
        ltmp = ["%s <- %s" % (K,", ".join(str(X) for X in V)) for K,V in sorted(self.duplicates.items(),key=lambda x: str(x[0]))]
        return "Multiple candidates map to the same sample ID: %s" % "; ".join(ltmp)


class SchemaMismatch(TranslatomeError):
    """Expected columns are absent from a table

    Parameters
    ----------
    table : str
        Name of table or file

    missing : list
        Names of missing columns

    found : list, optional
        Columns that were present

    kind : str, optional
        What is missing, if not columns (e.g. `"feature"`)
    """

    def __init__(self,table,missing,found=None,kind="column"):
        self.table   = table
        self.kind    = kind
        self.missing = list(missing)
        self.found   = None if found is None else list(found)
        TranslatomeError.__init__(self,str(self))

    def __str__(self):
        msg = "Table '%s' lacks required %s(s): %s" % (self.table,self.kind,", ".join(str(X) for X in self.missing))
        if self.found is not None:
            msg += ". Found: %s" % ", ".join(str(X) for X in self.found)
        return msg


class DuplicateFeatureKeys(SchemaMismatch):
    """Feature keys are duplicated after merging matrices

    Parameters
    ----------
    table : str
        Name of merged matrix

    keys : list
        Duplicated feature keys
    """

    def __init__(self,table,keys):
        self.keys = list(keys)
        SchemaMismatch.__init__(self,table,[])

    def __str__(self):
        shown = ", ".join(str(X) for X in self.keys[:10])
        if len(self.keys) > 10:
            shown += ", ... (%s total)" % len(self.keys)
        return "Matrix '%s' contains duplicate feature keys: %s" % (self.table,shown)


class ColumnSetMismatch(TranslatomeError):
    """Sample columns differ between matrices that must be combined

    Parameters
    ----------
    name1, name2 : str
        Names of the two matrices

    only1, only2 : list
        Columns found only in the first and second matrix, respectively
    """

    def __init__(self,name1,name2,only1,only2):
        self.name1 = name1
        self.name2 = name2
        self.only1 = list(only1)
        self.only2 = list(only2)
        TranslatomeError.__init__(self,str(self))

    def __str__(self):
        return "Sample columns differ between '%s' and '%s'. Only in '%s': [%s]. Only in '%s': [%s]" % (
                self.name1,self.name2,
                self.name1,", ".join(str(X) for X in self.only1),
                self.name2,", ".join(str(X) for X in self.only2))


class DegenerateSample(TranslatomeError):
    """Per-million scaling factor is zero for one or more samples

    Parameters
    ----------
    samples : list
        Samples whose features sum to zero

    table : str, optional
        Name of matrix being normalized
    """

    def __init__(self,samples,table="matrix"):
        self.samples = list(samples)
        self.table   = table
        TranslatomeError.__init__(self,str(self))

    def __str__(self):
        return "Cannot normalize '%s': sample(s) %s have zero total counts over the retained features" % (
                self.table,", ".join(str(X) for X in self.samples))


class FeatureSetEmpty(TranslatomeError):
    """No features left to analyze

    Parameters
    ----------
    message : str
        Description of the filtering step that emptied the feature set
    """
    pass


class MalformedFileError(TranslatomeError):
    """Exception class for when files cannot be parsed as they should be

    Parameters
    ----------
    filename : str
        Name of file causing problem

    message : str
        Message explaining how the file is malformed.

    line_num : int or None, optional
        Number of line causing problems
    """

    def __init__(self,filename,message,line_num=None):
        self.filename = filename
        self.msg      = message
        self.line_num = line_num
        TranslatomeError.__init__(self,str(self))

    def __str__(self):
        if self.line_num is None:
            return "Error opening file '%s': %s" % (self.filename, self.msg)
        else:
            return "Error opening file '%s' at line %s: %s" % (self.filename, self.line_num, self.msg)


#===============================================================================
# INDEX: Warning classes
#===============================================================================

class ArgumentWarning(Warning):
    """Warning for nonsensical but recoverable combinations of command-line arguments"""
    pass


class DataWarning(Warning):
    """Warning for unexpected attributes of data.
    Raised when:

      - candidate identifiers match no metadata row and are dropped
      - features lack a length and are excluded from normalization
      - degenerate ratios are replaced by a fixed value
      - samples are excluded from an analysis
    """
    pass


#===============================================================================
# INDEX: Extensions to Python warnings
#===============================================================================

pl_once_registry = {}
"""Registry of `onceperfamily` warnings that have been seen in the current execution context"""

pl_filters       = []
"""Warnings filters that allow additional actions compared to Python's"""

def filterwarnings(action,message="",category=Warning,module="",lineno=0,append=0):
    """Insert an entry into the warnings filter. Behaviors are as in :func:`warnings.filterwarnings`,
    except the additional action `'onceperfamily'` can be used to allow one warning per `family`
    of messages, specified by a regex.

    Parameters
    ----------
    action : str
        How the warning should be filtered. Accceptable values are "error",
        "ignore", "always", "default", 'module", "once", and "onceperfamily"

    message : str, optional
        str that can be compiled to a regex, used to detect warnings.
        (Default: `""`, match any message)

    category : Warning or subclass, optional
        Type of warning. (Default: :class:`Warning`)

    module : str, optional
        str that can be compiled to a regex, limiting the warning behavior to modules
        that match that regex. (Default: `""`, match all modules)

    lineno : int, optional
        integer line used to specify warning in source code. If 0 (default), match
        all warnings regardless of line number.

    append : int, optional
        If 1, add warning to end of filter list. If 0 (default), insert warning at
        beginning of filters list.
    """
    tup = (action,re.compile(message,re.I),category,re.compile(module),lineno)
    if action == "onceperfamily":
        if tup in pl_filters:
            return
        if append == 1:
            pl_filters.append(tup)
        else:
            pl_filters.insert(0,tup)
    else:
        warnings.filterwarnings(action,message=message,
                                category=category,module=module,
                                lineno=lineno,append=append)

def warn_onceperfamily(message,pattern=None,category=None,stacklevel=1):
    """Issue a warning and create a `onceperfamily` filter for it if one does not already exist

    Parameters
    ----------
    message : str
        Message of warning. Printed as warning text and used to create warning
        filter if `pattern` is `None`.

    pattern : str or None, optional
        If not `None`, override message when generating warnings filter

    category: :class:`Warning`, or subclass, optional
        Type of warning

    stacklevel : int
        Frame from which warning is reported (1: caller)
    """
    if category is None:
        category = UserWarning
    if pattern is None:
        pattern = re.escape(message)
    filterwarnings("onceperfamily",message=pattern,category=category)
    warn(message,category=category,stacklevel=stacklevel+1)

def warn(message,category=None,stacklevel=1):
    """Issue a non-essential warning to users, allowing `onceperfamily` filters

    Parameters
    ----------
    message : str
        Message

    category: :class:`Warning`, or subclass, optional
        Type of warning

    stacklevel : int
        Frame from which warning is reported (1: caller)
    """
    if category is None:
        category = UserWarning

    stack = inspect.stack()
    frame = stack[min(stacklevel,len(stack)-1)]
    warn_explicit(message,category,frame.filename,frame.lineno,module=frame.filename)

def warn_explicit(message,category,filename,lineno,module=None,registry=None,module_globals=None):
    """Low-level interface to issue warnings, allowing `onceperfamily` filters

    Parameters
    ----------
    message : str
        Message

    category: :class:`Warning`, or subclass, optional
        Type of warning

    filename : str
        Name of module from which warning is issued

    lineno : int, optional
        Line in module at which warning is called

    module : str, optional
        Module name

    registry : dict, optional
        Registry of ignore filters (see :func:`warnings.warn_explicit`)

    module_globals : dict, optional
        Dictionary of module-level variables
    """
    if module is None:
        module = __name__

    for action, pat, filter_category, mod, filter_line in pl_filters:
        if pat.match(message) and issubclass(category,filter_category) and\
           mod.match(module) and\
           (filter_line == 0 or filter_line == lineno):

            tup = (pat.pattern,filter_category,mod.pattern,filter_line)
            if tup in pl_once_registry:
                return
            pl_once_registry[tup] = 1
            break

    warnings.warn_explicit(message,category,filename,lineno,
                           module=module,registry=registry,
                           module_globals=module_globals)


def formatwarning(message,category,filename,lineno,line=None):
    """Wrapper to colorize warnings for readability. Overrides :func:`warnings.formatwarning`

    Parameters
    ----------
    message : str
        Warning message

    category : Warning
        Class (not instance) of warning

    filename : str
        Name of file calling warning

    lineno : int
        Line in file calling warning

    line : str
        Text of line in file calling warning. If `None`, `line` is taken
        to be line number `lineno` of `filename`

    Returns
    -------
    str
        Pretty-printed warning message
    """
    sep     = colored("-"*75,color="cyan")
    message = str(message)
    if not "\n" in message:
        message = _wrapper.fill(message)

    message = colored(message,color="white",attrs=["bold"])
    name    = colored(category.__name__,color="cyan",attrs=["bold"])

    if line is None:
        numwidth = len(str(lineno+3))
        fmtstr   = "{0: >%ss} {1}" % (numwidth)
        lines    = []
        for x in range(max(0,lineno-2),lineno+3):
            tmpline = linecache.getline(filename,x).strip("\n")
            if tmpline:
                attrs = ["bold"] if x == lineno else []
                lines.append(fmtstr.format(colored(x,color="green",attrs=attrs),
                                           colored(tmpline,attrs=attrs)
                                           ))
        line = "\n".join(lines)

    filename = "in %s, line %s:" % (colored(filename,color="cyan"),lineno)

    ltmp = [sep,name,message,filename,"",line,"",sep,""]

    return "\n".join(ltmp)


warnings.formatwarning = formatwarning
