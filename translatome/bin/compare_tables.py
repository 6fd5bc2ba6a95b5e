#!/usr/bin/env python
"""Test whether two tables written by :data:`translatome` contain equivalent data.

Rows and columns need not be in the same order: both tables are sorted by
feature key and column name before comparison. Numeric values must agree
within a tolerance. `NaN` and `inf` values are equal if and only if they
occur in the same cells. Columns may be excluded by name.

Exit status is 0 if tables are equivalent, 1 otherwise.
"""
import argparse
import inspect
import sys

import numpy

from translatome.util.io.filters import NameDateWriter
from translatome.util.io.openers import get_short_name, read_matrix, NullWriter
from translatome.util.scriptlib.help_formatters import format_module_docstring

printer = NameDateWriter(get_short_name(inspect.stack()[-1][1]))

_NUMERIC_DTYPES = "biuf"


def equal_enough(col1,col2,tol=1e-8,printer=None):
    """Compare two columns of data

    Numeric columns are equal if all finite values differ by at most `tol`,
    and `NaN` and `inf` values (with sign) occur in the same places.
    Other columns are equal if all values are identical.

    Parameters
    ----------
    col1, col2 : :class:`numpy.ndarray`
        Columns of data, in corresponding order

    tol : float, optional
        Error tolerance for numeric data

    printer : file-like, optional
        Logger implementing ``write()``, to which differences are reported

    Returns
    -------
    bool
    """
    printer = NullWriter() if printer is None else printer
    numeric1 = col1.dtype.kind in _NUMERIC_DTYPES
    numeric2 = col2.dtype.kind in _NUMERIC_DTYPES

    if numeric1 and numeric2:
        col1 = col1.astype(float)
        col2 = col2.astype(float)
        nan1 = numpy.isnan(col1)
        nan2 = numpy.isnan(col2)
        inf1 = numpy.isinf(col1)
        inf2 = numpy.isinf(col2)

        nan_test  = (nan1 == nan2).all()
        inf_test  = (inf1 == inf2).all() and (col1[inf1] == col2[inf1]).all()
        finite    = ~nan1 & ~inf1 & ~nan2 & ~inf2
        diff_test = (abs(col1[finite] - col2[finite]) <= tol).all()

        if not nan_test:
            printer.write("Failed nan test")
        if not inf_test:
            printer.write("Failed inf test")
        if not diff_test:
            printer.write("Failed tolerance test")

        return bool(nan_test and inf_test and diff_test)
    elif not numeric1 and not numeric2:
        diff_test = col1.astype(str) == col2.astype(str)
        if not diff_test.all():
            ltmp = ["%s,%s" % (val1,val2) for val1,val2 in zip(col1[~diff_test],col2[~diff_test])]
            printer.write("Differences:\n%s" % "\n".join(ltmp))
        return bool(diff_test.all())

    printer.write("Column types differ: %s vs %s" % (col1.dtype,col2.dtype))
    return False

def compare_tables(df1,df2,tol=1e-8,printer=None):
    """Test equivalence of two tables, ignoring row and column order

    Parameters
    ----------
    df1, df2 : :class:`pandas.DataFrame`
        Tables indexed by feature key

    tol : float, optional
        Maximum tolerated difference between numbers (Default: `1e-8`)

    printer : file-like, optional
        Logger implementing ``write()``

    Returns
    -------
    bool
        `True` if tables are equivalent

    list
        Messages explaining how `df1` and `df2` differ
    """
    printer  = NullWriter() if printer is None else printer
    failures = []

    keys1 = set(df1.columns)
    keys2 = set(df2.columns)
    if keys1 != keys2:
        failures.extend(["Tables contain different columns (unique keys shown below):",
                         "    1: %s" % ", ".join(str(X) for X in sorted(keys1 - keys2)),
                         "    2: %s" % ", ".join(str(X) for X in sorted(keys2 - keys1))])

    rows1 = set(df1.index)
    rows2 = set(df2.index)
    if rows1 != rows2 or len(df1) != len(df2):
        failures.extend(["Tables contain different rows:",
                         "    1: %s rows, %s unique to table" % (len(df1),len(rows1 - rows2)),
                         "    2: %s rows, %s unique to table" % (len(df2),len(rows2 - rows1))])

    if len(failures) == 0:
        df1 = df1.sort_index(axis=0).sort_index(axis=1)
        df2 = df2.sort_index(axis=0).sort_index(axis=1)
        unequal = []
        for k in df1.columns:
            if not equal_enough(df1[k].values,df2[k].values,tol=tol,printer=printer):
                unequal.append(k)

        if len(unequal) > 0:
            failures.append("Column values are unequal for columns: %s" % ", ".join(str(X) for X in sorted(unequal)))

    for msg in failures:
        printer.write(msg)

    return len(failures) == 0, failures

def main(argv=sys.argv[1:]):
    """Command-line program

    Parameters
    ----------
    argv : list, optional
        A list of command-line arguments, which will be processed
        as if the script were called from the command line if
        :func:`main` is called directly.

        Default: `sys.argv[1:]`. The command-line arguments, if the script is
        invoked from the command line

    Returns
    -------
    int
        `0` if tables are equivalent, `1` otherwise
    """
    parser = argparse.ArgumentParser(description=format_module_docstring(__doc__),
                                     formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("file1",type=str)
    parser.add_argument("file2",type=str)
    parser.add_argument("--exclude",type=str,default=[],nargs="+",metavar="COLUMN",
                        help="Columns to exclude from comparison")
    parser.add_argument("--tol",type=float,default=1e-8,
                        help="Tolerance by which numbers may differ (Default: 1e-8)")
    args = parser.parse_args(argv)

    df1 = read_matrix(args.file1)
    df2 = read_matrix(args.file2)

    if len(args.exclude) > 0:
        printer.write("Excluding columns: %s" % ", ".join(args.exclude))
        df1 = df1.drop(columns=[X for X in args.exclude if X in df1.columns])
        df2 = df2.drop(columns=[X for X in args.exclude if X in df2.columns])

    equivalent, _ = compare_tables(df1,df2,tol=args.tol,printer=printer)
    if equivalent:
        printer.write("Files contain equivalent data.")
        return 0

    printer.write("Files non-equivalent.")
    return 1

if __name__ == "__main__":
    sys.exit(main())
