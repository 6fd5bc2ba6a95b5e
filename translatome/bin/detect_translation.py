#!/usr/bin/env python
"""Classify features as translated (or expressed) by abundance threshold and sample support.

A feature is detected in a sample if its abundance (PPM or TPM) is greater
than `--detection_threshold`, and detected overall if it is detected in at
least `--min_samples` samples. With `--calibrate`, the threshold is instead
estimated as the density minimum between the two modes of log2 abundance,
and reported.

Features may be labeled with categories (e.g. ORF class or biotype) from a
feature table, to summarize detection per category.

Output files
------------
    OUTBASE_detection.txt
        One row per feature, with columns `support` (number of samples above
        threshold), `category`, and `detected`

    OUTBASE_detection_summary.txt
        Detected and total features per category

If both exist, nothing is done unless `--force` is given.
"""
import argparse
import inspect
import sys

from translatome.quant.detection import detect_translation, detection_summary, calibrate_threshold
from translatome.util.io.filters import NameDateWriter
from translatome.util.io.openers import argsopener, get_short_name, read_matrix, write_matrix,\
                                        outputs_exist
from translatome.util.scriptlib.argparsers import BaseParser, ConfigParser
from translatome.util.scriptlib.help_formatters import format_module_docstring

printer = NameDateWriter(get_short_name(inspect.stack()[-1][1]))


def read_categories(filename,column=None):
    """Read feature categories from a feature table

    Parameters
    ----------
    filename : str
        Table with feature keys in the first column

    column : str, optional
        Column holding categories. If `None`, the first data column is used

    Returns
    -------
    :class:`pandas.Series`
    """
    table = read_matrix(filename)
    if column is None:
        return table.iloc[:,0].astype(str)
    if column not in table.columns:
        raise ValueError("Column '%s' not found in feature table '%s'. Found: %s" % (column,filename,", ".join(table.columns)))
    return table[column].astype(str)

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
    """
    bp = BaseParser()
    cp = ConfigParser(granularity="orf",
                      disabled=["min_mean_count","pseudocount","centering","canonical_suffix",
                                "ambiguity_policy","allow_shared_samples"])

    parser = argparse.ArgumentParser(description=format_module_docstring(__doc__),
                                     formatter_class=argparse.RawDescriptionHelpFormatter,
                                     parents=[bp.get_parser(),cp.get_parser()])
    parser.add_argument("--categories",type=str,default=None,metavar="FILE",
                        help="Feature table with feature keys in the first column, giving a category for each feature")
    parser.add_argument("--category_column",type=str,default=None,metavar="COLUMN",
                        help="Column of feature table holding categories (Default: first column after keys)")
    parser.add_argument("--calibrate",default=False,action="store_true",
                        help="Estimate the threshold from the density of log2 abundance, instead of using --detection_threshold")
    parser.add_argument("abundance",type=str,help="Abundance matrix (PPM or TPM), as written by normalize_counts")
    parser.add_argument("outbase",type=str,help="Basename for output files")
    args = parser.parse_args(argv)
    bp.get_base_ops_from_args(args)

    outfiles = ["%s_detection.txt" % args.outbase,"%s_detection_summary.txt" % args.outbase]
    if outputs_exist(outfiles) and not args.force:
        printer.write("Outputs for '%s' exist. Skipping. Use --force to recompute." % args.outbase)
        return

    config = cp.get_config_from_args(args,printer=printer)
    abundance = read_matrix(args.abundance)
    printer.write("Read %s features x %s samples from '%s'." % (abundance.shape[0],abundance.shape[1],args.abundance))

    threshold = config.detection_threshold
    if args.calibrate:
        threshold = calibrate_threshold(abundance)
        printer.write("Estimated detection threshold from density minimum: %.4g" % threshold)

    categories = None
    if args.categories is not None:
        categories = read_categories(args.categories,args.category_column)

    result = detect_translation(abundance,config=config,threshold=threshold,categories=categories)
    printer.write("Detected %s of %s features (threshold %.4g, in >= %s samples)." % (len(result),len(result.table),
                                                                                     threshold,result.min_samples))

    write_matrix(result.table,outfiles[0],args)
    with argsopener(outfiles[1],args,"w") as fout:
        detection_summary(result).to_csv(fout,sep="\t",header=True,index=True,float_format="%.6g")

    printer.write("Done.")

if __name__ == "__main__":
    main()
