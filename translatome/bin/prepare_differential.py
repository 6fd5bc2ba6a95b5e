#!/usr/bin/env python
"""Package a count matrix, sample metadata and a design formula for an
external differential-expression engine, and rank the engine's results.

The count matrix is checked against the metadata: every sample column must
be a sample in the metadata, and every variable in the design formula a
metadata column. Real-valued counts are rounded to integers. Metadata rows
are reordered to match the count columns.

Output files
------------
    OUTBASE_counts.csv
        Integer count matrix

    OUTBASE_coldata.csv
        Sample table, in count-column order, with the design variables

    OUTBASE_design.txt
        Design formula, followed by one `variable<tab>reference` line per
        reference level

    OUTBASE_ranked.txt
        Only with `--rank_results`: features ranked by a statistic from the
        engine's result table, for gene-set enrichment

If the outputs exist, nothing is done unless `--force` is given.
"""
import argparse
import inspect
import sys

from translatome.quant.differential import prepare_design, write_inputs, design_filenames,\
                                           read_results, ranked_statistic
from translatome.util.io.filters import NameDateWriter
from translatome.util.io.openers import get_short_name, read_matrix, write_matrix, outputs_exist
from translatome.util.scriptlib.argparsers import BaseParser, MetadataParser, parse_key_value_pairs
from translatome.util.scriptlib.help_formatters import format_module_docstring

printer = NameDateWriter(get_short_name(inspect.stack()[-1][1]))


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
    mp = MetadataParser()
    parser = argparse.ArgumentParser(description=format_module_docstring(__doc__),
                                     formatter_class=argparse.RawDescriptionHelpFormatter,
                                     parents=[bp.get_parser(),mp.get_parser()])
    parser.add_argument("--design",type=str,required=True,metavar="FORMULA",
                        help="Design formula, e.g. '~ subgroup'")
    parser.add_argument("--reference",type=str,nargs="+",default=[],metavar="VARIABLE=LEVEL",
                        help="Reference level for a design variable, e.g. 'subgroup=WNT'")
    parser.add_argument("--rank_results",type=str,default=None,metavar="FILE",
                        help="Result table from the engine. If given, features are ranked and written to OUTBASE_ranked.txt")
    parser.add_argument("--rank_by",type=str,default="stat",
                        help="Result column to rank by, or 'signed_p' for sign(log2FoldChange) * -log10(pvalue) (Default: stat)")
    parser.add_argument("counts",type=str,help="Raw count matrix, as written by assemble_counts")
    parser.add_argument("outbase",type=str,help="Basename for output files")
    args = parser.parse_args(argv)
    bp.get_base_ops_from_args(args)

    outfiles = design_filenames(args.outbase)
    ranked_file = "%s_ranked.txt" % args.outbase
    if args.rank_results is not None:
        outfiles.append(ranked_file)

    if outputs_exist(outfiles) and not args.force:
        printer.write("Outputs for '%s' exist. Skipping. Use --force to recompute." % args.outbase)
        return

    reference_levels = parse_key_value_pairs(args.reference,what="reference level")
    metadata = mp.get_metadata_from_args(args,printer=printer)
    counts   = read_matrix(args.counts)
    printer.write("Read %s features x %s samples from '%s'." % (counts.shape[0],counts.shape[1],args.counts))

    design = prepare_design(counts,metadata,args.design,reference_levels=reference_levels,printer=printer)
    for filename in write_inputs(design,args.outbase):
        printer.write("Wrote '%s'." % filename)

    if args.rank_results is not None:
        results = read_results(args.rank_results)
        ranked  = ranked_statistic(results,column=args.rank_by)
        printer.write("Ranked %s of %s features by '%s'. Writing to '%s'..." % (len(ranked),len(results),args.rank_by,ranked_file))
        write_matrix(ranked,ranked_file,args)

    printer.write("Done.")

if __name__ == "__main__":
    main()
