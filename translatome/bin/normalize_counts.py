#!/usr/bin/env python
"""Convert a count matrix to per-million abundance (TPM or PPM).

For each sample, counts are divided by feature length in kilobases, and the
resulting rates are divided by their sum over all features, in millions:

    rate      = count / (length / 1000)
    abundance = rate / (sum(rate) / 1e6)

Applied to RNA-seq counts this gives transcripts per million (TPM); applied
to ribosome P-site counts, P-sites per million (PPM). Features without a
usable length are excluded, and reported. A sample whose counts sum to zero
over the retained features is an error.

Scaling factors depend on the features supplied. Filtering features (with
`--min_mean_count`) therefore changes every abundance value.

Output is an abundance matrix in the layout of the input count matrix. If it
already exists, nothing is done unless `--force` is given.
"""
import argparse
import inspect
import sys

from translatome.quant.matrices import filter_min_mean
from translatome.quant.normalize import normalize_abundance
from translatome.util.io.filters import NameDateWriter
from translatome.util.io.openers import get_short_name, read_matrix, write_matrix, outputs_exist
from translatome.util.scriptlib.argparsers import BaseParser, read_lengths
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
    parser = argparse.ArgumentParser(description=format_module_docstring(__doc__),
                                     formatter_class=argparse.RawDescriptionHelpFormatter,
                                     parents=[bp.get_parser()])
    parser.add_argument("--kind",choices=("tpm","ppm"),default="tpm",
                        help="Label for the abundance unit, used in messages (Default: tpm)")
    parser.add_argument("--min_mean_count",type=float,default=None,metavar="N",
                        help="Before normalizing, keep only features with mean count greater than N (Default: keep all)")
    parser.add_argument("counts",type=str,help="Count matrix, as written by assemble_counts")
    parser.add_argument("lengths",type=str,help="Feature-length table, as written by assemble_counts")
    parser.add_argument("outfile",type=str,help="Output filename")
    args = parser.parse_args(argv)
    bp.get_base_ops_from_args(args)

    if outputs_exist([args.outfile]) and not args.force:
        printer.write("Output '%s' exists. Skipping. Use --force to recompute." % args.outfile)
        return

    counts  = read_matrix(args.counts)
    lengths = read_lengths(args.lengths)
    printer.write("Read %s features x %s samples from '%s'." % (counts.shape[0],counts.shape[1],args.counts))

    if args.min_mean_count is not None:
        counts = filter_min_mean(counts,args.min_mean_count)
        printer.write("Kept %s features with mean count > %s." % (len(counts),args.min_mean_count))

    abundance = normalize_abundance(counts,lengths,name=args.counts,printer=printer)
    printer.write("Computed %s for %s features. Writing to '%s'..." % (args.kind.upper(),len(abundance),args.outfile))
    write_matrix(abundance,args.outfile,args)

    printer.write("Done.")

if __name__ == "__main__":
    main()
