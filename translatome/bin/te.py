#!/usr/bin/env python
"""Compute translational efficiency (TE) from ribosome occupancy and transcript counts.

Features qualify if their mean raw count is greater than `--min_mean_count`
in both the ribosome profiling (`--ribo_counts`) and RNA-seq (`--rna_counts`)
matrices. Over the qualifying features, occupancy counts are normalized to
P-sites per million (PPM) and transcript counts to transcripts per million
(TPM). Then, for each feature and sample:

    te          = PPM / TPM
    te_log2     = log2(te + pseudocount)
    te_centered = te_log2, centered per feature (median, or mean and SD)

Where TPM is zero, TE is set to 0, whether or not there is occupancy. The
number of such values is reported.

With `--subsets`, TE is also computed separately over canonical features
(keys ending in `--canonical_suffix`) and non-canonical features. Each subset
is normalized independently, so TE values are not comparable between subsets.

Output files
------------
    OUTBASE_ppm.txt, OUTBASE_tpm.txt
        Abundance matrices over qualifying features

    OUTBASE_te.txt, OUTBASE_te_log2.txt, OUTBASE_te_centered.txt
        TE matrices

With `--subsets`, the same files are also written with basenames
`OUTBASE_canonical` and `OUTBASE_noncanonical`. If all outputs exist, nothing is
done unless `--force` is given.
"""
import argparse
import inspect
import sys

from translatome.quant.te import compute_te, te_subsets
from translatome.util.io.filters import NameDateWriter
from translatome.util.io.openers import get_short_name, write_matrix, outputs_exist
from translatome.util.scriptlib.argparsers import BaseParser, ConfigParser, MatrixParser
from translatome.util.scriptlib.help_formatters import format_module_docstring

printer = NameDateWriter(get_short_name(inspect.stack()[-1][1]))

OUTPUT_SUFFIXES = ["ppm","tpm","te","te_log2","te_centered"]


def output_names(outbase):
    """Return a dictionary mapping each of :data:`OUTPUT_SUFFIXES` to a filename"""
    return { K : "%s_%s.txt" % (outbase,K) for K in OUTPUT_SUFFIXES }

def write_result(result,outbase,args):
    """Write the matrices of a |TEResult| to files named by :func:`output_names`"""
    names = output_names(outbase)
    matrices = { "ppm"         : result.occupancy,
                 "tpm"         : result.transcript,
                 "te"          : result.raw,
                 "te_log2"     : result.log2,
                 "te_centered" : result.centered,
               }
    for key in OUTPUT_SUFFIXES:
        printer.write("Writing '%s'..." % names[key])
        write_matrix(matrices[key],names[key],args)

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
    cp = ConfigParser(disabled=["detection_threshold","min_samples","ambiguity_policy","allow_shared_samples"])
    ribo_parser = MatrixParser(groupname="ribo_options",prefix="ribo_",label="ribosome occupancy count")
    rna_parser  = MatrixParser(groupname="rna_options",prefix="rna_",label="transcript count")

    parser = argparse.ArgumentParser(description=format_module_docstring(__doc__),
                                     formatter_class=argparse.RawDescriptionHelpFormatter,
                                     parents=[bp.get_parser(),
                                              cp.get_parser(),
                                              ribo_parser.get_parser(),
                                              rna_parser.get_parser()])
    parser.add_argument("--subsets",default=False,action="store_true",
                        help="Also compute TE over canonical and non-canonical features separately")
    parser.add_argument("outbase",type=str,help="Basename for output files")
    args = parser.parse_args(argv)
    bp.get_base_ops_from_args(args)

    outfiles = list(output_names(args.outbase).values())
    if args.subsets:
        for subset in ("canonical","noncanonical"):
            outfiles.extend(output_names("%s_%s" % (args.outbase,subset)).values())

    if outputs_exist(outfiles) and not args.force:
        printer.write("Outputs for '%s' exist. Skipping. Use --force to recompute." % args.outbase)
        return

    config = cp.get_config_from_args(args,printer=printer)

    ribo_counts  = ribo_parser.get_matrix_from_args(args,printer=printer)
    rna_counts   = rna_parser.get_matrix_from_args(args,printer=printer)
    ribo_lengths = ribo_parser.get_lengths_from_args(args)
    rna_lengths  = rna_parser.get_lengths_from_args(args)
    if ribo_lengths is None:
        if rna_lengths is None:
            parser.error("At least one of --ribo_lengths or --rna_lengths is required")
        ribo_lengths = rna_lengths

    if args.subsets:
        results = te_subsets(ribo_counts,rna_counts,ribo_lengths,transcript_lengths=rna_lengths,
                             config=config,printer=printer)
        for subset, result in results.items():
            outbase = args.outbase if subset == "all" else "%s_%s" % (args.outbase,subset)
            write_result(result,outbase,args)
    else:
        result = compute_te(ribo_counts,rna_counts,ribo_lengths,transcript_lengths=rna_lengths,
                            config=config,printer=printer)
        write_result(result,args.outbase,args)

    printer.write("Done.")

if __name__ == "__main__":
    main()
