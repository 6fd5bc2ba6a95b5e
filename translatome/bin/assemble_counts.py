#!/usr/bin/env python
"""Assemble a feature x sample count matrix from raw quantifier output.

Sample identifiers found in quantifier output (featureCounts column headers,
Salmon sample directories, or P-site intersection file names) are matched
against the free-text file column of a sample metadata table, and renamed to
canonical sample IDs. Identifiers that match no sample are dropped and
reported. Identifiers matching several samples, or several identifiers
matching one sample, are errors unless permitted by `--ambiguity_policy` or
`--allow_shared_samples`.

A second table of canonical CDS counts may be given with the `--canonical_`
options. Its feature keys receive the canonical suffix (`--canonical_suffix`),
and it is merged below the main table. Both tables must cover the same samples.

Output files
------------
    OUTBASE_counts.txt
        Count matrix, features as rows, sample IDs as columns

    OUTBASE_lengths.txt
        Feature lengths in nucleotides, if available from the input

    OUTBASE_samples.txt
        Identifier-to-sample mapping, in metadata order

If the count matrix and sample mapping already exist, nothing is done unless
`--force` is given.
"""
import argparse
import inspect
import sys
import warnings

import pandas as pd

from translatome.quant.reconcile import reconcile
from translatome.quant.matrices import assemble_count_matrix, mark_canonical
from translatome.readers.metadata import FILE_COLUMNS
from translatome.util.io.filters import NameDateWriter
from translatome.util.io.openers import argsopener, get_short_name, write_matrix, outputs_exist
from translatome.util.scriptlib.argparsers import BaseParser, ConfigParser, MetadataParser,\
                                                 CountTableParser
from translatome.util.scriptlib.help_formatters import format_module_docstring
from translatome.util.services.exceptions import ArgumentWarning

printer = NameDateWriter(get_short_name(inspect.stack()[-1][1]))


def output_names(outbase):
    """Return names of count, length and sample-mapping output files for `outbase`"""
    return ["%s_counts.txt" % outbase,"%s_lengths.txt" % outbase,"%s_samples.txt" % outbase]

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
    cp = ConfigParser(disabled=["min_mean_count","pseudocount","centering",
                                "detection_threshold","min_samples"])
    mp = MetadataParser()
    counts_parser    = CountTableParser()
    canonical_parser = CountTableParser(groupname="canonical_count_options",prefix="canonical_",required=False)

    parser = argparse.ArgumentParser(description=format_module_docstring(__doc__),
                                     formatter_class=argparse.RawDescriptionHelpFormatter,
                                     parents=[bp.get_parser(),
                                              cp.get_parser(),
                                              mp.get_parser(),
                                              counts_parser.get_parser(),
                                              canonical_parser.get_parser(title="canonical CDS count options (optional)",
                                                                          description="Same as above, for a table of canonical CDS counts")])
    parser.add_argument("--assay",choices=sorted(FILE_COLUMNS),required=True,
                        help="Assay of count input, selecting the metadata file column to match against")
    parser.add_argument("--collect",choices=("first","all"),default="first",
                        help="Take the first identifier found in each metadata row, or all of them (Default: first)")
    parser.add_argument("--ignore_case",default=False,action="store_true",
                        help="Ignore case when matching identifiers to metadata")
    parser.add_argument("outbase",type=str,help="Basename for output files")
    args = parser.parse_args(argv)
    bp.get_base_ops_from_args(args)

    outfiles = output_names(args.outbase)
    if outputs_exist([outfiles[0],outfiles[2]]) and not args.force:
        printer.write("Outputs for '%s' exist. Skipping. Use --force to recompute." % args.outbase)
        return

    config = cp.get_config_from_args(args,printer=printer)
    files_column = FILE_COLUMNS[args.assay]
    metadata = mp.get_metadata_from_args(args,required=[files_column],printer=printer)

    tables, lengths, names, canonical = [], [], [], []
    table, table_lengths = counts_parser.get_counts_from_args(args,printer=printer)
    tables.append(table)
    lengths.append(table_lengths)
    names.append(", ".join(args.counts))
    canonical.append(False)

    if canonical_parser.is_given(args):
        table, table_lengths = canonical_parser.get_counts_from_args(args,printer=printer)
        tables.append(table)
        lengths.append(table_lengths)
        names.append(", ".join(args.canonical_counts))
        canonical.append(True)

    candidates = list(pd.unique(pd.Index([X for T in tables for X in T.columns]).astype(str)))
    printer.write("Reconciling %s identifiers against metadata column '%s'..." % (len(candidates),files_column))
    reconciliation = reconcile(candidates,metadata,files_column,
                               config=config,
                               collect=args.collect,
                               case_sensitive=not args.ignore_case,
                               printer=printer)

    counts = assemble_count_matrix(tables,reconciliation,canonical=canonical,config=config,
                                   names=names,printer=printer)

    printer.write("Writing count matrix to '%s'..." % outfiles[0])
    write_matrix(counts,outfiles[0],args)

    if any(X is None for X in lengths):
        warnings.warn("Feature lengths are not available for all count inputs. Not writing '%s'." % outfiles[1],ArgumentWarning)
    else:
        ltmp = []
        for table_lengths, is_canon in zip(lengths,canonical):
            ltmp.append(mark_canonical(table_lengths.to_frame("length"),config.canonical_suffix) if is_canon \
                        else table_lengths.to_frame("length"))
        all_lengths = pd.concat(ltmp,axis=0)["length"]
        all_lengths = all_lengths.reindex(counts.index)
        printer.write("Writing feature lengths to '%s'..." % outfiles[1])
        write_matrix(all_lengths,outfiles[1],args)

    printer.write("Writing sample mapping to '%s'..." % outfiles[2])
    with argsopener(outfiles[2],args,"w") as fout:
        reconciliation.table.to_csv(fout,sep="\t",header=True,index=False)

    printer.write("Done.")

if __name__ == "__main__":
    main()
