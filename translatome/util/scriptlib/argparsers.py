#!/usr/bin/env python
"""This module contains classes that:

  - build :class:`argparse.ArgumentParser` objects for the inputs and
    parameters shared by command-line scripts

  - parse those arguments into tables, matrices, and a |PipelineConfig|


Arguments are grouped into the following sets:

    ===========================================================   ======================================
    **Parameter/argument set**                                    **Parser building class**
    -----------------------------------------------------------   --------------------------------------
    Generic parameters (e.g. for warnings, re-running stages)     :class:`BaseParser`

    Pipeline parameters (thresholds, pseudocounts, policies)      :class:`ConfigParser`

    Sample metadata tables                                        :class:`MetadataParser`

    Raw quantifier output (featureCounts, Salmon, P-site BEDs)    :class:`CountTableParser`

    Count matrices and feature-length tables                      :class:`MatrixParser`
    ===========================================================   ======================================


Example
-------
To use any of these in your own command-line scripts:

  #. Create parsers, and supply them as `parents` to your script's
     :py:class:`~argparse.ArgumentParser`::

         >>> import argparse
         >>> from translatome.util.scriptlib.argparsers import ConfigParser, MatrixParser

         >>> cp = ConfigParser()
         >>> mp = MatrixParser(prefix="ribo_")
         >>> parser = argparse.ArgumentParser(parents=[cp.get_parser(),mp.get_parser()])
         >>> parser.add_argument("outbase",type=str)

  #. Then, parse the arguments::

         >>> args   = parser.parse_args()
         >>> config = cp.get_config_from_args(args)
         >>> counts = mp.get_matrix_from_args(args)

Parsers created with a `prefix` add that prefix to the names of their
options (e.g. `--ribo_counts`), so that the same set of options can be used
more than once in one script.
"""
import argparse
import warnings

from translatome.quant.config import PipelineConfig, GRANULARITIES, CENTERING_METHODS,\
                                     AMBIGUITY_POLICIES
from translatome.readers.featurecounts import read_featurecounts, DEFAULT_BAM_SUFFIX
from translatome.readers.salmon import read_salmon_directory
from translatome.readers.psites import read_psite_counts, read_reference_psites, INTERSECT_SUFFIX
from translatome.readers.metadata import read_metadata, exclude_samples, paired_samples
from translatome.quant.matrices import concatenate_matrices
from translatome.util.io.openers import read_matrix, NullWriter
from translatome.util.services.exceptions import ArgumentWarning, DataWarning, filterwarnings


#===============================================================================
# INDEX: Constants used in parsers below
#===============================================================================

COUNT_FORMATS = ("featurecounts","salmon","psites","matrix")

_COUNT_PARSER_TITLE = "count table options"
_COUNT_PARSER_DESCRIPTION = \
"""Raw quantifier output. Sample identifiers are taken from featureCounts
column headers (with the alignment suffix removed), Salmon sample directory
names, or P-site intersection file names (with the intersection suffix removed)."""

_MATRIX_PARSER_TITLE = "count matrix options"

_CONFIG_PARSER_TITLE = "pipeline parameters"
_CONFIG_PARSER_DESCRIPTION = \
"""Defaults depend on feature granularity. For genes: minimum mean count 128,
pseudocount 0.01. For ORFs: minimum mean count 4, pseudocount 0.1."""

_METADATA_PARSER_TITLE = "sample metadata options"


#===============================================================================
# INDEX: Base class for parsers
#===============================================================================

class Parser(object):
    """Base class for argument parser factories used below

    Parameters
    ----------
    groupname : str, optional
        Name of argument group. If not `None`, an argument group with
        the specified name will be created and added to the parser.
        If not, arguments will be in the main group.

    prefix : str, optional
        string prefix to add to default argument options (Default: "")

    disabled : list, optional
        list of parameter names that should be disabled from parser,
        without preceding dashes
    """

    def __init__(self,groupname=None,prefix="",disabled=None):
        self.prefix    = prefix
        self.disabled  = [] if disabled is None else disabled
        self.groupname = groupname

        # define in __init__ of subclass
        self.arguments = []

    def get_parser(self,parser=None,groupname=None,arglist=None,title=None,description=None,**kwargs):
        """Create and populate an :class:`argparse.ArgumentParser` with arguments

        Parameters
        ----------
        parser : :class:`argparse.ArgumentParser` or None, optional
            If `None`, a new parser will be created. Otherwise, arguments
            will be added to `parser`.

        groupname : str or None, optional
            If `None`, default to `self.groupname`. If either is not `None`,
            arguments are added to an option group, to which `title` and
            `description` are applied.

        arglist : list, optional
            List of tuples of `('argument_name',dict_of_options)`. If `None`,
            `self.arguments` is used.

        title : str, optional
            Title for option group

        description : str, optional
            Description of option group

        kwargs : keyword arguments
            Additional arguments passed during creation of :class:`argparse.ArgumentParser`

        Returns
        -------
        :class:`argparse.ArgumentParser`
        """
        if groupname is None:
            groupname = self.groupname

        if parser is None:
            if groupname is None:
                parser = argparse.ArgumentParser(description=description,add_help=False,**kwargs)
            else:
                parser = argparse.ArgumentParser(add_help=False,**kwargs)

        addto = parser
        if groupname is not None:
            addto = parser.add_argument_group(title=title,description=description)

        arglist = self.arguments if arglist is None else arglist
        for arg_name, arg_opts in filter(lambda x: x[0] not in self.disabled,arglist):
            addto.add_argument("--%s%s" % (self.prefix,arg_name),**arg_opts)

        return parser


class PrefixNamespaceWrapper(object):
    """Wrapper that allows attributes of a :py:class:`~argparse.Namespace`
    created by a prefixed parser to be fetched as if no prefix had been used

    Parameters
    ----------
    namespace : :py:class:`~argparse.Namespace`
        Result of calling :py:meth:`argparse.ArgumentParser.parse_args`

    prefix : str
        Prefix used when creating the parser
    """

    def __init__(self,namespace,prefix):
        self.namespace = namespace
        self.prefix    = prefix

    def __getattr__(self,k):
        return getattr(self.namespace,"%s%s" % (self.prefix,k))


#===============================================================================
# INDEX: Generic options
#===============================================================================

class BaseParser(Parser):
    """Parser for warning levels and stage re-entry

    Parameters
    ----------
    groupname : str, optional
        Name of argument group

    prefix : str, optional
        string prefix to add to default argument options (Default: "")

    disabled : list, optional
        list of parameter names that should be disabled from parser,
        without preceding dashes
    """

    def __init__(self,groupname="base_options",prefix="",disabled=None):
        Parser.__init__(self,groupname=groupname,prefix=prefix,disabled=disabled)
        self.arguments = [
            ("force", dict(default=False,action="store_true",
                           help="Recompute outputs even if they already exist (Default: skip stages whose outputs exist)")),
        ]

    def get_parser(self,title="stage options",description=None):
        """Return an :py:class:`~argparse.ArgumentParser`

        Parameters
        ----------
        title : str, optional
            title for option group (used in command-line help screen)

        description : str, optional
            description of parser (used in command-line help screen)

        Returns
        -------
        :class:`argparse.ArgumentParser`
        """
        p = Parser.get_parser(self,title=title,description=description)
        g = p.add_argument_group(title="warning/error options")
        g.add_argument("-q","--quiet",dest="warnlevel",action="store_const",const=-1,
                       help="Suppress all warning messages. Cannot use with '-v'.")
        g.add_argument("-v","--verbose",dest="warnlevel",action="count",
                       help="Increase verbosity. With '-v', show every warning. With '-vv', turn warnings into exceptions. Cannot use with '-q'. (Default: show each type of warning once)")
        p.set_defaults(warnlevel=0)
        return p

    def get_base_ops_from_args(self,args):
        """Install warning filters for the level requested in `args`

        Parameters
        ----------
        args : :py:class:`~argparse.Namespace`

        Returns
        -------
        str
            Filter action applied to the package's warnings
        """
        args = PrefixNamespaceWrapper(args,self.prefix)
        warnlevel = args.warnlevel
        actions = ["ignore",
                   "onceperfamily",
                   "always",
                   "error"]

        if warnlevel >= len(actions) - 1:
            warnlevel = len(actions) - 2
        action = actions[warnlevel+1]

        for type_, msg in TRANSLATOME_WARNINGS:
            filterwarnings(action,message=msg,category=type_)

        return action


TRANSLATOME_WARNINGS = [

    # quant.reconcile
    (DataWarning,r"[0-9]+ candidate identifier\(s\) matched no metadata row"),
    (DataWarning,r"Candidate '.*' matches [0-9]+ metadata rows"),

    # quant.matrices
    (DataWarning,r"Dropping [0-9]+ column\(s\) of"),

    # quant.normalize, quant.te
    (DataWarning,r"Excluding [0-9]+ (qualifying )?feature\(s\)"),
    (DataWarning,r"Set [0-9]+ degenerate TE value\(s\) to 0"),

    # quant.differential
    (DataWarning,r"Rounding real-valued counts"),

    # readers.metadata
    (DataWarning,r"Excluded sample\(s\) not found in metadata"),
    (DataWarning,r"Dropping [0-9]+ sample\(s\) without paired"),

    # scripts
    (ArgumentWarning,r".*"),
]
"""Warning families issued by :data:`translatome`, as `(category, regex)` tuples"""


#===============================================================================
# INDEX: Pipeline parameters
#===============================================================================

class ConfigParser(Parser):
    """Parser for the fields of a |PipelineConfig|

    Options left unset on the command line fall back to the defaults for
    the chosen `--granularity`.

    Parameters
    ----------
    groupname : str, optional
        Name of argument group

    prefix : str, optional
        string prefix to add to default argument options (Default: "")

    disabled : list, optional
        list of parameter names that should be disabled from parser,
        without preceding dashes

    granularity : str, optional
        Default feature granularity (Default: `'gene'`)
    """

    def __init__(self,groupname="config_options",prefix="",disabled=None,granularity="gene"):
        Parser.__init__(self,groupname=groupname,prefix=prefix,disabled=disabled)
        self.granularity = granularity
        self.arguments = [
            ("granularity", dict(default=granularity,choices=GRANULARITIES,
                                 help="Feature granularity, which sets the defaults below (Default: %s)" % granularity)),
            ("min_mean_count", dict(default=None,type=float,metavar="N",
                                    help="Features qualify for TE only if their mean raw count is greater than N in both count matrices")),
            ("pseudocount", dict(default=None,type=float,metavar="EPS",
                                 help="Constant added to TE before log2 transformation")),
            ("centering", dict(default=None,choices=CENTERING_METHODS,
                               help="Per-feature centering of log2 TE (Default: median)")),
            ("detection_threshold", dict(default=None,type=float,metavar="X",
                                         help="Abundance (TPM/PPM) above which a feature is detected in a sample (Default: 1.0)")),
            ("min_samples", dict(default=None,type=int,metavar="N",
                                 help="Minimum number of samples in which a feature must be detected (Default: 5)")),
            ("canonical_suffix", dict(default=None,type=str,metavar="SUFFIX",
                                      help="Suffix marking canonical CDS feature keys (Default: _CDS)")),
            ("ambiguity_policy", dict(default=None,choices=AMBIGUITY_POLICIES,
                                      help="What to do when a sample identifier matches several metadata rows: "+\
                                           "'raise' an error, or take the 'first' row (Default: raise)")),
            ("allow_shared_samples", dict(default=False,action="store_true",
                                          help="Allow several identifiers (e.g. sequencing lanes) to map to one sample, summing their counts")),
        ]

    def get_parser(self,title=_CONFIG_PARSER_TITLE,description=_CONFIG_PARSER_DESCRIPTION):
        return Parser.get_parser(self,title=title,description=description)

    def get_config_from_args(self,args,printer=None):
        """Build a |PipelineConfig| from parsed arguments

        Parameters
        ----------
        args : :py:class:`~argparse.Namespace`

        printer : file-like, optional
            Logger implementing ``write()``

        Returns
        -------
        |PipelineConfig|
        """
        printer = NullWriter() if printer is None else printer
        args = PrefixNamespaceWrapper(args,self.prefix)

        granularity = self.granularity if "granularity" in self.disabled else args.granularity
        overrides = {}
        for name, _ in self.arguments:
            if name in self.disabled or name == "granularity":
                continue
            overrides[name] = getattr(args,name)

        config = PipelineConfig.for_granularity(granularity,**overrides)
        printer.write("Using %r" % config)
        return config


#===============================================================================
# INDEX: Metadata
#===============================================================================

class MetadataParser(Parser):
    """Parser for sample metadata tables

    Parameters
    ----------
    groupname : str, optional
        Name of argument group

    prefix : str, optional
        string prefix to add to default argument options (Default: "")

    disabled : list, optional
        list of parameter names that should be disabled from parser,
        without preceding dashes
    """

    def __init__(self,groupname="metadata_options",prefix="",disabled=None):
        Parser.__init__(self,groupname=groupname,prefix=prefix,disabled=disabled)
        self.arguments = [
            ("metadata", dict(type=str,required=True,metavar="FILE",
                              help="Sample metadata table (.xlsx, .csv, or tab-delimited)")),
            ("metadata_skiprows", dict(type=int,default=0,metavar="N",
                                       help="Number of title rows above the header (Default: 0)")),
            ("metadata_sheet", dict(type=str,default=None,metavar="SHEET",
                                    help="Worksheet name, for spreadsheets (Default: first sheet)")),
            ("metadata_columns", dict(type=str,nargs="+",default=[],metavar="HEADER=COLUMN",
                                      help="Rename metadata headers to canonical column names, e.g. 'patient_code=sample_id'")),
            ("exclude_samples", dict(type=str,nargs="+",default=[],metavar="SAMPLE",
                                     help="Sample IDs to exclude from analysis")),
            ("require_paired", dict(default=False,action="store_true",
                                    help="Keep only samples with both RNA-seq and Ribo-seq files")),
        ]

    def get_parser(self,title=_METADATA_PARSER_TITLE,description=None):
        return Parser.get_parser(self,title=title,description=description)

    def get_metadata_from_args(self,args,required=None,printer=None):
        """Read, rename and filter sample metadata

        Parameters
        ----------
        args : :py:class:`~argparse.Namespace`

        required : list, optional
            Canonical columns that must be present, in addition to `sample_id`

        printer : file-like, optional
            Logger implementing ``write()``

        Returns
        -------
        :class:`pandas.DataFrame`
        """
        printer = NullWriter() if printer is None else printer
        args = PrefixNamespaceWrapper(args,self.prefix)

        columns = parse_key_value_pairs(args.metadata_columns,what="column renaming")

        required = [] if required is None else list(required)
        if args.require_paired:
            required += [X for X in ("rnaseq_files","riboseq_files") if X not in required]

        sheet = 0 if args.metadata_sheet is None else args.metadata_sheet
        printer.write("Reading metadata from '%s'..." % args.metadata)
        metadata = read_metadata(args.metadata,skiprows=args.metadata_skiprows,sheet_name=sheet,
                                 columns=columns,required=required)
        printer.write("Found %s samples." % len(metadata))

        if len(args.exclude_samples) > 0:
            metadata = exclude_samples(metadata,args.exclude_samples,printer=printer)
        if args.require_paired:
            metadata = paired_samples(metadata,printer=printer)

        return metadata


#===============================================================================
# INDEX: Quantifier output
#===============================================================================

class CountTableParser(Parser):
    """Parser for raw quantifier output

    Parameters
    ----------
    groupname : str, optional
        Name of argument group

    prefix : str, optional
        string prefix to add to default argument options (Default: "")

    disabled : list, optional
        list of parameter names that should be disabled from parser,
        without preceding dashes

    required : bool, optional
        If `True`, `--counts` must be given (Default: `True`)
    """

    def __init__(self,groupname="count_options",prefix="",disabled=None,required=True):
        Parser.__init__(self,groupname=groupname,prefix=prefix,disabled=disabled)
        self.arguments = [
            ("counts", dict(type=str,nargs="+",required=required,default=[],metavar="PATH",
                            help="featureCounts table(s); a directory of Salmon sample directories; "+\
                                 "P-site intersection BED files; or count matrices")),
            ("format", dict(choices=COUNT_FORMATS,default="featurecounts",
                            help="Format of count input (Default: featurecounts)")),
            ("bam_suffix", dict(type=str,default=DEFAULT_BAM_SUFFIX,metavar="SUFFIX",
                                help="Alignment suffix removed from featureCounts headers (Default: %s)" % DEFAULT_BAM_SUFFIX)),
            ("intersect_suffix", dict(type=str,default=INTERSECT_SUFFIX,metavar="SUFFIX",
                                      help="Suffix removed from P-site intersection file names (Default: %s)" % INTERSECT_SUFFIX)),
            ("psite_reference", dict(type=str,default=None,metavar="BED",
                                     help="Reference P-site BED file, giving ORF lengths (required for 'psites')")),
            ("salmon_length", dict(choices=("Length","EffectiveLength"),default="Length",
                                   help="Salmon length column used as feature length (Default: Length)")),
            ("lengths", dict(type=str,default=None,metavar="FILE",
                             help="Feature-length table (feature, length). Overrides lengths found in count input")),
        ]

    def get_parser(self,title=_COUNT_PARSER_TITLE,description=_COUNT_PARSER_DESCRIPTION):
        return Parser.get_parser(self,title=title,description=description)

    def is_given(self,args):
        """Return `True` if count input was supplied in `args`"""
        return len(PrefixNamespaceWrapper(args,self.prefix).counts) > 0

    def get_counts_from_args(self,args,printer=None):
        """Read raw count tables named in `args`

        Parameters
        ----------
        args : :py:class:`~argparse.Namespace`

        printer : file-like, optional
            Logger implementing ``write()``

        Returns
        -------
        :class:`pandas.DataFrame`
            Feature x candidate count matrix

        :class:`pandas.Series` or None
            Feature lengths, if available
        """
        printer = NullWriter() if printer is None else printer
        args = PrefixNamespaceWrapper(args,self.prefix)
        fmt  = args.format

        printer.write("Reading %s input from %s..." % (fmt,", ".join(args.counts)))
        if fmt == "featurecounts":
            tables  = [read_featurecounts(X,suffix=args.bam_suffix) for X in args.counts]
            counts  = _merge_columns([X[0] for X in tables],args.counts)
            lengths = tables[0][1]
        elif fmt == "salmon":
            if len(args.counts) > 1:
                warnings.warn("Using only first Salmon directory '%s'" % args.counts[0],ArgumentWarning)
            counts, lengths = read_salmon_directory(args.counts[0],length_column=args.salmon_length)
        elif fmt == "psites":
            if args.psite_reference is None:
                raise ValueError("A reference P-site file is required for P-site input (--%spsite_reference)" % self.prefix)
            lengths = read_reference_psites(args.psite_reference)
            counts  = read_psite_counts(args.counts,reference_lengths=lengths,suffix=args.intersect_suffix)
        else:
            counts  = _merge_columns([read_matrix(X) for X in args.counts],args.counts)
            lengths = None

        if args.lengths is not None:
            lengths = read_lengths(args.lengths)

        printer.write("Read %s features x %s identifiers." % counts.shape)
        return counts, lengths


def _merge_columns(tables,names):
    """Join tables that cover the same features but different samples"""
    if len(tables) == 1:
        return tables[0]

    merged = concatenate_matrices([X.T for X in tables],names=names,name="sample columns").T
    merged.index.name   = tables[0].index.name
    merged.columns.name = None
    return merged

def read_lengths(filename):
    """Read a feature-length table written by a :data:`translatome` script

    Parameters
    ----------
    filename : str

    Returns
    -------
    :class:`pandas.Series`
    """
    table = read_matrix(filename)
    if table.shape[1] != 1:
        raise ValueError("Length table '%s' must have exactly one column besides feature IDs. Found %s" % (filename,table.shape[1]))
    return table.iloc[:,0].rename("length")


#===============================================================================
# INDEX: Assembled matrices
#===============================================================================

class MatrixParser(Parser):
    """Parser for a count (or abundance) matrix and its feature-length table

    Parameters
    ----------
    groupname : str, optional
        Name of argument group

    prefix : str, optional
        string prefix to add to default argument options (Default: ""),
        e.g. `'ribo_'` or `'rna_'`

    disabled : list, optional
        list of parameter names that should be disabled from parser,
        without preceding dashes

    label : str, optional
        Description of matrix, used in help
    """

    def __init__(self,groupname="matrix_options",prefix="",disabled=None,label="count"):
        Parser.__init__(self,groupname=groupname,prefix=prefix,disabled=disabled)
        self.label = label
        self.arguments = [
            ("counts", dict(type=str,required=True,metavar="FILE",
                            help="%s matrix (feature x sample), as written by assemble_counts" % label.capitalize())),
            ("lengths", dict(type=str,default=None,metavar="FILE",
                             help="Feature-length table for %s matrix" % label)),
        ]

    def get_parser(self,title=None,description=None):
        title = "%s (%s)" % (_MATRIX_PARSER_TITLE,self.label) if title is None else title
        return Parser.get_parser(self,title=title,description=description)

    def get_matrix_from_args(self,args,printer=None):
        printer = NullWriter() if printer is None else printer
        args = PrefixNamespaceWrapper(args,self.prefix)
        matrix = read_matrix(args.counts)
        printer.write("Read %s matrix '%s': %s features x %s samples." % (self.label,args.counts,matrix.shape[0],matrix.shape[1]))
        return matrix

    def get_lengths_from_args(self,args):
        """Return the feature-length table named in `args`, or `None`"""
        args = PrefixNamespaceWrapper(args,self.prefix)
        if args.lengths is None:
            return None
        return read_lengths(args.lengths)


def parse_key_value_pairs(pairs,what="pair"):
    """Parse a list of `KEY=VALUE` strings into a dictionary

    Parameters
    ----------
    pairs : list of str

    what : str, optional
        Description of pairs, used in error messages

    Returns
    -------
    dict
    """
    dtmp = {}
    for pair in pairs:
        if "=" not in pair:
            raise ValueError("Each %s must have the form KEY=VALUE. Got '%s'" % (what,pair))
        k, v = pair.split("=",1)
        dtmp[k.strip()] = v.strip()
    return dtmp
