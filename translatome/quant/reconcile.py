#!/usr/bin/env python
"""Match sample identifiers found in quantifier output (column headers or
directory names) to rows of a sample metadata table.

Metadata tables record the raw read files of each sample as free text,
usually semicolon- or comma-delimited lists of FASTQ names with lane numbers,
read-pair markers and extensions (e.g. ``"MB12_R1_001.fastq.gz;MB12_R2_001.fastq.gz"``).
Quantifiers, on the other hand, report a shortened token for each sample
(e.g. ``"MB12_R1_001"``). The two are joined by *infix* substring matching in
two stages:

  #. **Candidate collection**. Each metadata row's free-text field is searched
     for candidate identifiers, using an alternation of all candidates. By
     default the leftmost occurrence is taken (ties broken by candidate order);
     with ``collect="all"``, every candidate occurring in the field is taken.
     Matched candidates are deduplicated, preserving order.

  #. **Join**. For each matched candidate, every metadata row whose free-text
     field contains the candidate is found. Exactly one row is expected.
     Matches are reported in metadata row order.

Candidates that match no metadata row are dropped, and reported with a
|DataWarning|. This is expected: excluded or unpaired samples are simply
absent from the metadata table that is passed in. Ambiguous candidates
(matching several rows) raise |ReconciliationAmbiguous|, unless
the configured policy is `'first'`. A mapping in which several candidates
resolve to one sample ID raises |DuplicateSampleMapping|, unless shared
samples (e.g. sequencing lanes) are explicitly permitted.

Examples
--------
Reconcile featureCounts sample columns against a metadata table::

    >>> result = reconcile(counts.columns,metadata,"rnaseq_files")
    >>> result.mapping
    OrderedDict([('MB12_R1_001', 'MB12'), ('MB07_R1_001', 'MB07')])
    >>> result.unmatched
    ['MB99_R1_001']
"""
import re
from collections import OrderedDict, Counter

import pandas as pd

from translatome.quant.config import PipelineConfig
from translatome.util.io.openers import NullWriter
from translatome.util.services.exceptions import ReconciliationAmbiguous,\
                                                 DuplicateSampleMapping,\
                                                 SchemaMismatch,\
                                                 DataWarning, warn, warn_onceperfamily

_AMBIGUOUS_FAMILY = r"Candidate '.*' matches [0-9]+ metadata rows"
"""Warning family for candidates resolved to the first of several rows"""


#===============================================================================
# INDEX: result type
#===============================================================================

class Reconciliation(object):
    """Result of matching candidate identifiers to metadata rows

    Attributes
    ----------
    table : :class:`pandas.DataFrame`
        One row per matched candidate, in metadata row order, with columns
        `candidate`, `sample_id`, and `row` (position in metadata table)

    unmatched : list
        Candidates that matched no metadata row, in input order

    mapping : :class:`collections.OrderedDict`
        Candidate identifier -> sample ID, in metadata row order
    """

    def __init__(self,table,unmatched):
        self.table     = table
        self.unmatched = list(unmatched)
        self.mapping   = OrderedDict(zip(table["candidate"],table["sample_id"]))

    @property
    def sample_ids(self):
        """Sample IDs, without duplicates, in metadata row order"""
        return list(OrderedDict.fromkeys(self.table["sample_id"]))

    @property
    def candidates(self):
        """Matched candidate identifiers, in metadata row order"""
        return list(self.table["candidate"])

    def is_one_to_one(self):
        """Return `True` if no two candidates share a sample ID"""
        return not self.table["sample_id"].duplicated().any()

    def __len__(self):
        return len(self.table)

    def __repr__(self):
        return "<Reconciliation matched=%s unmatched=%s>" % (len(self.table),len(self.unmatched))


#===============================================================================
# INDEX: matching
#===============================================================================

def _make_pattern(candidates,case_sensitive=True):
    """Build a regex matching any of `candidates` literally

    Parameters
    ----------
    candidates : list of str

    case_sensitive : bool, optional

    Returns
    -------
    compiled regular expression
    """
    flags = 0 if case_sensitive else re.I
    return re.compile("|".join(re.escape(X) for X in candidates),flags)

def collect_candidates(texts,candidates,collect="first",case_sensitive=True):
    """Find the candidate identifiers that occur in any of `texts`

    Parameters
    ----------
    texts : list of str
        Free-text fields, one per metadata row

    candidates : list of str
        Candidate identifiers

    collect : str, optional
        `'first'` (default) to take, for each text, the leftmost candidate
        occurrence, or `'all'` to take every candidate occurring in each text

    case_sensitive : bool, optional
        If `False`, ignore case when matching (Default: `True`)

    Returns
    -------
    list
        Matched candidates, deduplicated, in order of discovery
    """
    if collect not in ("first","all"):
        raise ValueError("`collect` must be 'first' or 'all'. Got '%s'" % collect)

    found = OrderedDict()
    if len(candidates) == 0:
        return []

    pattern = _make_pattern(candidates,case_sensitive=case_sensitive)
    for text in texts:
        if collect == "first":
            match = pattern.search(text)
            if match is None:
                continue
            hit = match.group(0)
            # recover the candidate as given, in case matching ignored case
            for candidate in candidates:
                if len(candidate) == len(hit) and _contains(hit,candidate,case_sensitive):
                    found[candidate] = True
                    break
        else:
            for candidate in candidates:
                if _contains(text,candidate,case_sensitive):
                    found[candidate] = True

    return list(found.keys())

def _contains(text,candidate,case_sensitive=True):
    if case_sensitive:
        return candidate in text
    return candidate.lower() in text.lower()

def reconcile(candidates,metadata,files_column,sample_column="sample_id",
              config=None,collect="first",case_sensitive=True,printer=None):
    """Map each candidate identifier to exactly one metadata row

    Parameters
    ----------
    candidates : list of str
        Candidate identifiers, e.g. quantifier column names or directory names

    metadata : :class:`pandas.DataFrame`
        Sample metadata table

    files_column : str
        Column of `metadata` holding free-text file references

    sample_column : str, optional
        Column of `metadata` holding canonical sample IDs (Default: `'sample_id'`)

    config : |PipelineConfig|, optional
        Supplies `ambiguity_policy` and `allow_shared_samples`. If `None`,
        gene-level defaults are used

    collect : str, optional
        Candidate collection mode; see :func:`collect_candidates`

    case_sensitive : bool, optional
        If `False`, ignore case when matching

    printer : file-like, optional
        Logger implementing ``write()``

    Returns
    -------
    |Reconciliation|

    Raises
    ------
    SchemaMismatch
        If `files_column` or `sample_column` are absent from `metadata`

    ReconciliationAmbiguous
        If a candidate matches several metadata rows and the policy is `'raise'`

    DuplicateSampleMapping
        If several candidates resolve to one sample ID without permission
    """
    config  = PipelineConfig.for_granularity("gene") if config is None else config
    printer = NullWriter() if printer is None else printer

    missing = [X for X in (sample_column,files_column) if X not in metadata.columns]
    if len(missing) > 0:
        raise SchemaMismatch("metadata",missing,metadata.columns)

    candidates = [str(X) for X in candidates]
    if "" in candidates:
        raise ValueError("Candidate identifiers may not be empty strings")
    if len(set(candidates)) != len(candidates):
        dupes = sorted(K for K,V in Counter(candidates).items() if V > 1)
        raise ValueError("Candidate identifiers are not unique: %s" % ", ".join(dupes))

    texts      = metadata[files_column].fillna("").astype(str).tolist()
    sample_ids = metadata[sample_column].astype(str).tolist()

    matched = collect_candidates(texts,candidates,collect=collect,case_sensitive=case_sensitive)

    order = { K : N for N,K in enumerate(candidates) }
    pairs = []
    for candidate in matched:
        rows = [N for N,text in enumerate(texts) if _contains(text,candidate,case_sensitive)]
        if len(rows) > 1:
            if config.ambiguity_policy == "raise":
                raise ReconciliationAmbiguous(candidate,[sample_ids[X] for X in rows])
            msg = "Candidate '%s' matches %s metadata rows (%s). Using first row, sample '%s'." % (candidate,
                    len(rows),", ".join(sample_ids[X] for X in rows),sample_ids[rows[0]])
            printer.write(msg)
            warn_onceperfamily(msg,pattern=_AMBIGUOUS_FAMILY,category=DataWarning)
        pairs.append((rows[0],order[candidate],candidate,sample_ids[rows[0]]))

    pairs = sorted(pairs)
    table = pd.DataFrame({ "candidate" : [X[2] for X in pairs],
                           "sample_id" : [X[3] for X in pairs],
                           "row"       : [X[0] for X in pairs],
                         },columns=["candidate","sample_id","row"])

    matched_set = set(matched)
    unmatched = [X for X in candidates if X not in matched_set]
    if len(unmatched) > 0:
        msg = "%s candidate identifier(s) matched no metadata row and will be dropped: %s" % (len(unmatched),", ".join(unmatched))
        printer.write(msg)
        warn(msg,DataWarning)

    dupes = table[table["sample_id"].duplicated(keep=False)]
    if len(dupes) > 0:
        if not config.allow_shared_samples:
            raise DuplicateSampleMapping({ K : list(V["candidate"]) for K,V in dupes.groupby("sample_id",sort=False) })
        printer.write("Merging %s candidates into %s shared sample(s)." % (len(dupes),dupes["sample_id"].nunique()))

    printer.write("Matched %s of %s candidate identifiers to %s samples." % (len(table),len(candidates),table["sample_id"].nunique()))
    return Reconciliation(table,unmatched)
