#!/usr/bin/env python
"""Welcome to translatome!

This package quantifies translation across a cohort of samples from
ribosome profiling (Ribo-seq) and RNA-seq data. Starting from the per-sample
outputs of upstream quantifiers, it provides:

  #. A set of command-line scripts that take count tables through to
     abundance, detection, and translational efficiency matrices (see |bin|).

  #. Readers that turn featureCounts tables, Salmon `quant.sf` files, P-site
     BED files, and sample metadata tables into :class:`pandas.DataFrame`
     objects (see |readers|).

  #. The computations themselves, as plain functions over count matrices
     (see |quant|).


Package overview
----------------
translatome is divided into the following subpackages:

    ==============    =========================================================
    Package           Contents
    --------------    ---------------------------------------------------------
    |bin|             Command-line scripts
    |quant|           Reconciliation, count assembly, normalization, detection, TE, differential inputs
    |readers|         Parsers for upstream quantifier outputs and sample metadata
    |util|            Utilities (e.g. logging, exceptions, argument parsers)
    |test|            Unit and functional tests
    ==============    =========================================================

"""
__version__ = "0.1.0"

from translatome.quant.config import PipelineConfig
from translatome.quant.reconcile import reconcile, Reconciliation
from translatome.quant.matrices import assemble_count_matrix
from translatome.quant.normalize import normalize_abundance, tpm, ppm
from translatome.quant.detection import detect_translation, DetectionResult
from translatome.quant.te import compute_te, te_subsets, TEResult

from translatome.util.io.openers import read_matrix

from translatome.util.services.exceptions import formatwarning
