#!/usr/bin/env python
"""Command-line scripts that take cohort quantifications to translation measures

    =========================   =============================================================================
    **Preparing count matrices**
    ---------------------------------------------------------------------------------------------------------
    |assemble_counts|            Reconcile sample identifiers in featureCounts, Salmon, or P-site
                                 count files with a sample metadata table, and assemble one
                                 feature x sample count matrix plus a feature-length table

    |normalize_counts|           Convert a count matrix to transcripts per million (TPM) or
                                 P-sites per million (PPM)
    -------------------------   -----------------------------------------------------------------------------
    **Translation measures**
    ---------------------------------------------------------------------------------------------------------
    |detect_translation|         Classify features as translated by abundance threshold
                                 and sample support, optionally per category

    |te|                         Compute raw, log2, and centered translational efficiency
                                 from occupancy and transcript counts

    |prepare_differential|       Write count, sample, and design files for an external
                                 differential-expression engine, and rank its results
    -------------------------   -----------------------------------------------------------------------------
    **Utilities**
    ---------------------------------------------------------------------------------------------------------
    |compare_tables|             Test whether two output tables contain equivalent data
    =========================   =============================================================================
"""
