#!/usr/bin/env python
"""
Package overview
================

This package contains parsers for the outputs of upstream quantifiers, and
for sample metadata tables. All parsers return :class:`pandas.DataFrame` or
:class:`pandas.Series` objects indexed by feature key (or, for metadata, by
row), with feature keys cast to `str`.

    ==============================================    =======================================
    **Count files**
    ---------------------------------------------------------------------------------------------
    :py:mod:`translatome.readers.featurecounts`       `featureCounts`_ tables
    :py:mod:`translatome.readers.salmon`              `Salmon`_ `quant.sf` files
    :py:mod:`translatome.readers.psites`              P-site `BED`_ files
    ----------------------------------------------    ---------------------------------------
    **Samples**
    ---------------------------------------------------------------------------------------------
    :py:mod:`translatome.readers.metadata`            Sample metadata (CSV, TSV, or XLSX)
    ==============================================    =======================================
"""
