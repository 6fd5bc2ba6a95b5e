#!/usr/bin/env python
"""Computations over cohort count matrices

Package overview
================

    =====================================================    ==============================================================
    **Module**                                               **Contents**
    -----------------------------------------------------    --------------------------------------------------------------
    :py:mod:`~translatome.quant.config`                      |PipelineConfig|, the parameters passed to every computation
    :py:mod:`~translatome.quant.reconcile`                   Matching quantifier column names to metadata sample IDs
    :py:mod:`~translatome.quant.matrices`                    Assembling, checking, and filtering count matrices
    :py:mod:`~translatome.quant.normalize`                   Length and depth normalization (TPM, PPM)
    :py:mod:`~translatome.quant.detection`                   Threshold and sample-support detection of translation
    :py:mod:`~translatome.quant.te`                          Translational efficiency
    :py:mod:`~translatome.quant.differential`                Inputs for, and results from, differential-expression engines
    =====================================================    ==============================================================
"""
