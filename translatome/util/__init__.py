#!/usr/bin/env python
"""Miscellaneous, general utilities useful for scripting

Package overview
================

    ========================================   =================================================================================
    **Subpackages**                            **Contents**
    ----------------------------------------   ---------------------------------------------------------------------------------
    :py:obj:`~translatome.util.io`              Logging writers, readers, file openers, and matrix input & output
    :py:obj:`~translatome.util.scriptlib`       Tools for writing command-line scripts that use :data:`translatome`
    :py:obj:`~translatome.util.services`        Exceptions, warnings, and warning filters
    ========================================   =================================================================================
"""
