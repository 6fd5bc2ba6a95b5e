#!/usr/bin/env python
"""Library components for writing command-line scripts

Package overview
================

    ======================================================    =========================
    **Package module**                                        **Contents**
    ------------------------------------------------------    -------------------------
    :py:mod:`~translatome.util.scriptlib.argparsers`          :class:`~argparse.ArgumentParser` factories for count tables, matrices, metadata, and pipeline parameters
    :py:mod:`~translatome.util.scriptlib.help_formatters`     Utilities to reformat module docstrings for use as command-line help text
    ======================================================    =========================
"""
