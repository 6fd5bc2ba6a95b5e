#!/usr/bin/env python
"""Setup script for translatome.

Command-line scripts are detected automatically from `translatome/bin`,
and installed as console entry points named after their modules.
"""
import os
from setuptools import setup, find_packages

translatome_version = "0.1.0"


#===============================================================================
# Package metadata
#===============================================================================

with open("README.rst") as f:
    long_description = f.read()

packages = find_packages()

install_requires = [
    "numpy>=1.9.4",
    "scipy>=0.15.1",
    "pandas>=0.17.0",
    "openpyxl>=3.0",
    "termcolor",
]

tests_require = [
    "pytest>=6.0",
]


def get_scripts():
    """Detect command-line scripts automatically

    Returns
    -------
    list
        list of strings describing command-line scripts
    """
    binscripts = [
        X.replace(".py", "") for X in filter(
            lambda x: x.endswith(".py") and  "__init__" not in x,
            os.listdir(os.path.join("translatome",  "bin")),
        )
    ]
    return ["%s = translatome.bin.%s:main" % (X, X) for X in sorted(binscripts)]


#===============================================================================
# Program body
#===============================================================================

setup(

    name             = "translatome",
    version          = translatome_version,
    long_description =  long_description,
    long_description_content_type = "text/x-rst",

    description      = "Cohort-scale quantification of translation from ribosome profiling and RNA-seq",
    license          = "BSD 3-Clause",
    keywords         = "ribosome profiling riboseq rna-seq translational efficiency sequencing biology",
    platforms        = "OS Independent",

    classifiers      = [
         'Development Status :: 3 - Alpha',
         'Programming Language :: Python :: 3',

         'Topic :: Scientific/Engineering :: Bio-Informatics',

         'Intended Audience :: Science/Research',

         'License :: OSI Approved :: BSD License',
         'Operating System :: POSIX',
         'Natural Language :: English',
    ],

    zip_safe = False,
    packages = packages,

    package_dir = {
        "translatome"  : "translatome",
    },

    entry_points = {
        "console_scripts" : get_scripts()
    },

    python_requires  = ">=3.6",
    install_requires = install_requires,
    extras_require   = { "test" : tests_require },

) # yapf: disable
