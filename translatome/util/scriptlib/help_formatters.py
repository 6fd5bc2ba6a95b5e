#!/usr/bin/env python
"""Post-processors that turn `numpydoc`_-style module docstrings into
command-line help, by removing `reStructuredText`_ roles, substitutions,
link references and inline-literal markup, and by truncating text at the
first section that is only useful in rendered documentation.

Every script in :mod:`translatome.bin` passes its module docstring through
:func:`format_module_docstring` to build its `--help` description.
"""
import re

HELP_STOP_SECTIONS = ["Parameters",
                      "Returns",
                      "Yields",
                      "Raises",
                      "Attributes",
                      "Examples",
                      "See also",
                      "See Also",
                      ]
"""Section headings at which command-line help is truncated"""

role_pattern = re.compile(r"(?P<spacing>^|\s+|\()(?::(?P<domain>[^:`<>]+))?:(?P<role>[^:`]*):`~?(?P<argument>[^`<>]+?)(?: +<(?P<pointer>[^`]+)>)?`")
"""Matches roles of the form ``:domain:role:`argument``` or ``:role:`argument```,
capturing the displayed argument"""

subst_pattern = re.compile(r"\|([^|\n]*)\|")
"""Matches substitution tokens of the form ``|substitution|``"""

link_pattern = re.compile(r"`([^`<>]+?)( <[^`]+>)?`_")
"""Matches link references of the forms ```Linkname`_`` and ```Link text <url>`_``"""

literal_pattern = re.compile(r"``([^`]+)``")
"""Matches inline literals of the form ````text````"""

_separator = "\n" + (78*"-") + "\n"


def _section_start(text,heading):
    """Return the position of a numpydoc section `heading` (a line followed
    by an underline of dashes) in `text`, or -1"""
    match = re.search(r"(^|\n)[ \t]*%s[ \t]*\n[ \t]*-{3,}" % re.escape(heading),text)
    return -1 if match is None else match.start()

def shorten_help(inp):
    """Strip markup from a docstring and truncate it at the first section
    listed in :data:`HELP_STOP_SECTIONS`

    Parameters
    ----------
    inp : str
        Docstring

    Returns
    -------
    str
        Cleaned help text, terminated by a newline
    """
    text = role_pattern.sub(r"\g<spacing>\g<argument>",inp)
    text = subst_pattern.sub(r"\g<1>",text)
    text = link_pattern.sub(r"\g<1>",text)
    text = literal_pattern.sub(r"\g<1>",text)

    stops = [_section_start(text,X) for X in HELP_STOP_SECTIONS]
    stops = [X for X in stops if X >= 0]
    end = min(stops) if len(stops) > 0 else len(text)
    return text[:end].strip() + "\n"

def format_module_docstring(inp):
    """Format a module docstring as command-line help, enclosed by separators

    Parameters
    ----------
    inp : str
        Module docstring

    Returns
    -------
    str
    """
    return _separator + "\n" + shorten_help(inp) + "\n" + _separator
