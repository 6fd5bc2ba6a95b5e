#!/usr/bin/env python
"""Readers and writers that filter text streams.

Readers wrap open file-like objects and filter lines before they reach a parser:

    :class:`AbstractReader`
        Base class for all readers. To create a Reader, subclass this and
        override the :py:meth:`~AbstractReader.filter` method.

    :class:`SkipBlankReader`
        Ignore blank lines

    :class:`CommentReader`
        Ignore and collect comment and header lines, e.g. the `# Program`
        line of featureCounts tables or `track` lines of `BED`_ files

Writers format progress messages before passing them to an output stream,
typically :obj:`sys.stderr`. Writers may be wrapped around any object implementing ``write()``:

    :class:`AbstractWriter`
        Base class for all writers. To create a Writer, subclass this and
        override the :py:meth:`~AbstractWriter.filter` method.

    :class:`ColorWriter`
        Enable ANSI coloring of text to output streams that support color.
        For streams that do not support color, text is not colored.

    :class:`NameDateWriter`
        Prepend program name and timestamp to each line of string input
        before writing. Every script in :mod:`translatome.bin` logs through
        one of these, bound to the module-level name `printer`.

And one convenience function:

    :func:`colored`
        Colorize text (via :func:`termcolor.colored`) if and only
        if color is supported by :obj:`sys.stderr`


Examples
--------
Write to stderr, prepending name and date::

    >>> printer = NameDateWriter("normalize_counts")
    >>> printer.write("Read 20312 features in 48 samples.")
"""
import sys
import datetime
from abc import abstractmethod
from io import IOBase

import termcolor

if hasattr(sys.stderr,"isatty") and sys.stderr.isatty():
    colored = termcolor.colored
else:
    colored = lambda x, **kwargs: str(x)


#===============================================================================
# INDEX: writers
#===============================================================================

class AbstractWriter(IOBase):
    """Abstract base class for stream-writing filters.
    Create a filter by subclassing this, and defining self.filter().

    Parameters
    ----------
    stream : file-like, open for writing
        Output stream to which filtered/formatted data will be written
    """
    def __init__(self,stream):
        self.stream = stream

    def isatty(self):
        return hasattr(self.stream,"isatty") and self.stream.isatty()

    def writable(self):
        return True

    def seekable(self):
        return False

    def readable(self):
        return False

    def write(self,data):
        """Write data to `self.stream`

        Parameters
        ----------
        data : str
            Message to filter and write
        """
        self.stream.write(self.filter(data))

    def flush(self):
        """Flush `self.stream`"""
        self.stream.flush()

    def close(self):
        """Flush and close `self.stream`. Standard streams are flushed but left open."""
        self.flush()
        if self.stream not in (sys.stderr,sys.stdout):
            self.stream.close()

    @abstractmethod
    def filter(self,data):
        """Format a unit of data before it is written. Override in subclasses.

        Parameters
        ----------
        data : str

        Returns
        -------
        str
        """
        pass


class ColorWriter(AbstractWriter):
    """Detect whether output stream supports color, and enable/disable colored output

    Parameters
    ----------
    stream : file-like
        Stream to write to (Default: :obj:`sys.stderr`)
    """
    def __init__(self,stream=None):
        AbstractWriter.__init__(self,stream=sys.stderr if stream is None else stream)
        if self.isatty():
            self.color = termcolor.colored

    def color(self,text,**kwargs):
        """Color `text` with attributes specified in `kwargs` if `stream` supports ANSI color.

        See :func:`termcolor.colored` for usage

        Returns
        -------
        str
        """
        return text

    def filter(self,data):
        return data


class NameDateWriter(ColorWriter):
    """Prepend program name, date, and time to each line of output

    Parameters
    ----------
    name : str
        Name to prepend

    line_delimiter : str, optional
        Delimiter, postpended to lines. (Default `'\\n'`)

    stream : file-like
        Stream to write to (Default: :obj:`sys.stderr`)
    """

    def __init__(self,name,line_delimiter="\n",stream=None):
        ColorWriter.__init__(self,stream=stream)
        self.name = name
        self.delimiter = line_delimiter
        self.fmtstr = "%s %s%s %s%s: {2}%s" % (self.color(name,color="blue",attrs=["bold"]),
                                               self.color("[",color="blue",attrs=["bold"]),
                                               self.color("{0}",color="green"),
                                               self.color("{1}",color="green",attrs=["bold"]),
                                               self.color("]",color="blue",attrs=["bold"]),
                                               self.delimiter
                                              )

    def filter(self,line):
        """Prepend date and time to a line of input

        Parameters
        ----------
        line : str
            Input

        Returns
        -------
        str
            Input with name, date and time prepended
        """
        now = datetime.datetime.now()
        d   = now.strftime("%Y-%m-%d")
        t   = now.strftime("%H:%M:%S")
        return self.fmtstr.format(d,t,str(line).strip(self.delimiter))

    def __call__(self,line):
        self.write(line)


#===============================================================================
# INDEX: readers
#===============================================================================

class AbstractReader(IOBase):
    """Abstract base class for stream-reading filters. These may be wrapped around
    open-file like objects, for example, to remove comments or blank lines from text.

    Create a filter by subclassing this, and defining `self.filter()`

    Parameters
    ----------
    stream : file-like
        Input data
    """

    def __init__(self,stream):
        self.stream = stream

    def isatty(self):
        return hasattr(self.stream,"isatty") and self.stream.isatty()

    def writable(self):
        return False

    def seekable(self):
        return False

    def readable(self):
        return True

    def __next__(self):
        return self.filter(next(self.stream))

    def __iter__(self):
        return self

    def read(self):
        """Process all remaining lines, and return them joined as a single string

        Returns
        -------
        str
        """
        return "".join(self.readlines())

    def readlines(self):
        """Similar to :py:func:`file.readlines`

        Returns
        -------
        list
            processed lines
        """
        return [X for X in self]

    def close(self):
        """Close stream"""
        self.stream.close()

    @abstractmethod
    def filter(self,data):
        """Filter or process each line. Override this in subclasses

        Parameters
        ----------
        data : str
            Line of text

        Returns
        -------
        str
        """
        pass


class SkipBlankReader(AbstractReader):
    """Ignores blank/whitespace-only lines in a text stream"""

    def filter(self,line):
        if len(line.strip()) == 0:
            return self.__next__()
        return line


class CommentReader(AbstractReader):
    """Ignore lines beginning with any of `prefixes`, optionally preceded by
    whitespace. Skipped lines are kept, and may be retrieved with
    :meth:`get_comments`. Comments beginning mid line are left in place.

    Parameters
    ----------
    stream : file-like
        Input data

    prefixes : tuple of str, optional
        Line prefixes that mark comments (Default: `('#',)`)
    """

    def __init__(self,stream,prefixes=("#",)):
        self.comments = []
        self.prefixes = tuple(prefixes)
        AbstractReader.__init__(self,stream)

    def get_comments(self):
        """Return all of the comments that have been found so far

        Returns
        -------
        list
            Comments found in text, stripped of whitespace
        """
        return self.comments

    def filter(self,line):
        """Return next non-comment line of text

        Parameters
        ----------
        line : str
            Line of text

        Returns
        -------
        str
        """
        if line.lstrip().startswith(self.prefixes):
            self.comments.append(line.strip())
            return self.__next__()
        return line
