"""
Perl-like diamond operator: read lines from the files and stdin (``-``) named in command line arguments, or from stdin
if no arguments were given.

Example::

    from diamond_op import Diamond

    for line in Diamond():
        print(line, end='')

:author: Doug Skrypa
"""

from .__version__ import __author__, __version__  # noqa
from .config import ReaderConfig
from .diamond import Diamond, diamond
from .exceptions import DiamondError, OpenFailure, ReadFailure
from .sources import SourceDescriptor, NamedFile, StandardInput, parse_sources

__all__ = [
    'Diamond', 'diamond', 'ReaderConfig', 'DiamondError', 'OpenFailure', 'ReadFailure', 'SourceDescriptor', 'NamedFile',
    'StandardInput', 'parse_sources', 'new',
]


def new(*args, **kwargs) -> Diamond:
    """Returns a new :class:`Diamond` instance.  Accepts the same arguments as :class:`Diamond`."""
    return Diamond(*args, **kwargs)
