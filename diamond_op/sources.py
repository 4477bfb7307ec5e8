"""
Input source descriptors for the diamond operator.

Each command line argument is resolved exactly once into either a :class:`NamedFile` or :class:`StandardInput`, so the
``-`` special case never needs to be re-checked while reading.

:author: Doug Skrypa
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from io import TextIOBase
from os import PathLike, fspath
from typing import BinaryIO, Iterable, Optional, Union

from .exceptions import OpenFailure

__all__ = ['SourceDescriptor', 'NamedFile', 'StandardInput', 'STDIN', 'STDIN_MARKER', 'parse_sources']

STDIN_MARKER = '-'

Arg = Union[str, bytes, PathLike]


class SourceDescriptor:
    """A single configured input source"""

    __slots__ = ()
    #: Whether the stream returned by :meth:`.open` belongs to the reader and must be closed by it
    owned: bool = True

    @property
    def name(self) -> str:
        raise NotImplementedError

    def open(self, stdin: Optional[BinaryIO] = None) -> BinaryIO:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class NamedFile(SourceDescriptor):
    path: Arg

    @property
    def name(self) -> str:
        path = fspath(self.path)
        return path.decode(sys.getfilesystemencoding(), 'surrogateescape') if isinstance(path, bytes) else path

    def open(self, stdin: Optional[BinaryIO] = None) -> BinaryIO:
        try:
            return open(self.path, 'rb')
        except OSError as e:
            raise OpenFailure(self.path, e) from e


@dataclass(frozen=True)
class StandardInput(SourceDescriptor):
    owned = False

    @property
    def name(self) -> str:
        return STDIN_MARKER

    def open(self, stdin: Optional[BinaryIO] = None) -> BinaryIO:
        if stdin is not None:
            return stdin
        # sys.stdin is looked up at open time so that it may be replaced after the reader is created
        stream = getattr(sys.stdin, 'buffer', sys.stdin)
        if stream is None or isinstance(stream, TextIOBase):
            error = TypeError(f'stdin is not a binary stream: {stream!r}')
            raise OpenFailure(STDIN_MARKER, error) from error
        return stream


STDIN = StandardInput()


def parse_sources(args: Iterable[Arg]) -> list[SourceDescriptor]:
    """
    :param args: Positional command line arguments.  The literal string ``-`` represents stdin; all other values are
      treated as file paths.
    :return: The descriptors for the given arguments, in the same order, or a single :class:`StandardInput`
      descriptor if no arguments were provided
    """
    sources = [STDIN if arg == STDIN_MARKER else NamedFile(arg) for arg in args]
    return sources or [STDIN]
