"""
Exceptions for the diamond_op package

:author: Doug Skrypa
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from os import PathLike
    from .sources import SourceDescriptor

__all__ = ['DiamondError', 'OpenFailure', 'ReadFailure']


class DiamondError(Exception):
    """Base exception for errors encountered while reading from a diamond operator's sources"""

    def __init__(self, cause: BaseException):
        super().__init__(cause)
        self.cause = cause


class OpenFailure(DiamondError):
    """Exception to be raised when a named file (or stdin) could not be opened for reading"""

    def __init__(self, path: Union[str, bytes, 'PathLike'], cause: Exception):
        super().__init__(cause)
        self.path = path

    def __str__(self) -> str:
        reason = getattr(self.cause, 'strerror', None) or self.cause
        return f'Unable to open {self.path!s} for reading: {reason}'


class ReadFailure(DiamondError):
    """Exception to be raised when an already open source could not be read"""

    def __init__(self, source: 'SourceDescriptor', cause: Exception):
        super().__init__(cause)
        self.source = source

    def __str__(self) -> str:
        return f'Error reading from {self.source}: {self.cause}'
