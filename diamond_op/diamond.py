"""
Imitates the ``<>`` diamond operator from Perl.

Lines are read from each file named in the given arguments (or ``sys.argv[1:]``) in order, with ``-`` representing
stdin at that position.  If no arguments are given, all input is read from stdin.

Note: On Windows, EOF = [ctrl]+[z] (followed by [enter])

:author: Doug Skrypa
"""

from __future__ import annotations

import sys
from collections import deque
from io import BufferedIOBase
from typing import BinaryIO, Callable, Iterable, Iterator, Optional, TypeVar, Union

from .config import ReaderConfig
from .exceptions import DiamondError, ReadFailure
from .sources import Arg, SourceDescriptor, parse_sources

__all__ = ['Diamond', 'diamond']

Delimiter = Union[bytes, int]
T = TypeVar('T')


class Diamond:
    """
    Reads lines, like Perl's diamond (``<>``) operator and many Unix filter programs, from the files and stdin (``-``)
    specified by the given arguments, or from stdin if no argument is given.

    Only one source is open at a time.  Named files are closed as soon as they have been fully read; stdin is never
    closed.  Each source's EOF ends the line that was being read, even if that line has no trailing newline.

    :param args: Paths of files to read.  Defaults to ``sys.argv[1:]``.  An empty list results in reading only stdin.
    :param stdin: A binary stream to use in place of ``sys.stdin.buffer``
    :param config: A :class:`ReaderConfig` or mapping with text decoding settings
    :param kwargs: Individual :class:`ReaderConfig` settings that take precedence over the values in ``config``
    """

    def __init__(
        self, args: Iterable[Arg] = None, *, stdin: BinaryIO = None, config: ReaderConfig = None, **kwargs
    ):
        self.config = ReaderConfig(config, **kwargs)
        self._remaining = deque(parse_sources(sys.argv[1:] if args is None else args))
        self._stdin = stdin
        self._current: Optional[BinaryIO] = None
        self.source: Optional[SourceDescriptor] = None  #: The source that is currently open, if any
        self.line_num = 0  #: The number of lines/records that have been read from all sources so far
        self.source_line_num = 0  #: The number of lines/records that have been read from the current source so far

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__}[source={self.source}, remaining={len(self._remaining)}]>'

    @property
    def remaining(self) -> tuple[SourceDescriptor, ...]:
        """The sources that have not been opened yet"""
        return tuple(self._remaining)

    # region Reading

    def read_line(self) -> str:
        """
        Reads the next line from the current source, advancing to the next source when the current one is exhausted.

        :return: The next line, including its line terminator (if present), or an empty string when all sources have
          been exhausted
        :raises OpenFailure: If the next source could not be opened
        :raises ReadFailure: If the current source could not be read or decoded
        """
        return self._read_record(_read_line, self._decode)

    def _decode(self, data: bytes) -> str:
        try:
            return data.decode(self.config.encoding, self.config.errors)
        except UnicodeDecodeError as e:
            raise ReadFailure(self.source, e) from e

    def read_until(self, delimiter: Delimiter = b'\n') -> bytes:
        """
        Reads bytes until the given delimiter byte or the end of the current source is reached.

        :param delimiter: A single byte (or its int value) that ends each record
        :return: The bytes that were read, including the delimiter (if present), or an empty bytes object when all
          sources have been exhausted
        """
        delimiter = _normalize_delimiter(delimiter)
        return self._read_record(lambda stream: _read_until(stream, delimiter))

    def __iter__(self) -> Iterator[str]:
        return self

    def __next__(self) -> str:
        if line := self.read_line():
            return line
        raise StopIteration

    def reader(self) -> BufferedIOBase:
        """
        Returns a reader that treats all sources as a single consolidated stream.  Unlike the other read methods, the
        end of one source does not end the line that was being read from it.

        If a source cannot be opened or read after some data was already read by a call to ``read`` or ``readline``,
        then that data is returned, and the error is raised by the next call.

        The returned reader shares this Diamond's state, so the two should not be read from in an interleaved manner.
        Closing the returned reader closes this Diamond.
        """
        return _SingleStreamReader(self)

    def _read_record(self, read_func: Callable[[BinaryIO], bytes], convert: Callable[[bytes], T] = None) -> T:
        data = self._read(read_func)
        record = convert(data) if convert else data  # A record that fails conversion is not counted
        if data:
            self.line_num += 1
            self.source_line_num += 1
        return record

    def _read(self, read_func: Callable[[BinaryIO], bytes]) -> bytes:
        while True:
            if self._current is not None:
                try:
                    data = read_func(self._current)
                except (OSError, ValueError) as e:
                    raise ReadFailure(self.source, e) from e
                if data:
                    return data
                self._release()
            elif self._remaining:
                # The source is consumed even if it can't be opened, so a later call will continue with the next one
                source = self._remaining.popleft()
                self._current = source.open(self._stdin)
                self.source = source
                self.source_line_num = 0
            else:
                return b''

    # endregion

    # region Resource Management

    def _release(self):
        current, self._current = self._current, None
        if current is not None and self.source.owned:
            current.close()
        self.source = None
        self.source_line_num = 0

    def close(self):
        """Closes the current source (unless it is stdin) and discards any sources that have not been read yet."""
        self._remaining.clear()
        self._release()

    def __enter__(self) -> Diamond:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    # endregion


class _SingleStreamReader(BufferedIOBase):
    def __init__(self, diamond_reader: Diamond):
        self._diamond = diamond_reader
        self._error: Optional[DiamondError] = None

    def readable(self) -> bool:
        return True

    def read(self, size: Optional[int] = -1) -> bytes:
        return self._read_parts(_read_chunk, -1 if size is None else size)

    def read1(self, size: int = -1) -> bytes:
        self._raise_pending()
        return self._diamond._read(lambda stream: _read_chunk(stream, size))

    def readline(self, size: Optional[int] = -1) -> bytes:
        return self._read_parts(lambda stream, limit: stream.readline(limit), -1 if size is None else size, b'\n')

    def _read_parts(self, read_func: Callable[[BinaryIO, int], bytes], size: int, end: bytes = None) -> bytes:
        self._raise_pending()
        buf = bytearray()
        while size < 0 or len(buf) < size:
            remaining = -1 if size < 0 else size - len(buf)
            try:
                data = self._diamond._read(lambda stream: read_func(stream, remaining))
            except DiamondError as e:
                if not buf:
                    raise
                self._error = e  # Raised by the next call so the data that was read is not lost
                break
            if not data:
                break
            buf += data
            if end and buf.endswith(end):
                break
        return bytes(buf)

    def _raise_pending(self):
        if (error := self._error) is not None:
            self._error = None
            raise error

    def close(self):
        if not self.closed:
            self._diamond.close()
        super().close()


def _read_line(stream: BinaryIO) -> bytes:
    return stream.readline()


def _read_chunk(stream: BinaryIO, size: int) -> bytes:
    try:
        read1 = stream.read1
    except AttributeError:
        return stream.read(size)
    return read1(size)


def _read_until(stream: BinaryIO, delimiter: bytes) -> bytes:
    if delimiter == b'\n':
        return stream.readline()

    try:
        peek = stream.peek
    except AttributeError:  # Not buffered - fall back to reading 1 byte at a time
        buf = bytearray()
        while (char := stream.read(1)) and char != delimiter:
            buf += char
        return bytes(buf + char)

    buf = bytearray()
    while chunk := peek():
        if (index := chunk.find(delimiter)) != -1:
            buf += stream.read(index + 1)
            break
        buf += stream.read(len(chunk))
    return bytes(buf)


def _normalize_delimiter(delimiter: Delimiter) -> bytes:
    if isinstance(delimiter, int):
        return bytes((delimiter,))
    elif isinstance(delimiter, str):
        delimiter = delimiter.encode('utf-8')
    if len(delimiter) != 1:
        raise ValueError(f'Invalid {delimiter=} - expected a single byte')
    return bytes(delimiter)


def diamond(args: Iterable[Arg] = None, *, strip: bool = False, **kwargs) -> Iterator[str]:
    """
    Imitates the <> diamond operator from Perl.

    :param args: Paths of files to read (default: ``sys.argv[1:]``); ``-`` represents stdin
    :param strip: Strip the trailing newline from each line
    :param kwargs: Keyword arguments to pass to :class:`Diamond`
    :return: Generator that yields lines (str) from stdin or the files with the given names
    """
    with Diamond(args, **kwargs) as reader:
        for line in reader:
            yield line[:-1] if strip and line.endswith('\n') else line
