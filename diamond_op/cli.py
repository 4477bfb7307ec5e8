"""
Command line entry point that prints lines from files and stdin, like a ``cat`` built on the diamond operator.

:author: Doug Skrypa
"""

from __future__ import annotations

import codecs
import logging
import sys
from functools import cached_property, partial
from pathlib import Path
from typing import Callable, Union

from cli_command_parser import Command, ParamGroup, Positional, Option, Flag, Counter, inputs

from .config import ReaderConfig, ConfigException
from .diamond import Diamond
from .exceptions import DiamondError, OpenFailure

__all__ = ['DiamondCat', 'main', 'parse_delimiter']
log = logging.getLogger(__name__)


def parse_delimiter(value: str) -> bytes:
    """
    :param value: A single character, or an escape sequence such as ``\\0``, ``\\t``, or ``\\x1e``
    :return: The single byte that it represents
    """
    if len(value) == 1:
        delimiter = value.encode('utf-8')
    else:
        delimiter = codecs.decode(value, 'unicode_escape').encode('latin-1')
    if len(delimiter) != 1:
        raise ValueError(f'Invalid delimiter={value!r} - expected a single byte')
    return delimiter


class DiamondCat(Command, description='Print lines from files and stdin (-), or only stdin if no files are given'):
    paths = Positional(nargs='*', metavar='PATH', help='Files to read; "-" reads stdin at that position')
    keep_going = Flag('-k', help='Report files that cannot be opened and continue with the next one')
    verbose = Counter('-v', help='Increase logging verbosity (can specify multiple times)')

    with ParamGroup(description='Output Options'):
        number = Flag('-n', help='Prefix each line with its 0-based index')
        with_source = Flag('-S', help='Prefix each line with the name of the file it was read from')

    with ParamGroup(description='Read Mode Options', mutually_exclusive=True):
        delimiter = Option(
            '-d', type=parse_delimiter, help='Split records on the given byte instead of newlines, without decoding them'
        )
        stream = Flag('-s', help='Copy all input as a single stream (ignores --number and --with-source)')

    with ParamGroup(description='Decoding Options'):
        encoding = Option('-e', help='The encoding to use when decoding lines (default: utf-8)')
        errors = Option('-E', help='How decoding errors should be handled (default: strict)')
        config_path: Path = Option(
            '-c', type=inputs.Path(type='file', exists=True), help='A YAML file containing decoding options'
        )

    failures = 0

    def _init_command_(self):
        from .logging import init_logging

        init_logging(self.verbose, stdout=False)

    @cached_property
    def reader_config(self) -> ReaderConfig:
        overrides = {'encoding': self.encoding, 'errors': self.errors}
        if self.config_path:
            return ReaderConfig.from_yaml(self.config_path, **overrides)
        return ReaderConfig(**overrides)

    def main(self):
        try:
            config = self.reader_config
        except ConfigException as e:
            log.error(e)
            sys.exit(1)

        log.debug(f'Reading paths={self.paths} with {config=}')
        with Diamond(self.paths or [], config=config) as reader:
            if self.stream:
                self.copy_stream(reader)
            elif self.delimiter:
                self.print_records(reader, partial(reader.read_until, self.delimiter))
            else:
                self.print_records(reader, reader.read_line)

        if self.failures:
            sys.exit(1)

    def print_records(self, reader: Diamond, read: Callable[[], Union[str, bytes]]):
        binary = self.delimiter is not None
        out = sys.stdout.buffer if binary else sys.stdout
        while True:
            try:
                record = read()
            except DiamondError as e:
                if self._handle_error(e):
                    continue
                break
            if not record:
                break
            if prefix := self._prefix(reader):
                out.write(prefix.encode(reader.config.encoding) if binary else prefix)
            out.write(record)
        out.flush()

    def copy_stream(self, reader: Diamond):
        out = sys.stdout.buffer
        stream = reader.reader()
        while True:
            try:
                chunk = stream.read1()
            except DiamondError as e:
                if self._handle_error(e):
                    continue
                break
            if not chunk:
                break
            out.write(chunk)
        out.flush()

    def _prefix(self, reader: Diamond) -> str:
        prefix = f'[{reader.line_num - 1}] ' if self.number else ''
        if self.with_source:
            prefix = f'{reader.source}:{prefix}'
        return prefix

    def _handle_error(self, error: DiamondError) -> bool:
        """
        :param error: An error that occurred while opening or reading a source
        :return: True if reading should continue with the next source, False otherwise
        """
        self.failures += 1
        log.error(error)
        log.debug(f'Cause: {error.cause!r}')
        return self.keep_going and isinstance(error, OpenFailure)


def main(argv=None):
    DiamondCat.parse_and_run(argv)
