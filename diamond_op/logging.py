"""
Facilitates configuring loggers with custom settings for diamond_op entry points

:author: Doug Skrypa
"""

from __future__ import annotations

import logging
import signal
import sys
from datetime import datetime
from logging import LogRecord, Logger, StreamHandler, Filter, Formatter
from threading import RLock
from typing import Optional, Union, Collection, Iterable, Callable

from tzlocal import get_localzone

__all__ = ['init_logging', 'ENTRY_FMT_DETAILED', 'DatetimeFormatter', 'create_filter']

ENTRY_FMT_DETAILED = '%(asctime)s %(levelname)s %(threadName)s %(name)s %(lineno)d %(message)s'
DATE_FMT = '%Y-%m-%d %H:%M:%S %Z'

_NotSet = object()
_lock = RLock()
_stream_refs = set()

Verbosity = Union[int, bool, None]
OptStrs = Optional[Collection[str]]


def init_logging(verbosity: Verbosity = 0, *, names: OptStrs = _NotSet, stdout: bool = True):
    """
    Configures stream handlers for stdout and stderr so that logs with level logging.INFO and below are sent to stdout
    and logs with level logging.WARNING and above are sent to stderr.  Any handlers that were previously configured on
    the given loggers are replaced.

    The verbosity argument affects the log level that is set for stdout:
    - 0: 20 = logging.INFO (default)
    - 1: 19 = custom 'verbose' log level
    - 2: 10 = logging.DEBUG
    - 3: 9
    - 12: 0 = highest verbosity

    :param verbosity: Higher values increase stream output verbosity.  Default (0) results in only allowing
      logging.INFO messages and above to be written.
    :param names: The names of the loggers for which handlers should be configured.  If set to None, or if not specified
      and ``verbosity`` > 10, then the root logger will be configured.  If not specified and ``verbosity`` < 10, then
      the loggers for ``__main__`` and for the base package of this module are configured.
    :param stdout: Send messages below logging.WARNING to stdout (default: True).  If False, all messages are sent to
      stderr, which leaves stdout free for a program's output.
    """
    try:
        signal.signal(signal.SIGPIPE, signal.SIG_DFL)   # Prevent error when piping output
    except AttributeError:
        pass                                            # Does not work in Windows
    logging.StreamHandler.emit = _stream_handler_emit_quiet

    _configure_level_names()

    loggers = _get_loggers(names, verbosity)
    root_logger = logging.getLogger()
    if root_logger in loggers:
        root_logger.addHandler(logging.NullHandler())   # Hide logs written directly to the root logger
    root_logger.setLevel(logging.NOTSET)                # Default is 30 / WARNING

    _add_stream_handlers(loggers, verbosity, use_stdout=stdout)


def _stream_level(verbosity: Verbosity) -> int:
    if not verbosity:
        return logging.INFO
    return 19 if verbosity == 1 else max(logging.DEBUG + 2 - verbosity, 0)


def _add_stream_handlers(loggers: Iterable[Logger], verbosity: Verbosity, use_stdout: bool = True):
    entry_fmt = ENTRY_FMT_DETAILED if verbosity and verbosity > 2 else '%(message)s'

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.name = 'stderr'
    if use_stdout:
        stdout_handler = logging.StreamHandler(sys.stdout)
        stdout_handler.setLevel(_stream_level(verbosity))
        stdout_handler.addFilter(create_filter(lambda r: r.levelno < logging.WARNING))
        stdout_handler.name = 'stdout'
        stderr_handler.setLevel(logging.INFO)
        stderr_handler.addFilter(create_filter(lambda r: r.levelno >= logging.WARNING))
        stream_handlers = (stdout_handler, stderr_handler)
    else:
        stderr_handler.setLevel(_stream_level(verbosity))
        stream_handlers = (stderr_handler,)

    stream_formatter = DatetimeFormatter(entry_fmt, DATE_FMT)
    for handler in stream_handlers:
        handler.setFormatter(stream_formatter)
    for logger in loggers:
        for handler in stream_handlers:
            logger.addHandler(handler)


def _get_logger_names(names: OptStrs = _NotSet, verbosity: Verbosity = 0) -> set[Optional[str]]:
    if names is _NotSet:
        if verbosity and verbosity > 10:
            names = {None}
        else:
            names = {__name__.split('.')[0], '__main__'}
    elif names is None or isinstance(names, str):
        names = {names}
    else:
        names = set(names)

    if None in names:
        names = {None}

    return names


def _get_loggers(names: OptStrs, verbosity: Verbosity) -> list[Logger]:
    loggers = list(map(logging.getLogger, _get_logger_names(names, verbosity)))
    for logger in loggers:
        logger.setLevel(logging.NOTSET)  # Let handlers deal with log levels
        with _lock:  # Prevent stdout/stderr from being closed
            _stream_refs.update(h.stream for h in logger.handlers if isinstance(h, logging.StreamHandler))
        logger.handlers = []

    return loggers


def _configure_level_names():
    lvl_names = {lvl: f'DBG_{lvl}' for lvl in range(1, 10)}
    lvl_names.update({lvl: f'Lv_{lvl}' for lvl in range(11, 19)})
    lvl_names[19] = 'VERBOSE'
    for lvl, name in lvl_names.items():
        if (name not in logging._nameToLevel) and (lvl not in logging._levelToName):  # noqa
            logging.addLevelName(lvl, name)


def create_filter(filter_fn: Callable[[LogRecord], bool]) -> Filter:
    """
    Uses the given function to filter log entries based on level number.  The function should return True if the
    record should be logged, or False to ignore it.

    :param filter_fn: A function that takes 1 parameter (record) and returns a boolean
    :return: A custom, initialized subclass of logging.Filter using the given filter function
    """
    class CustomLogFilter(Filter):
        def filter(self, record: LogRecord) -> bool:
            return filter_fn(record)

    return CustomLogFilter()


class DatetimeFormatter(Formatter):
    """Formats timestamps in the local time zone, and enables use of ``%f`` (micro/milliseconds) in datetime formats."""
    _local_tz = get_localzone()

    def formatTime(self, record: LogRecord, datefmt: str = None) -> str:
        dt = datetime.fromtimestamp(record.created, self._local_tz)
        if datefmt:
            return dt.strftime(datefmt)
        else:
            return self.default_msec_format % (dt.strftime(self.default_time_format), record.msecs)


def _stream_handler_emit_quiet(self: StreamHandler, record: LogRecord):
    # This monkey patch is to fix handling of piped output on Windows
    try:
        msg = self.format(record)
        stream = self.stream
        # issue 35046: merged two stream.writes into one.
        stream.write(msg + self.terminator)
        self.flush()
    except RecursionError:  # See issue 36272
        raise
    except (BrokenPipeError, OSError):  # Occurs when using |head
        pass
    except Exception:  # noqa
        self.handleError(record)
