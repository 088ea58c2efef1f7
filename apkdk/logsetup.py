"""Loggers writing prefixed, timestamped lines to the console or a rolling file."""

from __future__ import annotations

import glob
import gzip
import logging
import logging.handlers
import os
import shutil
import sys
import time
from typing import Iterable, Protocol, runtime_checkable

TRACE_PREFIX = "TRACE:   "
INFO_PREFIX = "INFO:    "
ERROR_PREFIX = "ERROR:   "
WARNING_PREFIX = "WARNING: "

ROLL_MAX_BYTES = 5 * 1024 * 1024
ROLL_MAX_BACKUPS = 500
ROLL_MAX_AGE_DAYS = 14

_TRACE = logging.DEBUG
_PREFIXES = {
    logging.DEBUG: TRACE_PREFIX,
    logging.INFO: INFO_PREFIX,
    logging.WARNING: WARNING_PREFIX,
    logging.ERROR: ERROR_PREFIX,
    logging.CRITICAL: ERROR_PREFIX,
}


@runtime_checkable
class Logger(Protocol):
    """What the rest of the code expects from a logger."""

    def clear(self) -> None: ...

    def info(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def trace(self, message: str) -> None: ...

    def is_trace_enabled(self) -> bool: ...

    def fatal_error(self, message: str) -> None: ...


class DummyLogger:
    """A logger that discards everything."""

    def __init__(self) -> None:
        self._logger = logging.Logger(f"apkdk.null.{id(self)}")
        self._logger.propagate = False
        self._logger.setLevel(_TRACE)
        self._logger.addHandler(logging.NullHandler())

    def clear(self) -> None:
        """Release the discarding handler."""
        for handler in list(self._logger.handlers):
            self._logger.removeHandler(handler)
            handler.close()

    def info(self, message: str) -> None:
        self._logger.log(logging.INFO, message)

    def error(self, message: str) -> None:
        self._logger.log(logging.ERROR, message)

    def warning(self, message: str) -> None:
        self._logger.log(logging.WARNING, message)

    def trace(self, message: str) -> None:
        if self.is_trace_enabled():
            self._logger.log(_TRACE, message)

    def fatal_error(self, message: str) -> None:
        """Discard the message; unlike other loggers this does not exit."""
        self._logger.log(logging.CRITICAL, message)

    def is_trace_enabled(self) -> bool:
        return False


class _LineFormatter(logging.Formatter):
    """Formats ``PREFIX yyyy/mm/dd hh:mm:ss.mmm[ file:line]: message``."""

    def format(self, record: logging.LogRecord) -> str:
        local = time.localtime(record.created)
        date = time.strftime("%Y/%m/%d", local)
        clock = time.strftime("%H:%M:%S", local) + f".{int(record.msecs):03d}"
        message = record.getMessage()
        if record.levelno >= logging.ERROR:
            body = f"{clock} {record.filename}:{record.lineno}: {message}"
        else:
            body = f"{clock}: {message}"
        prefix = _PREFIXES.get(record.levelno, INFO_PREFIX)
        return f"{prefix}{date} {body}"


class LevelLogger:
    """A logger with trace, info, warning and error levels over logging handlers."""

    def __init__(self, handlers: Iterable[logging.Handler], use_trace: bool = False):
        self._use_trace = use_trace
        self._logger = logging.Logger(f"apkdk.{id(self)}")
        self._logger.propagate = False
        self._logger.setLevel(_TRACE if use_trace else logging.INFO)
        formatter = _LineFormatter()
        self._handlers = list(handlers)
        for handler in self._handlers:
            handler.setFormatter(formatter)
            self._logger.addHandler(handler)

    def clear(self) -> None:
        """Close every handler, releasing any open file."""
        for handler in self._handlers:
            self._logger.removeHandler(handler)
            handler.close()
        self._handlers.clear()

    def is_trace_enabled(self) -> bool:
        return self._use_trace

    def trace(self, message: str) -> None:
        if self.is_trace_enabled():
            self._logger.log(_TRACE, message)

    def info(self, message: str) -> None:
        self._logger.log(logging.INFO, message)

    def warning(self, message: str) -> None:
        self._logger.log(logging.WARNING, message)

    def error(self, message: str) -> None:
        """Log an error together with the caller's file and line."""
        self._logger.log(logging.ERROR, message, stacklevel=2)

    def fatal_error(self, message: str) -> None:
        """Log an error with the caller's location, then exit with status 1."""
        self._logger.log(logging.CRITICAL, message, stacklevel=2)
        for handler in self._handlers:
            handler.flush()
        raise SystemExit(1)


def init_default_logging(use_trace: bool) -> LevelLogger:
    """Return a logger writing errors to stderr and everything else to stdout."""
    out = logging.StreamHandler(sys.stdout)
    out.addFilter(lambda record: record.levelno < logging.ERROR)
    err = logging.StreamHandler(sys.stderr)
    err.addFilter(lambda record: record.levelno >= logging.ERROR)
    return LevelLogger([out, err], use_trace)


def _gz_name(name: str) -> str:
    return name + ".gz"


def _prune_old_backups(base: str) -> None:
    limit = time.time() - ROLL_MAX_AGE_DAYS * 24 * 3600
    for path in glob.glob(glob.escape(base) + ".*.gz"):
        try:
            if os.path.getmtime(path) < limit:
                os.remove(path)
        except OSError:
            pass


def _make_rotator(base: str):
    def rotate(source: str, dest: str) -> None:
        with open(source, "rb") as src, gzip.open(dest, "wb") as dst:
            shutil.copyfileobj(src, dst)
        os.remove(source)
        _prune_old_backups(base)

    return rotate


def init_roll_file_logging(file_name: str, use_trace: bool) -> LevelLogger:
    """Return a logger writing to ``file_name``, rolled over at 5 MiB.

    Rolled files are compressed, at most 500 are kept and those older than
    14 days are removed. Raises ``OSError`` if the file cannot be opened.
    """
    with open(file_name, "a", encoding="utf-8"):
        pass
    handler = logging.handlers.RotatingFileHandler(
        file_name,
        mode="a",
        maxBytes=ROLL_MAX_BYTES,
        backupCount=ROLL_MAX_BACKUPS,
        encoding="utf-8",
    )
    handler.namer = _gz_name
    handler.rotator = _make_rotator(handler.baseFilename)
    return LevelLogger([handler], use_trace)