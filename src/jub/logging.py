"""Diagnostic logging for jub.

Everything logs under the ``jub`` logger (``get_logger("watching")`` gives
``jub.watching``). Nothing is emitted until setup_logging() installs a
handler:

- a plain file handler when ``logging.file`` or JUB_LOG names a file
- otherwise a rich handler on stderr, but only when stderr is a terminal

Levels, from quiet to noisy, with their ``-v`` count:

    error (0)  warning (1)  info (2)  verbose (3)  trace (4)

Tagged build output ([Log], [Task name]...) is not logging; it lives in
jub.console.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TYPE_CHECKING

from rich.logging import RichHandler

if TYPE_CHECKING:
    from jub.config.schema import LoggingConfig

TRACE = 5
VERBOSE = 15

logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(VERBOSE, "VERBOSE")

logger = logging.getLogger("jub")

_initialized = False

_NAMED_LEVELS = {
    "trace": TRACE,
    "debug": logging.DEBUG,
    "verbose": VERBOSE,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}

# Index is the -v count
_VERBOSITY = (logging.ERROR, logging.WARNING, logging.INFO, VERBOSE, TRACE)

FILE_FORMAT = "%(asctime)s %(levelname)s: %(name)s: %(message)s"


class _FileFormatter(logging.Formatter):
    """Timestamped lines with lowercase level names."""

    def __init__(self) -> None:
        super().__init__(FILE_FORMAT, datefmt="%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        record.levelname = record.levelname.lower()
        return super().format(record)


def level_for(config: LoggingConfig | None) -> int:
    """Pick the log level. A verbosity count wins over a level name."""
    if config is None:
        return logging.INFO
    if config.verbose is not None:
        return _VERBOSITY[max(0, min(config.verbose, len(_VERBOSITY) - 1))]
    if config.level:
        return _NAMED_LEVELS.get(config.level.lower(), logging.INFO)
    return logging.INFO


def _file_handler(path: str) -> logging.Handler:
    handler = logging.FileHandler(os.path.expanduser(path), mode="a", encoding="utf-8")
    handler.setFormatter(_FileFormatter())
    return handler


def _terminal_handler() -> logging.Handler:
    from jub.console import stderr

    return RichHandler(console=stderr, show_path=False, markup=False, rich_tracebacks=False)


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Install the jub log handler. Only the first call has an effect.

    Args:
        config: Level, verbosity and file settings. JUB_LOG is used as the
            file when config does not name one.
    """
    global _initialized
    if _initialized:
        return
    _initialized = True

    level = level_for(config)
    logger.setLevel(level)

    path = (config.file if config else None) or os.environ.get("JUB_LOG")
    interactive = sys.stderr.isatty()

    handler: logging.Handler | None = None
    if path:
        try:
            handler = _file_handler(path)
        except OSError as e:
            if interactive:
                print(f"[jub] Cannot open log file {path}: {e}", file=sys.stderr)
    if handler is None and interactive:
        handler = _terminal_handler()

    if handler is not None:
        handler.setLevel(level)
        logger.addHandler(handler)


def reset_logging() -> None:
    """Remove installed handlers so setup_logging() can run again."""
    global _initialized
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    _initialized = False


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the ``jub`` logger, or its child ``jub.<name>``."""
    return logger.getChild(name) if name else logger
