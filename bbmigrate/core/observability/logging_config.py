"""
Logging setup for the bbmigrate CLI.

A run's console output is its operation log: one line per fixed,
rejected or flagged post, then the totals. Those lines are written bare
so they can be grepped and diffed between runs. Errors get an
``ERROR:`` prefix; warning lines already carry their own ``WARNING:``.

``-v``/``--debug`` switch to a diagnostic format that names the module
each line came from. ``BBM_LOG_FILE`` tees everything to a file with
timestamps, at ``BBM_LOG_FILE_LEVEL`` (default: the console level).
"""

from __future__ import annotations

import logging
import os
import sys

LEVEL_ENV = "BBM_LOG_LEVEL"
FILE_ENV = "BBM_LOG_FILE"
FILE_LEVEL_ENV = "BBM_LOG_FILE_LEVEL"

DEFAULT_LEVEL = "INFO"

_DIAGNOSTIC_FORMAT = "%(asctime)s %(levelname).1s %(module)s: %(message)s"
_DIAGNOSTIC_DATEFMT = "%H:%M:%S"
_FILE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


class OperationFormatter(logging.Formatter):
    """Bare message lines; ``ERROR:`` in front of errors."""

    def formatMessage(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if record.levelno >= logging.ERROR:
            return f"ERROR: {message}"
        return message


def resolve_level(verbose: bool = False, quiet: bool = False) -> str:
    """CLI flags win over ``BBM_LOG_LEVEL``, which wins over INFO."""
    if verbose:
        return "DEBUG"
    if quiet:
        return "ERROR"
    return os.environ.get(LEVEL_ENV) or DEFAULT_LEVEL


def setup_logging(
    level: str = DEFAULT_LEVEL,
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Replace the root logger's handlers with the bbmigrate ones.

    ``log_file``/``log_file_level`` default to the ``BBM_LOG_FILE`` and
    ``BBM_LOG_FILE_LEVEL`` environment variables.
    """
    console_level = _parse_level(level)
    log_file = log_file or os.environ.get(FILE_ENV)
    log_file_level = log_file_level or os.environ.get(FILE_LEVEL_ENV)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    if console_level <= logging.DEBUG:
        console.setFormatter(logging.Formatter(_DIAGNOSTIC_FORMAT, _DIAGNOSTIC_DATEFMT))
    else:
        console.setFormatter(OperationFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    root_level = console_level

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setLevel(file_level)
        handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        root.addHandler(handler)
        root_level = min(root_level, file_level)

    root.setLevel(root_level)


def _parse_level(level: str | None) -> int:
    """Level name to its number; unknown names mean INFO."""
    numeric = logging.getLevelName(level.upper()) if level else None
    return numeric if isinstance(numeric, int) else logging.INFO
