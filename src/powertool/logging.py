"""
Logging for powertool.

Every module logs through a child of the ``powertool`` logger. The CLI
configures it once per invocation from the ``-v`` count; extension modules
may use :func:`get_logger` with their own name to log under the same root.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

LOGGER_NAME = "powertool"

TERMINAL_FORMAT = "%(levelname)s %(name)s: %(message)s"
DEBUG_FORMAT = (
    "%(asctime)s [%(levelname)s] %(name)s (%(module)s:%(lineno)d): %(message)s"
)

_root_logger = logging.getLogger(LOGGER_NAME)


def _as_level(level: str | int) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.INFO)
    return level


def level_for_verbosity(verbose: int) -> int:
    """Map the number of ``-v`` flags to a log level (0: WARNING, 1: INFO, 2+: DEBUG)."""
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return logging.WARNING


def setup_logging(
    level: str | int = "WARNING",
    stream: TextIO | None = None,
    log_file: str | None = None,
) -> None:
    """
    Configure the ``powertool`` logger.

    Terminal output is terse unless *level* is DEBUG. A *log_file*, when
    given, always records DEBUG with the detailed format so a failed install
    can be inspected afterwards.

    Args:
        level: Terminal log level, name or number
        stream: Terminal stream (defaults to stderr)
        log_file: Optional path to a debug log
    """
    level = _as_level(level)
    for handler in list(_root_logger.handlers):
        _root_logger.removeHandler(handler)
        handler.close()
    _root_logger.setLevel(logging.DEBUG if log_file else level)

    terminal = logging.StreamHandler(stream or sys.stderr)
    terminal.setLevel(level)
    terminal_format = DEBUG_FORMAT if level <= logging.DEBUG else TERMINAL_FORMAT
    terminal.setFormatter(logging.Formatter(terminal_format))
    _root_logger.addHandler(terminal)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(DEBUG_FORMAT))
        _root_logger.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    """Child logger ``powertool.<name>`` (a name already under the root is kept)."""
    if name == LOGGER_NAME or name.startswith(f"{LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def set_level(level: str | int) -> None:
    """Change the level of the ``powertool`` logger and its terminal handler."""
    level = _as_level(level)
    _root_logger.setLevel(level)
    for handler in _root_logger.handlers:
        if not isinstance(handler, logging.FileHandler):
            handler.setLevel(level)
