"""
Logging utilities for prism.

All modules log through children of the ``prism`` logger, so one call to
:func:`setup_logging` configures the whole engine. The CLI renders records
with rich; library callers get plain ``logging`` handlers.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "prism"
DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_root_logger = logging.getLogger(LOGGER_NAME)


def _coerce_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level}")
    return value


def setup_logging(
    level: str | int = "INFO",
    format: str | None = None,
    stream: TextIO | None = None,
    file: str | None = None,
    rich: bool = False,
) -> None:
    """
    Configure the ``prism`` logger, replacing any handlers set up before.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL) or int
        format: Log format for plain and file handlers
        stream: Output stream for the plain handler (defaults to stderr)
        file: Optional file path to also write logs to
        rich: Render console records with rich instead of a plain handler

    Example:
        setup_logging("DEBUG", rich=True)
        setup_logging("INFO", file="prism.log")
    """
    level = _coerce_level(level)
    formatter = logging.Formatter(format or DEFAULT_FORMAT)

    _root_logger.setLevel(level)
    _root_logger.handlers.clear()

    console_handler: logging.Handler
    if rich:
        console_handler = RichHandler(
            console=Console(file=stream or sys.stderr),
            show_path=False,
            markup=False,
        )
    else:
        console_handler = logging.StreamHandler(stream or sys.stderr)
        console_handler.setFormatter(formatter)
    console_handler.setLevel(level)
    _root_logger.addHandler(console_handler)

    if file:
        file_handler = logging.FileHandler(file)
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)
        _root_logger.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    """
    Get the logger for a prism submodule.

    Args:
        name: Submodule name such as ``"files.installer"``; a name already
            under ``prism.`` is used as is
    """
    if name == LOGGER_NAME or name.startswith(f"{LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def set_level(level: str | int) -> None:
    """Change the level of the ``prism`` logger and its handlers."""
    level = _coerce_level(level)
    _root_logger.setLevel(level)
    for handler in _root_logger.handlers:
        handler.setLevel(level)


def _prism_loggers() -> list[logging.Logger]:
    loggers = [_root_logger]
    for name, logger in logging.Logger.manager.loggerDict.items():
        if name.startswith(f"{LOGGER_NAME}.") and isinstance(logger, logging.Logger):
            loggers.append(logger)
    return loggers


def disable() -> None:
    """Silence every prism logger created so far."""
    for logger in _prism_loggers():
        logger.disabled = True


def enable() -> None:
    for logger in _prism_loggers():
        logger.disabled = False
