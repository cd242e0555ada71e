"""Centralized logging configuration for bucketsync.

Provides coloured console output via *colorama*. Library modules only
call :func:`get_logger`; applications call :func:`setup_logging` once.

Usage::

    from bucketsync.util.logger import get_logger

    log = get_logger(__name__)
    log.info("Upload started")
    log.debug("Uploading %s", key)  # only shown with verbose=True
"""

from __future__ import annotations

import logging
import sys

from colorama import Fore, Style

__all__ = ["get_logger", "setup_logging", "ColouredFormatter"]

_LEVEL_COLOURS = {
    logging.DEBUG: Fore.WHITE,
    logging.INFO: Fore.CYAN,
    logging.WARNING: Fore.YELLOW,
    logging.ERROR: Fore.RED,
    logging.CRITICAL: Fore.RED + Style.BRIGHT,
}

_ROOT_LOGGER_NAME = "bucketsync"


class ColouredFormatter(logging.Formatter):
    """Formatter that prepends coloured level tags to log messages."""

    def format(self, record: logging.LogRecord) -> str:
        colour = _LEVEL_COLOURS.get(record.levelno, "")
        msg = super().format(record)
        return f"{colour}[{record.levelname}]{Style.RESET_ALL} {msg}"


def setup_logging(verbose: bool = False, quiet: bool = False) -> logging.Logger:
    """Configure the *bucketsync* logger with a coloured stderr handler.

    Args:
        verbose: If *True*, set level to ``DEBUG``.
        quiet: If *True*, set level to ``WARNING`` (overrides *verbose*).

    Returns:
        The configured root *bucketsync* logger.
    """
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    root = logging.getLogger(_ROOT_LOGGER_NAME)
    root.setLevel(level)

    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(ColouredFormatter("%(name)s: %(message)s"))
        root.addHandler(handler)
    for handler in root.handlers:
        handler.setLevel(level)

    return root


def get_logger(name: str) -> logging.Logger:
    """Return a child logger under the *bucketsync* namespace.

    Unlike :func:`setup_logging`, this never installs handlers, so importing
    the library stays silent until the application opts in.
    """
    if name != _ROOT_LOGGER_NAME and not name.startswith(_ROOT_LOGGER_NAME + "."):
        name = f"{_ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)
