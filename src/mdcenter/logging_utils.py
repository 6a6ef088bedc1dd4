"""Logging utilities for colorized terminal output.

This module provides a ColoredFormatter and setup function for consistent
logging with visual emphasis on warnings and errors in terminal output.
"""

from __future__ import annotations

import logging
import sys


class ColoredFormatter(logging.Formatter):
    """Formatter that adds ANSI color codes for WARNING and ERROR levels.

    Colors are only applied when output is to an interactive terminal (TTY).
    When redirecting to a file or pipe, plain text is used.
    """

    COLORS = {
        logging.WARNING: "\033[93m",  # Yellow
        logging.ERROR: "\033[91m",  # Red
        logging.CRITICAL: "\033[91m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = self.COLORS.get(record.levelno)
        if color and sys.stderr.isatty():
            return f"{color}{message}{self.RESET}"
        return message


def setup_logging(quiet: bool = False, debug: bool = False) -> None:
    """Configure the root logger with colored stderr output.

    Parameters
    ----------
    quiet : bool, optional
        Show warnings and errors only.
    debug : bool, optional
        Show DEBUG messages (takes precedence over ``quiet``).

    Examples
    --------
    >>> from mdcenter.logging_utils import setup_logging
    >>> setup_logging()  # INFO and above
    >>> setup_logging(quiet=True)  # WARNING and above
    """
    if debug:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(ColoredFormatter("%(message)s"))

    logging.root.handlers = []
    logging.root.addHandler(handler)
    logging.root.setLevel(level)

    if not debug:
        suppress_mdanalysis_info()


def suppress_mdanalysis_info() -> None:
    """Suppress verbose MDAnalysis INFO-level log messages.

    MDAnalysis logs reader setup and attribute guessing at INFO level
    ("attribute masses has been guessed successfully" and the like). Only
    its warnings are kept.
    """
    logging.getLogger("MDAnalysis").setLevel(logging.WARNING)
