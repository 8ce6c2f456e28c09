"""Logging configuration for planlink with custom verbosity levels."""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

# Custom levels between the standard ones
CHANGES_LEVEL = 25  # Between INFO (20) and WARNING (30) - verbosity level 1
CHECKS_LEVEL = 15  # Between DEBUG (10) and INFO (20) - verbosity level 2

logging.addLevelName(CHANGES_LEVEL, "CHANGES")
logging.addLevelName(CHECKS_LEVEL, "CHECKS")

VERBOSITY_SILENT = 0  # Only errors
VERBOSITY_CHANGES = 1  # Edge and date changes
VERBOSITY_CHECKS = 2  # Cycle checks and skipped edges
VERBOSITY_DEBUG = 3  # Per-edge date candidates


class PlanlinkLogger(logging.Logger):
    """Logger with semantic verbosity methods.

    - changes(): verbosity level 1 - edges added/removed, dates moved
    - checks(): verbosity level 2 - cycle checks, duplicate skips
    - debug(): verbosity level 3 - scheduler internals
    """

    def changes(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log changes (verbosity level 1)."""
        if self.isEnabledFor(CHANGES_LEVEL):
            self._log(CHANGES_LEVEL, msg, args, **kwargs)

    def checks(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log checks (verbosity level 2)."""
        if self.isEnabledFor(CHECKS_LEVEL):
            self._log(CHECKS_LEVEL, msg, args, **kwargs)


def get_logger() -> PlanlinkLogger:
    """Get the planlink logger instance (singleton).

    Use setup_logger() to configure it before first use.
    """
    logging.setLoggerClass(PlanlinkLogger)
    logger = logging.getLogger("planlink")
    assert isinstance(logger, PlanlinkLogger)
    return logger


def setup_logger(verbosity: int, stream: TextIO | None = None) -> None:
    """Configure the planlink logger with a verbosity level.

    Can be called multiple times to reconfigure the logger.

    Args:
        verbosity: 0=silent (errors only), 1=changes, 2=checks, 3=debug;
            anything higher is treated as debug
        stream: Optional output stream (defaults to sys.stderr, useful for testing)
    """
    logger = get_logger()
    logger.handlers.clear()

    level_map = {
        VERBOSITY_SILENT: logging.ERROR,
        VERBOSITY_CHANGES: CHANGES_LEVEL,
        VERBOSITY_CHECKS: CHECKS_LEVEL,
        VERBOSITY_DEBUG: logging.DEBUG,
    }
    verbosity = max(VERBOSITY_SILENT, min(verbosity, VERBOSITY_DEBUG))
    logger.setLevel(level_map[verbosity])

    # At debug verbosity the level tells scheduler internals apart from changes
    fmt = "%(levelname)s %(message)s" if verbosity == VERBOSITY_DEBUG else "%(message)s"
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(handler)
    logger.propagate = False
