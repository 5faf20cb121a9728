"""
Logging configuration for msvs-detect.

The ``--debug`` option takes a level from 0 to 4. Levels 3 and 4 map onto two
extra logging levels below DEBUG used for probe command lines and for the raw
output of child processes.
"""

import logging
import sys

TRACE = 5
RAW = 1

logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(RAW, "RAW")

VERBOSITY_LEVELS = {
    0: logging.WARNING,
    1: logging.INFO,
    2: logging.DEBUG,
    3: TRACE,
    4: RAW,
}

MAX_VERBOSITY = max(VERBOSITY_LEVELS)


def level_for_verbosity(verbosity: int) -> int:
    """
    Map a ``--debug`` level onto a logging level.

    Args:
        verbosity: Debug level (values outside 0-4 are clamped)

    Returns:
        Logging level
    """
    verbosity = max(0, min(verbosity, MAX_VERBOSITY))
    return VERBOSITY_LEVELS[verbosity]


def configure_logging(verbosity: int) -> None:
    """
    Configure root logging for the command line.

    Diagnostics always go to stderr: stdout carries the variable assignments
    that callers ``eval``.

    Args:
        verbosity: Debug level from 0 (warnings only) to 4 (raw child output)
    """
    level = level_for_verbosity(verbosity)
    if level < logging.INFO:
        format_str = "%(levelname)s [%(name)s] %(message)s"
    else:
        format_str = "%(levelname)s: %(message)s"

    logging.basicConfig(
        level=level,
        format=format_str,
        stream=sys.stderr,
        force=True,  # Reconfigure if already configured
    )
