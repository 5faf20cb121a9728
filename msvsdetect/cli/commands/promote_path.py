"""
msvs-promote-path: put the Microsoft linker ahead of other ``link`` programs.

Cygwin and MSYS2 ship a coreutils ``link.exe``. When its directory comes
first on PATH, builds invoke it instead of the Microsoft linker. This command
finds the first PATH directory holding the Microsoft ``link.exe`` (one which
also holds ``cl.exe``) and, if another ``link.exe`` shadows it, prints a new
PATH with the Microsoft directory moved in front of the shadowing one::

    eval $(msvs-promote-path)
"""

import argparse
import logging
import os
import sys
from typing import List, Optional, Sequence

from msvsdetect import __version__
from msvsdetect.core.exceptions import MsvsDetectError, NoCompilerFoundError
from msvsdetect.core.filesystem import file_exists_in
from msvsdetect.core.log import MAX_VERBOSITY, configure_logging
from msvsdetect.toolchain.formatter import format_assignment

logger = logging.getLogger(__name__)

LINKER = "link.exe"
COMPILER = "cl.exe"


def _has(directory: str, filename: str) -> bool:
    return file_exists_in([directory], filename)


def promote_linker(entries: Sequence[str]) -> Optional[List[str]]:
    """
    Reorder PATH entries so the Microsoft linker is found first.

    Args:
        entries: PATH directories in search order

    Returns:
        Reordered entries, or None if the linker is already first

    Raises:
        NoCompilerFoundError: If no Microsoft link.exe is on PATH
    """
    entries = list(entries)

    msvc = next(
        (
            index
            for index, entry in enumerate(entries)
            if _has(entry, LINKER) and _has(entry, COMPILER)
        ),
        None,
    )
    if msvc is None:
        raise NoCompilerFoundError(f"No Microsoft {LINKER} found on PATH")

    shadow = next(
        (index for index, entry in enumerate(entries[:msvc]) if _has(entry, LINKER)),
        None,
    )
    if shadow is None:
        logger.info(f"{LINKER} in {entries[msvc]} is already first on PATH")
        return None

    logger.info(f"Moving {entries[msvc]} ahead of {entries[shadow]}")
    directory = entries.pop(msvc)
    entries.insert(shadow, directory)
    return entries


def run(args, environ=None) -> int:
    """
    Run msvs-promote-path.

    Args:
        args: Parsed command-line arguments
        environ: Environment to read PATH from (defaults to ``os.environ``)

    Returns:
        Exit code (0 for success)
    """
    if environ is None:
        environ = os.environ

    separator = args.separator or os.pathsep
    entries = [entry for entry in environ.get("PATH", "").split(separator) if entry]

    promoted = promote_linker(entries)
    if promoted is not None:
        print(format_assignment("PATH", separator.join(promoted), args.output))
    return 0


def create_parser() -> argparse.ArgumentParser:
    """
    Create the msvs-promote-path argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="msvs-promote-path",
        description="Move the Microsoft linker ahead of other link programs on PATH",
    )
    parser.add_argument(
        "--version", action="version", version=f"msvs-promote-path {__version__}"
    )
    parser.add_argument(
        "--output",
        choices=["shell", "make"],
        default="shell",
        help="Output format [default: shell]",
    )
    parser.add_argument(
        "--separator",
        metavar="SEP",
        help=f"PATH separator [default: {os.pathsep!r}]",
    )
    parser.add_argument(
        "--debug",
        nargs="?",
        type=int,
        const=1,
        default=0,
        choices=range(MAX_VERBOSITY + 1),
        metavar="N",
        help=f"Diagnostic level 0-{MAX_VERBOSITY} (default when given: 1)",
    )
    return parser


def main():
    """Entry point for msvs-promote-path."""
    args = create_parser().parse_args()
    configure_logging(args.debug)
    try:
        sys.exit(run(args))
    except MsvsDetectError as e:
        logger.error(f"{e}")
        sys.exit(e.exit_code)


if __name__ == "__main__":
    main()
