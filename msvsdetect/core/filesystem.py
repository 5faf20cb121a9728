"""
File system helpers for msvs-detect.

Provides the file probe used to validate toolchains (does a file exist in any
of a list of directories?), Windows path normalization for comparing compiler
locations, and a self-cleaning temporary directory for probe scripts.
"""

import os
import re
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Optional

IS_WINDOWS = os.name == "nt"

_SEPARATORS = re.compile(r"[\\/]+")


# ============================================================================
# File Probe
# ============================================================================


def find_file(directories: Optional[Iterable[str]], filename: str) -> Optional[Path]:
    """
    Find the first directory in a search list which contains a file.

    Nonexistent directories, empty entries and an empty or missing list
    simply fail to match; this never raises.

    Args:
        directories: Ordered directories to search (None treated as empty)
        filename: File name to look for

    Returns:
        Path to the file in the first matching directory, or None

    Example:
        >>> find_file(["C:\\\\VC\\\\bin", "C:\\\\Windows"], "cl.exe")
        WindowsPath('C:/VC/bin/cl.exe')
    """
    if not directories:
        return None

    for directory in directories:
        if not directory:
            continue
        candidate = Path(directory) / filename
        try:
            if candidate.is_file():
                return candidate
        except OSError:
            continue

    return None


def file_exists_in(directories: Optional[Iterable[str]], filename: str) -> bool:
    """
    Check whether a file exists in any of a list of directories.

    Args:
        directories: Ordered directories to search
        filename: File name to look for

    Returns:
        True if the file was found
    """
    return find_file(directories, filename) is not None


# ============================================================================
# Path Utilities
# ============================================================================


def split_windows_path(path: str) -> list:
    """
    Split a Windows path into its components, accepting either separator.

    Args:
        path: Path string

    Returns:
        List of non-empty path components
    """
    return [part for part in _SEPARATORS.split(path) if part]


def normalize_windows_path(path: str) -> str:
    """
    Normalize a Windows path for case-insensitive comparison.

    Lower-cases the path, unifies separators on backslash and collapses
    ``.`` and ``..`` components.

    Args:
        path: Path string

    Returns:
        Normalized path string

    Example:
        >>> normalize_windows_path("C:/VS/Common7/Tools/../../VC/bin")
        'c:\\\\vs\\\\vc\\\\bin'
    """
    parts = []
    for part in split_windows_path(path.lower()):
        if part == ".":
            continue
        if part == ".." and parts:
            parts.pop()
            continue
        parts.append(part)
    return "\\".join(parts)


# ============================================================================
# Temporary Files
# ============================================================================


@contextmanager
def temporary_directory(prefix: str = "msvs-detect-", cleanup: bool = True):
    """
    Context manager for temporary directory with automatic cleanup.

    Args:
        prefix: Prefix for temp directory name
        cleanup: If True, remove directory on exit

    Yields:
        Path to temporary directory
    """
    temp_dir = Path(tempfile.mkdtemp(prefix=prefix))

    try:
        yield temp_dir
    finally:
        if cleanup and temp_dir.exists():
            shutil.rmtree(temp_dir, ignore_errors=True)


__all__ = [
    "IS_WINDOWS",
    "find_file",
    "file_exists_in",
    "split_windows_path",
    "normalize_windows_path",
    "temporary_directory",
]
