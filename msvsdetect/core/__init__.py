"""
Core functionality for msvs-detect.

This package contains the foundational modules that other components depend on.
"""

from .environment import get_variable, scoped_environment

from .exceptions import (
    MsvsDetectError,
    ConfigurationError,
    InvalidOptionsError,
    PreferenceError,
    DuplicatePreferenceError,
    UnknownPreferenceError,
    ResolutionError,
    NoCompilerFoundError,
    ProbeError,
)

from .filesystem import (
    IS_WINDOWS,
    file_exists_in,
    find_file,
    normalize_windows_path,
    split_windows_path,
    temporary_directory,
)

from .log import RAW, TRACE, configure_logging, level_for_verbosity

__all__ = [
    # Environment
    "get_variable",
    "scoped_environment",
    # Exceptions
    "MsvsDetectError",
    "ConfigurationError",
    "InvalidOptionsError",
    "PreferenceError",
    "DuplicatePreferenceError",
    "UnknownPreferenceError",
    "ResolutionError",
    "NoCompilerFoundError",
    "ProbeError",
    # Filesystem
    "IS_WINDOWS",
    "file_exists_in",
    "find_file",
    "normalize_windows_path",
    "split_windows_path",
    "temporary_directory",
    # Logging
    "RAW",
    "TRACE",
    "configure_logging",
    "level_for_verbosity",
]
