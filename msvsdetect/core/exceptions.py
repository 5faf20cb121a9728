"""
Centralized exception hierarchy for msvs-detect.

Every error the command line can report carries the exit status it maps to,
so the CLI never has to know about individual failure kinds.
"""

from typing import Iterable


# ============================================================================
# Base Exceptions
# ============================================================================


class MsvsDetectError(Exception):
    """Base exception for all msvs-detect errors."""

    exit_code = 1


# ============================================================================
# Configuration Exceptions (exit status 2)
# ============================================================================


class ConfigurationError(MsvsDetectError):
    """Malformed invocation, configuration file or preference list."""

    exit_code = 2


class InvalidOptionsError(ConfigurationError):
    """Raised when command-line options conflict with each other."""

    pass


class PreferenceError(ConfigurationError):
    """Base exception for preference list validation errors."""

    pass


class DuplicatePreferenceError(PreferenceError):
    """Raised when a preference token appears more than once."""

    def __init__(self, token: str):
        self.token = token
        super().__init__(f"Preference list contains {token} more than once")


class UnknownPreferenceError(PreferenceError):
    """Raised when a preference token names nothing in the catalog."""

    def __init__(self, tokens: Iterable[str]):
        self.tokens = list(tokens)
        super().__init__(
            f"Unrecognised compiler preference(s): {', '.join(self.tokens)}"
        )


# ============================================================================
# Resolution Exceptions (exit status 1)
# ============================================================================


class ResolutionError(MsvsDetectError):
    """Base exception for failures to pick a compiler."""

    exit_code = 1


class NoCompilerFoundError(ResolutionError):
    """Raised when no candidate satisfies the preference list."""

    def __init__(self, message: str = "No compiler could be found"):
        super().__init__(message)


# ============================================================================
# Probe Exceptions (internal, never reach the CLI)
# ============================================================================


class ProbeError(MsvsDetectError):
    """Raised when a setup script cannot be run or produced no output."""

    pass
