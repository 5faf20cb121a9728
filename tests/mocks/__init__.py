"""
Mock implementations for testing msvs-detect components.

This package provides mock implementations of the registry and of setup
script probing so detection can be tested on any operating system.
"""

from .prober import FakeProber
from .registry import FakeRegistry

__all__ = [
    "FakeProber",
    "FakeRegistry",
]
