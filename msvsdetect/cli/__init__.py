"""
msvs-detect CLI module.

This module provides the command-line interface for msvs-detect.
"""

from .parser import CLI, main

__all__ = ["CLI", "main"]
