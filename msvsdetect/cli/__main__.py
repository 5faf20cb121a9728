"""
Entry point for running the msvs-detect CLI as a module.

Usage: python -m msvsdetect.cli [options] [PREFERENCE ...]
"""

from .parser import main

if __name__ == "__main__":
    main()
