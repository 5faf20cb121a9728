"""
Entry point for running msvs-detect as a module.

Usage: python -m msvsdetect [options] [PREFERENCE ...]
"""

from msvsdetect.cli.parser import main

if __name__ == "__main__":
    main()
