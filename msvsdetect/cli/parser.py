"""
msvs-detect CLI argument parser.

This module implements the command-line interface for msvs-detect using argparse.
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Mapping, Optional

from msvsdetect import __version__
from msvsdetect.config.settings import load_settings
from msvsdetect.core.exceptions import InvalidOptionsError, MsvsDetectError
from msvsdetect.core.log import MAX_VERBOSITY, configure_logging
from msvsdetect.toolchain.catalog import DEFAULT_PREFERENCE
from msvsdetect.toolchain.formatter import FORMATS
from msvsdetect.toolchain.models import ARCHITECTURES

logger = logging.getLogger(__name__)

EPILOG = f"""\
PREFERENCE tokens (';' or space separated, first available wins):
  @          the compiler already active in the environment
  VS14.0     a catalog entry (see --all)
  VS17.*     any installed Visual Studio 17.x, newest first (alias: 17.*)
  VS17.9     a specific Visual Studio 17 minor version
  10.0       Visual Studio 10.0 or any Windows SDK shipping its runtime

Default: {DEFAULT_PREFERENCE}
(overridden by MSVS_PREFERENCE, then by positional arguments)

Exit status: 0 success, 1 no compiler found, 2 invalid invocation.
"""


class CLI:
    """msvs-detect command-line interface."""

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        """
        Initialize CLI with argument parser.

        Args:
            environ: Environment to read settings from (defaults to ``os.environ``)
        """
        self.environ = os.environ if environ is None else environ
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """
        Create argument parser.

        Returns:
            Configured ArgumentParser instance
        """
        parser = argparse.ArgumentParser(
            prog="msvs-detect",
            description="Locate a Microsoft C/C++ toolchain and print the "
            "PATH/INCLUDE/LIB additions needed to use it",
            epilog=EPILOG,
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        parser.add_argument(
            "--version", action="version", version=f"msvs-detect {__version__}"
        )

        mode = parser.add_mutually_exclusive_group()
        mode.add_argument(
            "--all",
            action="store_true",
            help="List every known toolchain and exit",
        )
        mode.add_argument(
            "--installed",
            action="store_true",
            help="List installed, working toolchains and exit",
        )

        parser.add_argument(
            "--arch",
            choices=ARCHITECTURES,
            help="Select a single target architecture [default: x86 and x64]",
        )
        parser.add_argument(
            "--output",
            choices=FORMATS,
            help="Output format (shell|make|data) [default: shell]",
        )
        parser.add_argument(
            "--debug",
            nargs="?",
            type=int,
            const=1,
            default=None,
            choices=range(MAX_VERBOSITY + 1),
            metavar="N",
            help=f"Diagnostic level 0-{MAX_VERBOSITY} on stderr (default when given: 1)",
        )
        parser.add_argument(
            "--with-assembler",
            action="store_true",
            help="Require the assembler and print its name",
        )
        parser.add_argument(
            "--with-mt",
            action="store_true",
            help="Require the manifest tool (mt.exe)",
        )
        parser.add_argument(
            "--config",
            type=Path,
            metavar="PATH",
            help="Path to YAML configuration file (default: $MSVS_DETECT_CONFIG)",
        )
        parser.add_argument(
            "preferences",
            nargs="*",
            metavar="PREFERENCE",
            help="Compiler preference tokens",
        )

        return parser

    def parse_args(self, args: Optional[List[str]] = None):
        """
        Parse command-line arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Parsed arguments namespace
        """
        return self.parser.parse_args(args)

    def run(self, args: Optional[List[str]] = None) -> int:
        """
        Run CLI with given arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Exit code (0 success, 1 no compiler found, 2 invalid invocation)
        """
        parsed_args = self.parse_args(args)

        # Configure logging
        self._configure_logging(parsed_args)

        try:
            return self._dispatch_command(parsed_args)
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130  # Standard exit code for SIGINT
        except MsvsDetectError as e:
            logger.error(f"{e}")
            return e.exit_code

    def _configure_logging(self, args):
        """
        Configure logging based on the --debug level.

        Args:
            args: Parsed arguments with debug level
        """
        configure_logging(args.debug or 0)

    def _check_options(self, args):
        """
        Reject option combinations argparse cannot express.

        Args:
            args: Parsed arguments

        Raises:
            InvalidOptionsError: If options conflict
        """
        if (args.all or args.installed) and args.arch:
            option = "--all" if args.all else "--installed"
            raise InvalidOptionsError(f"{option} cannot be combined with --arch")
        if (args.all or args.installed) and args.preferences:
            raise InvalidOptionsError("Preferences cannot be given when listing toolchains")

    def _dispatch_command(self, args) -> int:
        """
        Dispatch to appropriate command handler.

        Args:
            args: Parsed arguments

        Returns:
            Exit code from command handler
        """
        self._check_options(args)
        settings = load_settings(args.config, self.environ)
        if settings.source is not None:
            logger.info(f"Using configuration {settings.source}")

        if args.all:
            from msvsdetect.cli.commands import listing

            return listing.run_all(args, settings)

        if args.installed:
            from msvsdetect.cli.commands import listing

            return listing.run_installed(args, settings)

        from msvsdetect.cli.commands import detect

        return detect.run(args, settings)


def main():
    """Main entry point for CLI."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
