"""
Default command: select a compiler and print its variables.

Output goes to stdout only on success, so a failing run never leaves a
partial set of assignments for the caller to ``eval``.
"""

import logging
import sys

from msvsdetect.config.settings import Settings
from msvsdetect.core.exceptions import InvalidOptionsError
from msvsdetect.toolchain.catalog import DEFAULT_PREFERENCE
from msvsdetect.toolchain.detector import CompilerDetector
from msvsdetect.toolchain.enumerator import CandidateEnumerator
from msvsdetect.toolchain.formatter import OutputFormatter
from msvsdetect.toolchain.prober import EnvironmentProber
from msvsdetect.toolchain.resolver import parse_preferences

logger = logging.getLogger(__name__)


def build_detector(
    settings: Settings, with_assembler: bool = False, with_mt: bool = False
) -> CompilerDetector:
    """
    Create a detector configured from settings.

    Args:
        settings: Effective settings
        with_assembler: Require the assembler
        with_mt: Require the manifest tool

    Returns:
        CompilerDetector
    """
    return CompilerDetector(
        enumerator=CandidateEnumerator(vswhere=settings.vswhere),
        prober=EnvironmentProber(timeout=settings.probe_timeout),
        require_assembler=with_assembler,
        require_manifest_tool=with_mt,
    )


def run(args, settings: Settings) -> int:
    """
    Run compiler selection.

    Args:
        args: Parsed command-line arguments
        settings: Settings from the configuration file and environment

    Returns:
        Exit code (0 for success)

    Raises:
        ConfigurationError: If the options or preference list are invalid
        NoCompilerFoundError: If no preferred compiler is available
    """
    arch = args.arch or settings.arch
    output = args.output or settings.output
    with_assembler = args.with_assembler or settings.with_assembler
    with_mt = args.with_mt or settings.with_mt

    if output == "data" and arch is None:
        raise InvalidOptionsError("--output data requires --arch")

    if args.preferences:
        preferences = parse_preferences(args.preferences)
    else:
        preferences = parse_preferences(settings.preference or DEFAULT_PREFERENCE)
    logger.debug(f"Preferences: {';'.join(preferences)}")

    detector = build_detector(settings, with_assembler, with_mt)
    resolution, result = detector.select(preferences, arch)

    formatter = OutputFormatter(output, with_assembler=with_assembler)
    sys.stdout.write(formatter.format(resolution, result.environment, arch))
    return 0
