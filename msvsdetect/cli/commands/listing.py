"""
Listing commands: ``--all`` and ``--installed``.
"""

import logging
from typing import List

from msvsdetect.config.settings import Settings
from msvsdetect.cli.commands.detect import build_detector
from msvsdetect.toolchain.catalog import PACKAGES
from msvsdetect.toolchain.detector import DetectionResult
from msvsdetect.toolchain.env_compiler import ENVIRONMENT_COMPILER_NAME
from msvsdetect.toolchain.models import ARCHITECTURES, validated_key

logger = logging.getLogger(__name__)


def catalog_lines() -> List[str]:
    """One ``KEY: name`` line per catalog entry, in catalog order."""
    return [f"{package.key}: {package.name}" for package in PACKAGES]


def installed_lines(result: DetectionResult) -> List[str]:
    """
    Describe every installation validated for at least one architecture.

    Args:
        result: Detection result

    Returns:
        Output lines, sorted by key; the environment compiler comes first
    """
    lines = []

    if result.environment is not None:
        line = f"@: {ENVIRONMENT_COMPILER_NAME} ({result.environment.arch})"
        if result.match.identified:
            line += f" = {result.match.key}"
        lines.append(line)

    for key in sorted(result.installations):
        installation = result.installations[key]
        archs = [
            arch for arch in ARCHITECTURES if validated_key(key, arch) in result.validated
        ]
        if not archs:
            logger.debug(f"{key} not listed: no architecture validated")
            continue
        version = f" {installation.version}" if installation.version else ""
        lines.append(f"{key}: {installation.name}{version} ({', '.join(archs)})")

    return lines


def run_all(args, settings: Settings) -> int:
    """
    List the catalog.

    Args:
        args: Parsed command-line arguments
        settings: Settings from the configuration file and environment

    Returns:
        Exit code (always 0)
    """
    for line in catalog_lines():
        print(line)
    return 0


def run_installed(args, settings: Settings) -> int:
    """
    List installed toolchains which passed validation.

    Args:
        args: Parsed command-line arguments
        settings: Settings from the configuration file and environment

    Returns:
        Exit code (always 0)
    """
    detector = build_detector(
        settings,
        with_assembler=args.with_assembler or settings.with_assembler,
        with_mt=args.with_mt or settings.with_mt,
    )
    for line in installed_lines(detector.detect_installed()):
        print(line)
    return 0
