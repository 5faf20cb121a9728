"""
Toolchain detection module for msvs-detect.

This module provides functionality for:
- The catalog of known Visual Studio and Windows SDK generations
- Discovery of installed toolchains (registry, environment, vswhere)
- Running setup scripts and validating the environment they produce
- Identifying the compiler already active in the environment
- Preference resolution and output formatting
"""

from msvsdetect.toolchain.catalog import (
    CATALOG,
    DEFAULT_PREFERENCE,
    ENVIRONMENT_MARKER,
    PACKAGES,
    get_package,
)
from msvsdetect.toolchain.detector import CompilerDetector, DetectionResult
from msvsdetect.toolchain.enumerator import CandidateEnumerator, parse_vswhere_output
from msvsdetect.toolchain.env_compiler import (
    EnvironmentCompilerDetector,
    match_environment_compiler,
    parse_banner_arch,
)
from msvsdetect.toolchain.formatter import OutputFormatter, format_assignment
from msvsdetect.toolchain.models import (
    ARCHITECTURES,
    CompilerPackage,
    DirectoryList,
    EnvironmentCompiler,
    EnvironmentMatch,
    FoundInstallation,
    MatchConfidence,
    ValidatedCompiler,
)
from msvsdetect.toolchain.prober import EnvironmentProber, ProbeResult
from msvsdetect.toolchain.registry import RegistryReader
from msvsdetect.toolchain.resolver import (
    PreferenceResolver,
    Resolution,
    parse_preferences,
)
from msvsdetect.toolchain.validator import CandidateValidator, ValidationResult

__all__ = [
    # Catalog
    "CATALOG",
    "DEFAULT_PREFERENCE",
    "ENVIRONMENT_MARKER",
    "PACKAGES",
    "get_package",
    # Models
    "ARCHITECTURES",
    "CompilerPackage",
    "DirectoryList",
    "EnvironmentCompiler",
    "EnvironmentMatch",
    "FoundInstallation",
    "MatchConfidence",
    "ValidatedCompiler",
    # Discovery
    "CandidateEnumerator",
    "RegistryReader",
    "parse_vswhere_output",
    # Probing and validation
    "EnvironmentProber",
    "ProbeResult",
    "CandidateValidator",
    "ValidationResult",
    # Environment compiler
    "EnvironmentCompilerDetector",
    "match_environment_compiler",
    "parse_banner_arch",
    # Selection and output
    "PreferenceResolver",
    "Resolution",
    "parse_preferences",
    "OutputFormatter",
    "format_assignment",
    # Detector
    "CompilerDetector",
    "DetectionResult",
]
