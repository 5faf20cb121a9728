"""
Compiler detection - ties discovery, probing, validation and selection together.

Control flow is strictly sequential: detect the environment compiler,
enumerate installations, probe and validate each (installation, architecture)
pair, identify the environment compiler, then resolve preferences.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple

from msvsdetect.toolchain.enumerator import CandidateEnumerator
from msvsdetect.toolchain.env_compiler import (
    EnvironmentCompilerDetector,
    match_environment_compiler,
)
from msvsdetect.toolchain.models import (
    ARCHITECTURES,
    EnvironmentCompiler,
    EnvironmentMatch,
    FoundInstallation,
    ValidatedCompiler,
)
from msvsdetect.toolchain.prober import EnvironmentProber
from msvsdetect.toolchain.resolver import PreferenceList, PreferenceResolver, Resolution
from msvsdetect.toolchain.validator import CandidateValidator

logger = logging.getLogger(__name__)


@dataclass
class DetectionResult:
    """
    Everything found during one detection run.

    Attributes:
        environment: Compiler active in the caller's environment, if usable
        match: Which package the environment compiler belongs to
        installations: Enumerated installations keyed by package key
        validated: Validated compilers keyed by '{package}-{arch}'
    """

    environment: Optional[EnvironmentCompiler] = None
    match: EnvironmentMatch = field(default_factory=EnvironmentMatch)
    installations: Dict[str, FoundInstallation] = field(default_factory=dict)
    validated: Dict[str, ValidatedCompiler] = field(default_factory=dict)


class CompilerDetector:
    """
    Detect and select Microsoft C/C++ toolchains.

    Example:
        >>> detector = CompilerDetector()
        >>> resolution, result = detector.select(parse_preferences(DEFAULT_PREFERENCE))
        >>> print(resolution.name)
    """

    def __init__(
        self,
        enumerator: Optional[CandidateEnumerator] = None,
        prober: Optional[EnvironmentProber] = None,
        validator: Optional[CandidateValidator] = None,
        environment_detector: Optional[EnvironmentCompilerDetector] = None,
        resolver: Optional[PreferenceResolver] = None,
        require_assembler: bool = False,
        require_manifest_tool: bool = False,
    ):
        """
        Initialize detector.

        Args:
            enumerator: Discovers installations
            prober: Runs setup scripts
            validator: Checks probed environments
            environment_detector: Finds the compiler already on PATH
            resolver: Applies the preference list
            require_assembler: Reject toolchains without ml.exe/ml64.exe
            require_manifest_tool: Reject toolchains without mt.exe
        """
        self.validator = validator or CandidateValidator()
        self.enumerator = enumerator or CandidateEnumerator()
        self.prober = prober or EnvironmentProber()
        self.environment_detector = environment_detector or EnvironmentCompilerDetector(
            validator=self.validator
        )
        self.resolver = resolver or PreferenceResolver()
        self.require_assembler = require_assembler
        self.require_manifest_tool = require_manifest_tool

    def validate_installation(
        self, installation: FoundInstallation, arch: str
    ) -> Optional[ValidatedCompiler]:
        """
        Probe and validate one installation for one architecture.

        Args:
            installation: Installation to check
            arch: Target architecture

        Returns:
            ValidatedCompiler, or None if the pair is not usable
        """
        if arch not in installation.supported_architectures:
            return None

        logger.debug(f"Probing {installation.name} ({arch}): {installation.invocation(arch)}")
        probe = self.prober.probe(installation.invocation(arch))
        if probe is None:
            logger.info(f"{installation.name} ({arch}) rejected: setup script failed")
            return None

        check = self.validator.validate(
            probe.path,
            probe.include,
            probe.lib,
            installation.name,
            arch,
            require_assembler=self.require_assembler,
            require_manifest_tool=self.require_manifest_tool,
        )
        if not check:
            return None

        return ValidatedCompiler(
            installation=installation,
            arch=arch,
            path=probe.path,
            include=probe.include,
            lib=probe.lib,
            assembler=check.assembler,
            version=probe.version or installation.version,
            runtime_version=probe.runtime_version,
        )

    def validate_all(
        self,
        installations: Dict[str, FoundInstallation],
        architectures: Iterable[str] = ARCHITECTURES,
    ) -> Dict[str, ValidatedCompiler]:
        """
        Validate every installation for each architecture, in key order.

        Args:
            installations: Installations keyed by package key
            architectures: Architectures to validate

        Returns:
            Validated compilers keyed by '{package}-{arch}'
        """
        architectures = tuple(architectures)
        validated: Dict[str, ValidatedCompiler] = {}

        for key in sorted(installations):
            for arch in architectures:
                compiler = self.validate_installation(installations[key], arch)
                if compiler is not None:
                    validated[compiler.key] = compiler

        logger.info(f"Validated {len(validated)} compiler(s)")
        return validated

    def detect(
        self,
        list_installed: bool = False,
        architectures: Iterable[str] = ARCHITECTURES,
    ) -> DetectionResult:
        """
        Run environment detection, enumeration and validation.

        Args:
            list_installed: Keep side-by-side vswhere instances distinct
            architectures: Architectures to validate

        Returns:
            DetectionResult
        """
        environment = self.environment_detector.detect(
            require_assembler=self.require_assembler,
            require_manifest_tool=self.require_manifest_tool,
        )
        installations = self.enumerator.enumerate(list_installed=list_installed)
        validated = self.validate_all(installations, architectures)
        match = match_environment_compiler(environment, validated)

        return DetectionResult(
            environment=environment,
            match=match,
            installations=installations,
            validated=validated,
        )

    def detect_installed(self) -> DetectionResult:
        """Detect every installation, keeping side-by-side instances apart."""
        return self.detect(list_installed=True)

    def select(
        self, preferences: PreferenceList, arch: Optional[str] = None
    ) -> Tuple[Resolution, DetectionResult]:
        """
        Detect compilers and select the preferred one.

        Args:
            preferences: Parsed preference list
            arch: Pinned architecture, or None for both x86 and x64

        Returns:
            Tuple of (Resolution, DetectionResult)

        Raises:
            NoCompilerFoundError: If nothing in the preference list is usable
        """
        architectures = (arch,) if arch else ARCHITECTURES
        result = self.detect(architectures=architectures)
        resolution = self.resolver.resolve(preferences, result.validated, result.match, arch)
        return resolution, result
