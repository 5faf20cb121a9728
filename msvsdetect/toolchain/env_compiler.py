"""
Detection of a compiler already active in the caller's environment.

When msvs-detect runs from a prompt where vcvarsall has already been run,
cl.exe is on PATH and INCLUDE/LIB are set. This module finds that compiler,
checks it works, and later works out which validated package it belongs to.
"""

import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import List, Mapping, Optional

from msvsdetect.core.environment import get_variable
from msvsdetect.core.filesystem import normalize_windows_path, split_windows_path
from msvsdetect.toolchain.models import (
    DirectoryList,
    EnvironmentCompiler,
    EnvironmentMatch,
    MatchConfidence,
    ValidatedCompiler,
)
from msvsdetect.toolchain.validator import CandidateValidator

logger = logging.getLogger(__name__)

ENVIRONMENT_COMPILER_NAME = "Environment C compiler"

# Substrings of the cl.exe banner identifying its target (case-sensitive)
ARCH_MARKERS = {
    "x86": ("80x86", "for x86"),
    "x64": ("x64", "AMD64"),
}

# Directory names distinguishing host/target variants of one installation
ARCH_SEGMENTS = frozenset(
    {
        "x86",
        "x64",
        "amd64",
        "x86_amd64",
        "amd64_x86",
        "hostx86",
        "hostx64",
    }
)


def parse_banner_arch(banner: str) -> Optional[str]:
    """
    Work out the target architecture from cl.exe's banner.

    Args:
        banner: Text printed by cl.exe when run without arguments

    Returns:
        'x86' or 'x64', or None if the banner names neither or both

    Example:
        >>> parse_banner_arch("Microsoft (R) C/C++ Optimizing Compiler "
        ...                   "Version 19.38.33133 for x64")
        'x64'
    """
    matches = [
        arch
        for arch, markers in ARCH_MARKERS.items()
        if any(marker in banner for marker in markers)
    ]
    return matches[0] if len(matches) == 1 else None


def normalize_compiler_path(path) -> str:
    """
    Normalize a cl.exe location for comparison.

    Lower-cases the path and drops host/target architecture directories, so
    ``bin\\HostX86\\x64\\cl.exe`` and ``bin\\HostX64\\x64\\cl.exe`` compare
    equal.

    Args:
        path: Location of cl.exe

    Returns:
        Normalized path string
    """
    parts = split_windows_path(normalize_windows_path(str(path)))
    return "\\".join(part for part in parts if part not in ARCH_SEGMENTS)


class EnvironmentCompilerDetector:
    """Find and validate the compiler on the caller's PATH."""

    def __init__(
        self,
        validator: Optional[CandidateValidator] = None,
        environ: Optional[Mapping[str, str]] = None,
        timeout: float = 30,
    ):
        """
        Initialize detector.

        Args:
            validator: Validator applied to the live PATH/INCLUDE/LIB
            environ: Environment to inspect (defaults to ``os.environ``)
            timeout: Timeout in seconds for running cl.exe
        """
        self.validator = validator or CandidateValidator()
        self.environ = os.environ if environ is None else environ
        self.timeout = timeout

    def _banner(self, binary: str) -> Optional[str]:
        try:
            result = subprocess.run(
                [binary],
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            logger.warning(f"Timeout running {binary}")
            return None
        except OSError as e:
            logger.warning(f"Failed to run {binary}: {e}")
            return None

        # cl.exe prints its banner on stderr
        return (result.stderr or "") + (result.stdout or "")

    def detect(
        self, require_assembler: bool = False, require_manifest_tool: bool = False
    ) -> Optional[EnvironmentCompiler]:
        """
        Detect the environment compiler.

        Args:
            require_assembler: Also require ml.exe/ml64.exe on PATH
            require_manifest_tool: Also require mt.exe on PATH

        Returns:
            EnvironmentCompiler, or None if there is no usable compiler on PATH
        """
        path_value = get_variable(("PATH", "Path"), self.environ) or ""
        binary = shutil.which("cl", path=path_value)
        if binary is None:
            logger.debug("No compiler on PATH")
            return None

        banner = self._banner(binary)
        if banner is None:
            return None

        arch = parse_banner_arch(banner)
        if arch is None:
            first_line = banner.strip().splitlines()[0] if banner.strip() else ""
            logger.warning(
                f"Ignoring environment compiler {binary}: "
                f"unrecognised banner '{first_line}'"
            )
            return None

        include = get_variable(("INCLUDE", "Include"), self.environ)
        lib = get_variable(("LIB", "Lib"), self.environ)
        if include is None or lib is None:
            logger.info(f"Ignoring environment compiler {binary}: INCLUDE or LIB not set")
            return None

        path_dirs = DirectoryList.parse(path_value)
        include_dirs = DirectoryList.parse(include)
        lib_dirs = DirectoryList.parse(lib)

        result = self.validator.validate(
            path_dirs,
            include_dirs,
            lib_dirs,
            ENVIRONMENT_COMPILER_NAME,
            arch,
            require_assembler=require_assembler,
            require_manifest_tool=require_manifest_tool,
        )
        if not result:
            logger.info(f"Ignoring environment compiler {binary}: validation failed")
            return None

        logger.info(f"Environment compiler: {binary} ({arch})")
        return EnvironmentCompiler(
            binary=Path(binary),
            arch=arch,
            banner=banner.strip().splitlines()[0],
            path=path_dirs,
            include=include_dirs,
            lib=lib_dirs,
            assembler=result.assembler,
        )


def match_environment_compiler(
    environment: Optional[EnvironmentCompiler],
    validated: Mapping[str, ValidatedCompiler],
) -> EnvironmentMatch:
    """
    Identify which validated package the environment compiler belongs to.

    Candidates for the environment compiler's architecture whose cl.exe is
    the same program are strong matches if the live INCLUDE and LIB contain
    all of their directories, weak matches otherwise. Candidates are visited
    in key order so the outcome is reproducible.

    Args:
        environment: Environment compiler (None if there is none)
        validated: Validated compilers keyed by '{package}-{arch}'

    Returns:
        EnvironmentMatch; AMBIGUOUS when several packages match equally well
    """
    if environment is None:
        return EnvironmentMatch()

    target = normalize_compiler_path(environment.binary)
    strong: List[str] = []
    weak: List[str] = []

    for key in sorted(validated):
        compiler = validated[key]
        if compiler.arch != environment.arch:
            continue
        binary = compiler.compiler_binary()
        if binary is None or normalize_compiler_path(binary) != target:
            continue

        if environment.include.contains_all(compiler.include) and environment.lib.contains_all(
            compiler.lib
        ):
            if compiler.package_key not in strong:
                strong.append(compiler.package_key)
        elif compiler.package_key not in weak:
            weak.append(compiler.package_key)

    if len(strong) == 1:
        logger.info(f"Environment compiler is {strong[0]}")
        return EnvironmentMatch(MatchConfidence.STRONG, strong[0])
    if len(strong) > 1:
        logger.warning(
            f"Environment compiler matches several packages equally: {', '.join(strong)}"
        )
        return EnvironmentMatch(MatchConfidence.AMBIGUOUS)
    if len(weak) == 1:
        logger.warning(
            f"Environment compiler appears to be {weak[0]}, "
            f"but INCLUDE and LIB do not match it"
        )
        return EnvironmentMatch(MatchConfidence.WEAK, weak[0])
    if len(weak) > 1:
        logger.warning(
            f"Environment compiler may be any of: {', '.join(weak)}; not identified"
        )
        return EnvironmentMatch(MatchConfidence.AMBIGUOUS)

    logger.info("Environment compiler does not match any detected package")
    return EnvironmentMatch()
