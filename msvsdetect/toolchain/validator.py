"""
Toolchain validation.

A toolchain is only usable if its PATH/INCLUDE/LIB contain the compiler, the
Windows SDK and the C runtime. Files are checked in groups so that a failure
reports which capability is missing.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from msvsdetect.core.filesystem import file_exists_in

logger = logging.getLogger(__name__)

ASSEMBLERS = {"x86": "ml.exe", "x64": "ml64.exe"}


@dataclass(frozen=True)
class FileGroup:
    """Files which together provide one capability."""

    name: str
    path: Tuple[str, ...] = ()
    include: Tuple[str, ...] = ()
    lib: Tuple[str, ...] = ()


COMPILER = FileGroup("compiler", path=("cl.exe", "rc.exe", "link.exe"))
SDK = FileGroup("sdk", include=("windows.h",), lib=("kernel32.lib",))
RUNTIME = FileGroup("runtime", include=("stdlib.h",), lib=("msvcrt.lib", "oldnames.lib"))
MANIFEST = FileGroup("manifest", path=("mt.exe",))


def assembler_group(arch: str) -> FileGroup:
    """File group for the assembler targeting an architecture."""
    return FileGroup("assembler", path=(ASSEMBLERS[arch],))


@dataclass
class ValidationResult:
    """
    Result of validating one toolchain/architecture pair.

    Attributes:
        passed: True if every required group was complete
        failed_group: Name of the first incomplete group
        missing: Files missing from that group
        assembler: Assembler file name, if it was found
    """

    passed: bool
    failed_group: Optional[str] = None
    missing: List[str] = field(default_factory=list)
    assembler: Optional[str] = None

    def __bool__(self) -> bool:
        return self.passed


class CandidateValidator:
    """
    Check that a PATH/INCLUDE/LIB triple provides a working toolchain.

    Example:
        >>> validator = CandidateValidator()
        >>> result = validator.validate(path, include, lib, "VS14.0", "x64")
        >>> if not result:
        ...     print(f"missing {result.failed_group}: {result.missing}")
    """

    def _missing(
        self,
        group: FileGroup,
        path: Iterable[str],
        include: Iterable[str],
        lib: Iterable[str],
    ) -> List[str]:
        missing = []
        for directories, files in (
            (path, group.path),
            (include, group.include),
            (lib, group.lib),
        ):
            missing.extend(name for name in files if not file_exists_in(directories, name))
        return missing

    def validate(
        self,
        path: Iterable[str],
        include: Iterable[str],
        lib: Iterable[str],
        name: str,
        arch: str,
        require_assembler: bool = False,
        require_manifest_tool: bool = False,
    ) -> ValidationResult:
        """
        Validate a toolchain for one architecture.

        Groups are checked in order (compiler, SDK, runtime, then assembler
        and manifest tool when required) and checking stops at the first
        incomplete one.

        Args:
            path: Directories searched for executables
            include: Directories searched for headers
            lib: Directories searched for libraries
            name: Toolchain name, for diagnostics
            arch: Target architecture ('x86' or 'x64')
            require_assembler: Fail unless ml.exe/ml64.exe is present
            require_manifest_tool: Fail unless mt.exe is present

        Returns:
            ValidationResult
        """
        path, include, lib = list(path), list(include), list(lib)

        assembler = ASSEMBLERS.get(arch)
        if assembler is not None and not file_exists_in(path, assembler):
            assembler = None

        groups = [COMPILER, SDK, RUNTIME]
        if require_assembler:
            groups.append(assembler_group(arch))
        if require_manifest_tool:
            groups.append(MANIFEST)

        for group in groups:
            missing = self._missing(group, path, include, lib)
            if missing:
                logger.info(
                    f"{name} ({arch}) rejected: {group.name} incomplete, "
                    f"missing {', '.join(missing)}"
                )
                return ValidationResult(
                    passed=False,
                    failed_group=group.name,
                    missing=missing,
                    assembler=assembler,
                )
            logger.debug(f"{name} ({arch}): {group.name} files present")

        return ValidationResult(passed=True, assembler=assembler)
