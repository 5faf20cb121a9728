"""
Data model for toolchain detection.

A ``CompilerPackage`` describes a toolchain generation, a ``FoundInstallation``
is a package discovered on this machine and a ``ValidatedCompiler`` is an
installation narrowed to one architecture whose PATH/INCLUDE/LIB have been
probed and checked.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, Iterator, Optional, Tuple

from msvsdetect.core.filesystem import find_file, normalize_windows_path

ARCHITECTURES = ("x86", "x64")

SEPARATOR = ";"


def validated_key(package_key: str, arch: str) -> str:
    """Key of the ValidatedCompiler for a package/architecture pair."""
    return f"{package_key}-{arch}"


# ============================================================================
# Directory Lists
# ============================================================================


@dataclass(frozen=True)
class DirectoryList:
    """
    Ordered list of directories as found in PATH, INCLUDE or LIB.

    Duplicates are preserved (search order matters), empty entries are not.
    Rendered with ``;`` between entries and exactly one trailing ``;``.
    """

    entries: Tuple[str, ...] = ()

    @classmethod
    def parse(cls, value: Optional[str]) -> "DirectoryList":
        """
        Parse a ``;``-separated list, collapsing doubled separators.

        Args:
            value: Raw variable value (None treated as empty)

        Returns:
            DirectoryList
        """
        if not value:
            return cls()
        return cls(tuple(entry for entry in value.split(SEPARATOR) if entry.strip()))

    @classmethod
    def of(cls, directories: Iterable) -> "DirectoryList":
        """Build a list from directory strings or paths."""
        return cls(tuple(str(directory) for directory in directories))

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __bool__(self) -> bool:
        return bool(self.entries)

    def __str__(self) -> str:
        if not self.entries:
            return ""
        return SEPARATOR.join(self.entries) + SEPARATOR

    def normalized(self) -> Tuple[str, ...]:
        """Entries normalized for case-insensitive comparison."""
        return tuple(normalize_windows_path(entry) for entry in self.entries)

    def contains_all(self, other: "DirectoryList") -> bool:
        """
        Check that every directory of another list appears in this one.

        Args:
            other: Directories which must all be present

        Returns:
            True if ``other`` is a subset of this list (ignoring case)
        """
        present = set(self.normalized())
        return all(entry in present for entry in other.normalized())


# ============================================================================
# Catalog and Discovery Results
# ============================================================================


@dataclass(frozen=True)
class CompilerPackage:
    """
    Static description of a toolchain generation.

    Attributes:
        key: Identifying key (e.g. 'VS14.0', 'VS17.*', 'SDK7.1')
        name: Display name
        architectures: Supported target architectures
        switches: Setup script argument for each architecture
        vswhere: True if installations are discovered with vswhere
        runtime: Version of the Visual C++ runtime the package ships
        kind: 'vs' for Visual Studio, 'sdk' for a Windows SDK
        tools_variable: Environment variable naming Common7\\Tools (legacy)
        registry_version: Version used in registry paths (legacy)
        script_style: 'vsvars' (script sits in the tools directory) or
            'vcvarsall' (script is VC\\vcvarsall.bat two levels up)
    """

    key: str
    name: str
    architectures: Tuple[str, ...] = ARCHITECTURES
    switches: Dict[str, str] = field(default_factory=dict)
    vswhere: bool = False
    runtime: Optional[str] = None
    kind: str = "vs"
    tools_variable: Optional[str] = None
    registry_version: Optional[str] = None
    script_style: str = "vcvarsall"

    @property
    def is_wildcard(self) -> bool:
        """True for keys covering a whole major version (e.g. 'VS17.*')."""
        return self.key.endswith(".*")

    @property
    def prefix(self) -> str:
        """Key without its version (e.g. 'VS', 'SDK')."""
        return self.key.rstrip("0123456789.*")

    @property
    def major(self) -> str:
        """Major version component of the key."""
        return self.key[len(self.prefix) :].split(".")[0]


@dataclass(frozen=True)
class FoundInstallation:
    """
    A catalog package found on this machine.

    Attributes:
        package: Catalog entry
        key: Package key; for vswhere finds the major.minor key, optionally
            suffixed with the instance id
        script: Absolute path to the setup script
        name: Display name (may include an 'Express' qualifier)
        version: Resolved version string
        switches: Per-architecture overrides of the package switches
        architectures: Overrides the package's architectures when set
        instance_id: vswhere instance id
    """

    package: CompilerPackage
    key: str
    script: str
    name: str
    version: str = ""
    switches: Dict[str, str] = field(default_factory=dict)
    architectures: Optional[Tuple[str, ...]] = None
    instance_id: Optional[str] = None

    @property
    def supported_architectures(self) -> Tuple[str, ...]:
        if self.architectures is not None:
            return self.architectures
        return self.package.architectures

    def switch_for(self, arch: str) -> str:
        """Setup script argument selecting an architecture."""
        if arch in self.switches:
            return self.switches[arch]
        return self.package.switches.get(arch, "")

    def invocation(self, arch: str) -> str:
        """
        Command line that runs the setup script for an architecture.

        The script path is quoted when it contains whitespace.
        """
        script = f'"{self.script}"' if any(c.isspace() for c in self.script) else self.script
        switch = self.switch_for(arch)
        return f"{script} {switch}" if switch else script


@dataclass(frozen=True)
class ValidatedCompiler:
    """
    An installation probed and validated for one architecture.

    Only created when every required compiler, SDK and runtime file was found
    in its PATH/INCLUDE/LIB.
    """

    installation: FoundInstallation
    arch: str
    path: DirectoryList
    include: DirectoryList
    lib: DirectoryList
    assembler: Optional[str] = None
    version: str = ""
    runtime_version: str = ""

    @property
    def package_key(self) -> str:
        return self.installation.key

    @property
    def key(self) -> str:
        return validated_key(self.installation.key, self.arch)

    @property
    def name(self) -> str:
        return self.installation.name

    def compiler_binary(self) -> Optional[Path]:
        """Location of cl.exe in this compiler's PATH."""
        return find_file(self.path, "cl.exe")


# ============================================================================
# Environment Compiler
# ============================================================================


class MatchConfidence(Enum):
    """How sure we are which package the environment compiler belongs to."""

    NONE = "none"
    WEAK = "weak"  # cl.exe matches, INCLUDE/LIB could not be confirmed
    STRONG = "strong"  # cl.exe, INCLUDE and LIB all corroborate
    AMBIGUOUS = "ambiguous"  # several equally good candidates


@dataclass(frozen=True)
class EnvironmentMatch:
    """Identification of the environment compiler against validated ones."""

    confidence: MatchConfidence = MatchConfidence.NONE
    key: Optional[str] = None

    @property
    def identified(self) -> bool:
        """True if a single package was matched (strongly or weakly)."""
        return (
            self.confidence in (MatchConfidence.STRONG, MatchConfidence.WEAK)
            and self.key is not None
        )


@dataclass(frozen=True)
class EnvironmentCompiler:
    """
    The compiler already reachable on the caller's PATH.

    Attributes:
        binary: Location of cl.exe
        arch: Target architecture parsed from the banner
        banner: Identification banner printed by cl.exe
        path: Live PATH
        include: Live INCLUDE
        lib: Live LIB
        assembler: Assembler found on PATH, if any
    """

    binary: Path
    arch: str
    banner: str
    path: DirectoryList
    include: DirectoryList
    lib: DirectoryList
    assembler: Optional[str] = None
