"""
Rendering of the selected compiler.

Three formats are supported:

- ``shell``: ``NAME='value'`` lines for ``eval`` in a POSIX shell
- ``make``: ``NAME=value`` lines for inclusion in a Makefile
- ``data``: tagged lines read by package-manager integration
"""

import logging
from typing import List, Optional, Tuple

from msvsdetect.toolchain.models import EnvironmentCompiler, ValidatedCompiler
from msvsdetect.toolchain.resolver import Resolution

logger = logging.getLogger(__name__)

FORMATS = ("shell", "make", "data")

PREFIXES = ("MSVS", "MSVS64")


def escape_shell(value: str) -> str:
    """Quote a value for shell output (single quotes doubled)."""
    return "'" + value.replace("'", "''") + "'"


def escape_make(value: str) -> str:
    """Escape a value for a Makefile assignment."""
    return value.replace("$", "$$").replace("#", "\\#")


class OutputFormatter:
    """
    Render a Resolution in one of the supported formats.

    Example:
        >>> formatter = OutputFormatter("make", with_assembler=True)
        >>> print(formatter.format(resolution, environment, arch="x64"))
        MSVS_NAME=Visual Studio Community 2022
        MSVS_PATH=...
    """

    def __init__(self, output: str = "shell", with_assembler: bool = False):
        """
        Initialize formatter.

        Args:
            output: One of 'shell', 'make' or 'data'
            with_assembler: Emit the assembler name variables

        Raises:
            ValueError: If the format is unknown
        """
        if output not in FORMATS:
            raise ValueError(f"Unknown output format: {output}")
        self.output = output
        self.with_assembler = with_assembler

    def variables(
        self,
        resolution: Resolution,
        environment: Optional[EnvironmentCompiler] = None,
        arch: Optional[str] = None,
    ) -> List[Tuple[str, str]]:
        """
        Variable assignments for a resolution.

        ``MSVS_*`` describes the pinned architecture (x86 when not pinned)
        and ``MSVS64_*`` describes x64 when not pinned. Directory lists are
        left empty for the architecture of the environment compiler when it
        is the one selected, since nothing needs to change.

        Args:
            resolution: Selected compiler
            environment: Environment compiler, if any
            arch: Pinned architecture, or None

        Returns:
            List of (name, value) pairs
        """
        values = [("MSVS_NAME", resolution.name)]
        prefixes = PREFIXES[:1] if arch else PREFIXES

        for prefix, compiler in zip(prefixes, resolution.compilers):
            active = (
                resolution.from_environment
                and environment is not None
                and compiler.arch == environment.arch
            )
            if active:
                logger.debug(f"{compiler.key} is already active; nothing to add")
            values.append((f"{prefix}_PATH", "" if active else str(compiler.path)))
            values.append((f"{prefix}_INC", "" if active else str(compiler.include)))
            values.append((f"{prefix}_LIB", "" if active else str(compiler.lib)))
            if self.with_assembler:
                values.append((f"{prefix}_ML", compiler.assembler or ""))

        return values

    def data(self, resolution: Resolution) -> List[str]:
        """
        Tagged lines for package-manager integration.

        Args:
            resolution: Selected compiler (architecture must be pinned)

        Returns:
            Output lines
        """
        compiler: ValidatedCompiler = resolution.compilers[0]
        installation = resolution.installation
        version = compiler.version or installation.version

        lines = [f"{resolution.name} {version}".rstrip()]
        lines.append(f"script {installation.invocation(compiler.arch)}")
        lines.extend(f"bin {directory}" for directory in compiler.path)
        lines.extend(f"inc {directory}" for directory in compiler.include)
        lines.extend(f"lib {directory}" for directory in compiler.lib)
        if compiler.assembler:
            lines.append(f"asm {compiler.assembler}")
        return lines

    def format(
        self,
        resolution: Resolution,
        environment: Optional[EnvironmentCompiler] = None,
        arch: Optional[str] = None,
    ) -> str:
        """
        Render a resolution.

        Args:
            resolution: Selected compiler
            environment: Environment compiler, if any
            arch: Pinned architecture, or None

        Returns:
            Output text, newline-terminated
        """
        if self.output == "data":
            if arch is None:
                raise ValueError("data output requires a pinned architecture")
            lines = self.data(resolution)
        else:
            lines = [
                format_assignment(name, value, self.output)
                for name, value in self.variables(resolution, environment, arch)
            ]
        return "\n".join(lines) + "\n"


def format_assignment(name: str, value: str, output: str = "shell") -> str:
    """
    Render a single variable assignment.

    Args:
        name: Variable name
        value: Value
        output: 'shell' or 'make'

    Returns:
        Assignment line (without newline)
    """
    if output == "make":
        return f"{name}={escape_make(value)}"
    return f"{name}={escape_shell(value)}"
