"""
Run a toolchain's setup script and harvest the environment it produces.

The script runs in a ``cmd.exe`` child whose PATH starts with a sentinel
directory that cannot exist. Whatever the script prepends to PATH appears
before the sentinel, so the additions can be separated from the PATH the
child inherited.
"""

import logging
import os
import subprocess
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from msvsdetect.core.environment import scoped_environment
from msvsdetect.core.exceptions import ProbeError
from msvsdetect.core.filesystem import IS_WINDOWS, normalize_windows_path, temporary_directory
from msvsdetect.core.log import RAW, TRACE
from msvsdetect.toolchain.models import DirectoryList

logger = logging.getLogger(__name__)

MARKER = "MSVS-DETECT-PROBE"

CAPTURED_VARIABLES = (
    "PATH",
    "INCLUDE",
    "LIB",
    "VSCMD_VER",
    "VisualStudioVersion",
    "VCToolsVersion",
)

# Left behind by a previous vcvarsall/SetEnv and consulted by the next one
INTERFERING_VARIABLES = (
    "VSINSTALLDIR",
    "VCINSTALLDIR",
    "VCToolsVersion",
    "VSCMD_VER",
    "VSCMD_ARG_TGT_ARCH",
    "VisualStudioVersion",
    "__VSCMD_PREINIT_PATH",
    "INCLUDE",
    "LIB",
    "LIBPATH",
    "ORIGINALPATH",
)

DEFAULT_TIMEOUT = 120


@dataclass(frozen=True)
class ProbeResult:
    """
    Environment produced by a setup script.

    Attributes:
        path: Directories the script prepended to PATH
        include: INCLUDE after the script ran
        lib: LIB after the script ran
        version: Toolchain version (VSCMD_VER, else VisualStudioVersion)
        runtime_version: Visual C++ tools version (VCToolsVersion)
    """

    path: DirectoryList
    include: DirectoryList
    lib: DirectoryList
    version: str = ""
    runtime_version: str = ""


def new_sentinel() -> str:
    """Return a directory name guaranteed not to exist."""
    return f"C:\\msvs-detect-sentinel-{uuid.uuid4().hex}"


def build_probe_script(invocation: str) -> str:
    """
    Batch file which runs a setup script and reports the result.

    Args:
        invocation: Setup script command line (script path and switches)

    Returns:
        Batch file contents
    """
    lines = [
        "@echo off",
        f"call {invocation} >nul 2>&1",
        "setlocal EnableDelayedExpansion",
        f"echo {MARKER}",
    ]
    lines.extend(f"echo {name}=!{name}!" for name in CAPTURED_VARIABLES)
    return "\r\n".join(lines) + "\r\n"


def _resolved(name: str, value: Optional[str]) -> Optional[str]:
    """Treat empty values and unexpanded placeholders as unset."""
    if value is None:
        return None
    value = value.strip()
    if not value or value in (f"%{name}%", f"!{name}!"):
        return None
    return value


def _added_path(path: str, sentinel: str) -> Optional[DirectoryList]:
    entries = DirectoryList.parse(path).entries
    target = normalize_windows_path(sentinel)
    for index, entry in enumerate(entries):
        if normalize_windows_path(entry) == target:
            return DirectoryList(entries[:index])
    return None


def parse_probe_output(output: str, sentinel: str) -> Optional[ProbeResult]:
    """
    Parse the output of a probe script.

    Args:
        output: Standard output of the probe
        sentinel: Sentinel directory the child's PATH was seeded with

    Returns:
        ProbeResult, or None if the marker or the sentinel is missing
    """
    lines: List[str] = [line.rstrip("\r") for line in output.splitlines()]
    try:
        start = [line.strip() for line in lines].index(MARKER)
    except ValueError:
        logger.debug("Probe marker not found in output")
        return None

    values: Dict[str, Optional[str]] = {}
    for line in lines[start + 1 :]:
        name, sep, value = line.partition("=")
        if sep and name in CAPTURED_VARIABLES:
            values[name] = _resolved(name, value)

    path = _added_path(values.get("PATH") or "", sentinel)
    if path is None:
        logger.debug("Probe sentinel not found in PATH")
        return None

    version = values.get("VSCMD_VER") or values.get("VisualStudioVersion") or ""

    return ProbeResult(
        path=path,
        include=DirectoryList.parse(values.get("INCLUDE")),
        lib=DirectoryList.parse(values.get("LIB")),
        version=version,
        runtime_version=values.get("VCToolsVersion") or "",
    )


def kill_process_tree(process: subprocess.Popen) -> None:
    """
    Kill a probe and everything it started.

    Setup scripts may leave helper processes holding the output pipe open,
    so killing ``cmd.exe`` alone does not end the probe on Windows.
    """
    if IS_WINDOWS:
        subprocess.run(
            ["taskkill", "/F", "/T", "/PID", str(process.pid)],
            capture_output=True,
            check=False,
        )
    process.kill()


class EnvironmentProber:
    """
    Execute setup scripts in isolation.

    Example:
        >>> prober = EnvironmentProber(timeout=60)
        >>> result = prober.probe(r'"C:\\VS\\VC\\vcvarsall.bat" amd64')
        >>> print(result.path if result else "failed")
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, shell: str = "cmd.exe"):
        """
        Initialize prober.

        Args:
            timeout: Wall-clock limit for one setup script, in seconds
            shell: Command interpreter used to run batch files
        """
        self.timeout = timeout
        self.shell = shell

    def probe(self, invocation: str) -> Optional[ProbeResult]:
        """
        Run a setup script and capture PATH/INCLUDE/LIB.

        Failures are never fatal: a script which cannot be run, times out or
        produces unexpected output yields None.

        Args:
            invocation: Setup script command line (quoted path and switches)

        Returns:
            ProbeResult, or None
        """
        try:
            return self._probe(invocation)
        except ProbeError as e:
            logger.debug(f"Probe of {invocation} failed: {e}")
            return None

    def _probe(self, invocation: str) -> Optional[ProbeResult]:
        sentinel = new_sentinel()

        with temporary_directory(prefix="msvs-detect-probe-") as temp_dir:
            batch = Path(temp_dir) / "probe.cmd"
            batch.write_text(build_probe_script(invocation), encoding="utf-8")

            child_path = f"{sentinel};{os.environ.get('PATH', '')}"
            command = [self.shell, "/d", "/c", str(batch)]

            with scoped_environment({"PATH": child_path}, unset=INTERFERING_VARIABLES):
                logger.log(TRACE, f"Probing: {invocation}")
                stdout = self._run(command)

        logger.log(RAW, f"Probe output for {invocation}:\n{stdout}")
        return parse_probe_output(stdout, sentinel)

    def _run(self, command: List[str]) -> str:
        try:
            process = subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
            )
        except OSError as e:
            raise ProbeError(f"could not run {self.shell}: {e}") from e

        with process:
            try:
                stdout, _ = process.communicate(timeout=self.timeout)
            except subprocess.TimeoutExpired as e:
                kill_process_tree(process)
                raise ProbeError(f"timed out after {self.timeout}s") from e

        return stdout
