"""
Discovery of installed Microsoft toolchains.

Candidates come from three independent sources, each of which may be absent:

- Legacy Visual Studio (.NET 2002 to 2015): the ``VSxxxCOMNTOOLS`` variable
  plus the installation's registry entry
- Windows SDKs: registry entries below ``Microsoft SDKs\\Windows`` plus the
  Server 2003 SP1 SDK's own registry key
- Visual Studio 2017 and later: instances reported by vswhere

Nothing here runs a setup script; the results are unvalidated.
"""

import logging
import os
import re
import subprocess
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from msvsdetect.toolchain.catalog import (
    LEGACY_SDK_GUID,
    LEGACY_SDK_KEY,
    find_vswhere_package,
    generic_sdk_package,
    get_package,
    legacy_packages,
)
from msvsdetect.toolchain.models import CompilerPackage, FoundInstallation
from msvsdetect.toolchain.registry import RegistryReader

logger = logging.getLogger(__name__)

VISUAL_STUDIO_KEY = r"SOFTWARE\Microsoft\VisualStudio"
VC_EXPRESS_KEY = r"SOFTWARE\Microsoft\VCExpress"
WD_EXPRESS_KEY = r"SOFTWARE\Microsoft\WDExpress"
SDK_KEY = r"SOFTWARE\Microsoft\Microsoft SDKs\Windows"
LEGACY_SDK_REGISTRY_KEY = rf"SOFTWARE\Microsoft\MicrosoftSDK\InstalledSDKs\{LEGACY_SDK_GUID}"

LEGACY_MARKER = "vsvars32.bat"
EXPRESS_X64_SWITCH = "x86_amd64"

_SDK_SUBKEY = re.compile(r"^v(\d+\.\d+[A-Z]?)$")
_VERSION = re.compile(r"^(\d+)\.(\d+)")


def default_vswhere_path(environ: Optional[Mapping[str, str]] = None) -> Path:
    """
    Standard location of vswhere.exe.

    Args:
        environ: Environment to read ProgramFiles(x86) from

    Returns:
        Path to vswhere.exe (which may not exist)
    """
    if environ is None:
        environ = os.environ
    program_files = environ.get("ProgramFiles(x86)", r"C:\Program Files (x86)")
    return Path(program_files) / "Microsoft Visual Studio" / "Installer" / "vswhere.exe"


def parse_vswhere_output(output: str) -> List[Dict[str, str]]:
    """
    Parse the text output of ``vswhere -all``.

    The output is a stream of ``name: value`` lines. Each instance's
    ``displayName`` line ends its record.

    Args:
        output: vswhere standard output

    Returns:
        List of records (name -> value)

    Example:
        >>> parse_vswhere_output("installationVersion: 17.9.34607.119\\n"
        ...                      "displayName: Visual Studio Community 2022\\n")
        [{'installationVersion': '17.9.34607.119', 'displayName': 'Visual Studio Community 2022'}]
    """
    records = []
    current: Dict[str, str] = {}

    for line in output.splitlines():
        name, sep, value = line.partition(":")
        name = name.strip()
        if not sep or not name or " " in name:
            continue
        current[name] = value.strip()
        if name == "displayName":
            records.append(current)
            current = {}

    return records


class CandidateEnumerator:
    """
    Enumerate toolchain installations from every discovery source.

    Example:
        >>> enumerator = CandidateEnumerator()
        >>> for key, found in enumerator.enumerate().items():
        ...     print(key, found.script)
    """

    def __init__(
        self,
        registry: Optional[RegistryReader] = None,
        environ: Optional[Mapping[str, str]] = None,
        vswhere: Optional[Path] = None,
        timeout: float = 30,
    ):
        """
        Initialize enumerator.

        Args:
            registry: Registry reader (defaults to the real registry)
            environ: Environment to read VSxxxCOMNTOOLS from
            vswhere: Path to vswhere.exe (defaults to the standard location)
            timeout: Timeout in seconds for the vswhere call
        """
        self.registry = registry or RegistryReader()
        self.environ = os.environ if environ is None else environ
        self.vswhere = vswhere or default_vswhere_path(self.environ)
        self.timeout = timeout

    def enumerate(self, list_installed: bool = False) -> Dict[str, FoundInstallation]:
        """
        Enumerate installations from all sources.

        Args:
            list_installed: Key vswhere instances by instance id as well, so
                side-by-side installs of one version stay distinct, and keep
                Windows SDKs missing from the catalog

        Returns:
            Installations keyed by package key
        """
        found: Dict[str, FoundInstallation] = {}

        self._scan_legacy(found)
        self._scan_sdks(found, list_installed)
        self._scan_legacy_sdk(found)
        self._scan_vswhere(found, list_installed)

        logger.info(f"Found {len(found)} candidate installation(s)")
        return found

    # ------------------------------------------------------------------
    # Legacy Visual Studio
    # ------------------------------------------------------------------

    def _scan_legacy(self, found: Dict[str, FoundInstallation]) -> None:
        for package in legacy_packages():
            tools = self.environ.get(package.tools_variable)
            if not tools:
                continue

            tools_dir = Path(tools)
            if not (tools_dir / LEGACY_MARKER).is_file():
                logger.debug(
                    f"{package.tools_variable}={tools} has no {LEGACY_MARKER}; "
                    f"ignoring {package.key}"
                )
                continue

            name = package.name
            switches: Dict[str, str] = {}
            if self._registry_install_dir(package) is None:
                if self._express_install_dir(package) is None:
                    logger.debug(f"No registry entry for {package.key}; ignoring")
                    continue
                name = f"{name} Express"
                switches = {"x64": EXPRESS_X64_SWITCH}

            if package.script_style == "vsvars":
                script = tools_dir / LEGACY_MARKER
            else:
                script = tools_dir.parent.parent / "VC" / "vcvarsall.bat"

            logger.debug(f"Found {name} via {package.tools_variable}: {script}")
            found[package.key] = FoundInstallation(
                package=package,
                key=package.key,
                script=str(script),
                name=name,
                version=package.registry_version or "",
                switches=switches,
            )

    def _registry_install_dir(self, package: CompilerPackage) -> Optional[str]:
        key = rf"{VISUAL_STUDIO_KEY}\{package.registry_version}\Setup\VC"
        return self.registry.read_value(key, "ProductDir")

    def _express_install_dir(self, package: CompilerPackage) -> Optional[str]:
        key = rf"{VC_EXPRESS_KEY}\{package.registry_version}\Setup\VC"
        install_dir = self.registry.read_value(key, "ProductDir")
        if install_dir is None and package.key == "VS14.0":
            # Visual Studio 2015 Express for Desktop registers under WDExpress
            install_dir = self.registry.read_value(
                rf"{WD_EXPRESS_KEY}\14.0\Setup\VS", "ProductDir"
            )
        return install_dir

    # ------------------------------------------------------------------
    # Windows SDKs
    # ------------------------------------------------------------------

    def _scan_sdks(
        self, found: Dict[str, FoundInstallation], list_installed: bool
    ) -> None:
        for subkey in self.registry.subkeys(SDK_KEY):
            match = _SDK_SUBKEY.match(subkey)
            if not match:
                continue

            version = match.group(1)
            sdk_key = rf"{SDK_KEY}\{subkey}"
            folder = self.registry.read_value(sdk_key, "InstallationFolder")
            if not folder:
                continue

            script = Path(folder) / "Bin" / "SetEnv.cmd"
            if not script.is_file():
                logger.debug(f"Windows SDK {version} has no {script}; ignoring")
                continue

            key = f"SDK{version}"
            package = get_package(key)
            if package is None:
                if not list_installed:
                    logger.debug(f"Windows SDK {version} is not selectable; ignoring")
                    continue
                package = generic_sdk_package(version)
            product_version = self.registry.read_value(sdk_key, "ProductVersion")

            logger.debug(f"Found {package.name} at {folder}")
            found[key] = FoundInstallation(
                package=package,
                key=key,
                script=str(script),
                name=package.name,
                version=product_version or version,
            )

    def _scan_legacy_sdk(self, found: Dict[str, FoundInstallation]) -> None:
        folder = self.registry.read_value(LEGACY_SDK_REGISTRY_KEY, "Install Dir")
        if not folder:
            return

        script = Path(folder) / "SetEnv.Cmd"
        if not script.is_file():
            logger.debug(f"Server 2003 SDK has no {script}; ignoring")
            return

        package = get_package(LEGACY_SDK_KEY)
        logger.debug(f"Found {package.name} at {folder}")
        found[package.key] = FoundInstallation(
            package=package,
            key=package.key,
            script=str(script),
            name=package.name,
            version=package.key[len(package.prefix) :],
        )

    # ------------------------------------------------------------------
    # vswhere
    # ------------------------------------------------------------------

    def _run_vswhere(self) -> Optional[str]:
        if not self.vswhere.is_file():
            logger.debug(f"vswhere not found at {self.vswhere}")
            return None

        try:
            result = subprocess.run(
                [str(self.vswhere), "-all", "-prerelease", "-nologo", "-utf8"],
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            logger.warning(f"vswhere timed out after {self.timeout}s")
            return None
        except OSError as e:
            logger.warning(f"Failed to run vswhere: {e}")
            return None

        if result.returncode != 0:
            logger.debug(f"vswhere returned {result.returncode}")
            return None

        return result.stdout

    def _scan_vswhere(
        self, found: Dict[str, FoundInstallation], list_installed: bool
    ) -> None:
        output = self._run_vswhere()
        if output is None:
            return

        for record in parse_vswhere_output(output):
            version = record.get("installationVersion", "")
            install_path = record.get("installationPath")
            match = _VERSION.match(version)
            if not match or not install_path:
                logger.debug(f"Ignoring incomplete vswhere record: {record}")
                continue

            major, minor = match.groups()
            package = find_vswhere_package(major)
            if package is None:
                logger.debug(f"No catalog entry for Visual Studio {version}")
                continue

            script = Path(install_path) / "VC" / "Auxiliary" / "Build" / "vcvarsall.bat"
            if not script.is_file():
                logger.debug(f"{install_path} has no C++ tools ({script} missing)")
                continue

            instance_id = record.get("instanceId")
            key = f"VS{major}.{minor}"
            if list_installed and instance_id:
                key = f"{key}/{instance_id}"
            if key in found:
                logger.debug(f"Ignoring further instance of {key} at {install_path}")
                continue

            logger.debug(f"Found {key} via vswhere: {install_path}")
            found[key] = FoundInstallation(
                package=package,
                key=key,
                script=str(script),
                name=record.get("displayName") or package.name,
                version=version,
                instance_id=instance_id,
            )
