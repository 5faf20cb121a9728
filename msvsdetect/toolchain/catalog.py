"""
Catalog of known Microsoft toolchain generations.

Each entry is a plain record; the catalog is fixed at import time and keyed
by package key. Visual Studio 2017 onwards are discovered with vswhere and
cover a whole major version ('VS17.*'); older generations are found through
their ``VSxxxCOMNTOOLS`` variable and the registry.
"""

from typing import Dict, List, Optional

from msvsdetect.toolchain.models import CompilerPackage

_VSVARS = {"x86": ""}
_VCVARSALL = {"x86": "x86", "x64": "amd64"}
_VCVARSALL_VSWHERE = {"x86": "x86", "x64": "x64"}
_SETENV = {"x86": "/x86", "x64": "/x64"}

PACKAGES = (
    CompilerPackage(
        key="VS7.0",
        name="Visual Studio .NET 2002",
        architectures=("x86",),
        switches=_VSVARS,
        runtime="7.0",
        tools_variable="VS70COMNTOOLS",
        registry_version="7.0",
        script_style="vsvars",
    ),
    CompilerPackage(
        key="VS7.1",
        name="Visual Studio .NET 2003",
        architectures=("x86",),
        switches=_VSVARS,
        runtime="7.1",
        tools_variable="VS71COMNTOOLS",
        registry_version="7.1",
        script_style="vsvars",
    ),
    CompilerPackage(
        key="VS8.0",
        name="Visual Studio 2005",
        switches=_VCVARSALL,
        runtime="8.0",
        tools_variable="VS80COMNTOOLS",
        registry_version="8.0",
    ),
    CompilerPackage(
        key="VS9.0",
        name="Visual Studio 2008",
        switches=_VCVARSALL,
        runtime="9.0",
        tools_variable="VS90COMNTOOLS",
        registry_version="9.0",
    ),
    CompilerPackage(
        key="VS10.0",
        name="Visual Studio 2010",
        switches=_VCVARSALL,
        runtime="10.0",
        tools_variable="VS100COMNTOOLS",
        registry_version="10.0",
    ),
    CompilerPackage(
        key="VS11.0",
        name="Visual Studio 2012",
        switches=_VCVARSALL,
        runtime="11.0",
        tools_variable="VS110COMNTOOLS",
        registry_version="11.0",
    ),
    CompilerPackage(
        key="VS12.0",
        name="Visual Studio 2013",
        switches=_VCVARSALL,
        runtime="12.0",
        tools_variable="VS120COMNTOOLS",
        registry_version="12.0",
    ),
    CompilerPackage(
        key="VS14.0",
        name="Visual Studio 2015",
        switches=_VCVARSALL,
        runtime="14.0",
        tools_variable="VS140COMNTOOLS",
        registry_version="14.0",
    ),
    CompilerPackage(
        key="VS15.*",
        name="Visual Studio 2017",
        switches=_VCVARSALL_VSWHERE,
        vswhere=True,
        runtime="14.1",
    ),
    CompilerPackage(
        key="VS16.*",
        name="Visual Studio 2019",
        switches=_VCVARSALL_VSWHERE,
        vswhere=True,
        runtime="14.2",
    ),
    CompilerPackage(
        key="VS17.*",
        name="Visual Studio 2022",
        switches=_VCVARSALL_VSWHERE,
        vswhere=True,
        runtime="14.3",
    ),
    CompilerPackage(
        key="SDK5.2",
        name="Windows Server 2003 SP1 SDK",
        switches={"x86": "/XP32 /RETAIL", "x64": "/X64 /RETAIL"},
        runtime="8.0",
        kind="sdk",
    ),
    CompilerPackage(
        key="SDK6.1",
        name="Windows Server 2008 with .NET 3.5 SDK",
        switches=_SETENV,
        runtime="9.0",
        kind="sdk",
    ),
    CompilerPackage(
        key="SDK7.0",
        name="Generic Windows SDK 7.0",
        switches=_SETENV,
        runtime="9.0",
        kind="sdk",
    ),
    CompilerPackage(
        key="SDK7.1",
        name="Windows SDK 7.1",
        switches=_SETENV,
        runtime="10.0",
        kind="sdk",
    ),
)

CATALOG: Dict[str, CompilerPackage] = {package.key: package for package in PACKAGES}

if len(CATALOG) != len(PACKAGES):
    raise RuntimeError("Duplicate package key in toolchain catalog")

ENVIRONMENT_MARKER = "@"

DEFAULT_PREFERENCE = "@;VS17.*;VS16.*;VS15.*;VS14.0;VS12.0;VS11.0;10.0;9.0;8.0;7.1;7.0"

# Registry GUID of the Windows Server 2003 SP1 Platform SDK
LEGACY_SDK_KEY = "SDK5.2"
LEGACY_SDK_GUID = "D2FF9F89-8AA2-4373-8A31-C838BF4DBBE1"


def get_package(key: str) -> Optional[CompilerPackage]:
    """Look up a catalog entry by key."""
    return CATALOG.get(key)


def legacy_packages() -> List[CompilerPackage]:
    """Packages found through VSxxxCOMNTOOLS and the registry."""
    return [package for package in PACKAGES if package.tools_variable]


def vswhere_packages() -> List[CompilerPackage]:
    """Packages whose installations are enumerated with vswhere."""
    return [package for package in PACKAGES if package.vswhere]


def find_vswhere_package(major: str) -> Optional[CompilerPackage]:
    """
    Find the vswhere package covering a major version.

    Args:
        major: Major version number (e.g. '17')

    Returns:
        The 'VS<major>.*' package, or None
    """
    package = CATALOG.get(f"VS{major}.*")
    return package if package is not None and package.vswhere else None


def generic_sdk_package(version: str) -> CompilerPackage:
    """
    Package for a Windows SDK version missing from the catalog.

    Args:
        version: SDK version (e.g. '7.0A')

    Returns:
        CompilerPackage assumed to behave like the other SetEnv.cmd SDKs
    """
    return CompilerPackage(
        key=f"SDK{version}",
        name=f"Windows SDK {version} (unknown, assumed compatible)",
        switches=_SETENV,
        kind="sdk",
    )
