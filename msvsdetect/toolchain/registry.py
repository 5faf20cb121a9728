"""
Read-only access to the Windows registry.

Visual Studio and the Windows SDKs register themselves under
``HKLM\\SOFTWARE\\Microsoft`` in the 32-bit registry view. On hosts without
``winreg`` every lookup simply finds nothing.
"""

import logging
from typing import List, Optional

try:
    import winreg
except ImportError:  # Not running on Windows
    winreg = None

logger = logging.getLogger(__name__)


class RegistryReader:
    """
    Look up values and subkeys below ``HKEY_LOCAL_MACHINE``.

    Keys are given relative to HKLM, e.g.
    ``SOFTWARE\\Microsoft\\VisualStudio\\14.0\\Setup\\VC``. Missing keys and
    values return None or an empty list; registry errors are never raised.
    """

    def __init__(self, wow64_32: bool = True):
        """
        Initialize reader.

        Args:
            wow64_32: Read the 32-bit registry view (where Visual Studio
                registers itself, even on 64-bit Windows)
        """
        self.wow64_32 = wow64_32

    @property
    def available(self) -> bool:
        return winreg is not None

    def _access(self) -> int:
        access = winreg.KEY_READ
        if self.wow64_32:
            access |= winreg.KEY_WOW64_32KEY
        return access

    def read_value(self, key: str, name: str) -> Optional[str]:
        """
        Read a string value.

        Args:
            key: Key path relative to HKLM
            name: Value name

        Returns:
            Value as a string, or None if the key or value does not exist
        """
        if winreg is None:
            return None
        try:
            with winreg.OpenKey(winreg.HKEY_LOCAL_MACHINE, key, 0, self._access()) as handle:
                value, _ = winreg.QueryValueEx(handle, name)
        except OSError:
            logger.debug(f"Registry value not found: HKLM\\{key}\\{name}")
            return None
        return str(value)

    def subkeys(self, key: str) -> List[str]:
        """
        List the immediate subkeys of a key.

        Args:
            key: Key path relative to HKLM

        Returns:
            Subkey names (empty if the key does not exist)
        """
        if winreg is None:
            return []
        names = []
        try:
            with winreg.OpenKey(winreg.HKEY_LOCAL_MACHINE, key, 0, self._access()) as handle:
                index = 0
                while True:
                    try:
                        names.append(winreg.EnumKey(handle, index))
                    except OSError:
                        break
                    index += 1
        except OSError:
            logger.debug(f"Registry key not found: HKLM\\{key}")
        return names
