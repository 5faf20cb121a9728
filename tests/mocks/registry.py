"""
In-memory stand-in for the Windows registry.
"""

from typing import Dict, List, Optional, Tuple


class FakeRegistry:
    """Registry reader backed by a dictionary of (key, value name) pairs."""

    def __init__(self):
        """Initialize empty registry."""
        self.values: Dict[Tuple[str, str], str] = {}
        self.keys: List[str] = []

    @property
    def available(self) -> bool:
        return True

    def set_value(self, key: str, name: str, value: str):
        """
        Store a value, creating the key.

        Args:
            key: Key path relative to HKLM
            name: Value name
            value: Value data
        """
        self.values[(key.lower(), name.lower())] = value
        if key.lower() not in (k.lower() for k in self.keys):
            self.keys.append(key)

    def read_value(self, key: str, name: str) -> Optional[str]:
        return self.values.get((key.lower(), name.lower()))

    def subkeys(self, key: str) -> List[str]:
        prefix = key.lower() + "\\"
        names: List[str] = []
        for stored in self.keys:
            if stored.lower().startswith(prefix):
                child = stored[len(prefix) :].split("\\")[0]
                if child not in names:
                    names.append(child)
        return names
