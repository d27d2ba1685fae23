"""
Registry access for detectors.

Detectors receive a RegistryReader instead of calling winreg directly, so the
same detector code runs against the live Windows registry, an empty registry
on other systems, or an in-memory registry in tests.

Key paths are full paths starting with the hive name, e.g.
``HKEY_LOCAL_MACHINE\\SOFTWARE\\Valve\\Steam``. A missing key or value is a
normal "not installed" answer (None / empty list), never an error.
"""
import logging
import sys
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


def _split_key_path(key_path: str):
    hive, _, sub_key = key_path.strip('\\').partition('\\')
    return hive.upper(), sub_key


class RegistryReader(ABC):
    """Read-only view of a key/value registry"""

    @abstractmethod
    def get_value(self, key_path: str, name: str) -> Optional[Any]:
        """Return one value of a key, or None if the key or value is absent."""
        pass

    @abstractmethod
    def enumerate(self, key_path: str) -> List[str]:
        """Return the names of the key's sub-keys ([] if the key is absent)."""
        pass

    @abstractmethod
    def get_values(self, key_path: str) -> Dict[str, Any]:
        """Return all values of a key ({} if the key is absent)."""
        pass

    def key_exists(self, key_path: str) -> bool:
        return bool(self.get_values(key_path)) or bool(self.enumerate(key_path))


class NullRegistry(RegistryReader):
    """Registry for systems without one: every key is absent."""

    def get_value(self, key_path: str, name: str) -> Optional[Any]:
        return None

    def enumerate(self, key_path: str) -> List[str]:
        return []

    def get_values(self, key_path: str) -> Dict[str, Any]:
        return {}


class DictRegistry(RegistryReader):
    """
    In-memory registry.

    Built from ``{key_path: {value_name: value}}``. Sub-keys are implied by
    longer key paths. Lookups are case-insensitive, like the Windows registry.
    """

    def __init__(self, data: Optional[Dict[str, Dict[str, Any]]] = None):
        self._keys: Dict[str, Dict[str, Any]] = {}
        self._names: Dict[str, str] = {}
        for key_path, values in (data or {}).items():
            self.set_key(key_path, values)

    @staticmethod
    def _norm(key_path: str) -> str:
        return key_path.strip('\\').lower()

    def set_key(self, key_path: str, values: Optional[Dict[str, Any]] = None) -> None:
        norm = self._norm(key_path)
        self._keys[norm] = {k.lower(): (k, v) for k, v in (values or {}).items()}
        # register intermediate keys so enumerate() sees them
        parts = key_path.strip('\\').split('\\')
        for i in range(1, len(parts) + 1):
            self._names.setdefault('\\'.join(parts[:i]).lower(), parts[i - 1])

    def get_value(self, key_path: str, name: str) -> Optional[Any]:
        entry = self._keys.get(self._norm(key_path), {}).get(name.lower())
        return entry[1] if entry else None

    def get_values(self, key_path: str) -> Dict[str, Any]:
        return dict(self._keys.get(self._norm(key_path), {}).values())

    def enumerate(self, key_path: str) -> List[str]:
        prefix = self._norm(key_path) + '\\'
        children = []
        for path, name in self._names.items():
            if path.startswith(prefix) and '\\' not in path[len(prefix):]:
                children.append(name)
        return sorted(children, key=str.lower)

    def key_exists(self, key_path: str) -> bool:
        return self._norm(key_path) in self._names


class WindowsRegistry(RegistryReader):
    """Live Windows registry via winreg.

    Missing keys (FileNotFoundError) read as absent. Other OSErrors, such as
    access denied, propagate so the detector can report the source as
    unreadable.
    """

    def __init__(self):
        import winreg
        self._winreg = winreg
        self._hives = {
            'HKEY_LOCAL_MACHINE': winreg.HKEY_LOCAL_MACHINE,
            'HKLM': winreg.HKEY_LOCAL_MACHINE,
            'HKEY_CURRENT_USER': winreg.HKEY_CURRENT_USER,
            'HKCU': winreg.HKEY_CURRENT_USER,
        }

    def _open(self, key_path: str):
        hive, sub_key = _split_key_path(key_path)
        if hive not in self._hives:
            raise ValueError(f"Unsupported registry hive: {hive}")
        return self._winreg.OpenKey(self._hives[hive], sub_key)

    def get_value(self, key_path: str, name: str) -> Optional[Any]:
        try:
            with self._open(key_path) as key:
                value, _ = self._winreg.QueryValueEx(key, name)
                return value
        except FileNotFoundError:
            return None

    def get_values(self, key_path: str) -> Dict[str, Any]:
        values = {}
        try:
            with self._open(key_path) as key:
                i = 0
                while True:
                    try:
                        name, value, _ = self._winreg.EnumValue(key, i)
                    except OSError:
                        break
                    values[name] = value
                    i += 1
        except FileNotFoundError:
            return {}
        return values

    def enumerate(self, key_path: str) -> List[str]:
        names = []
        try:
            with self._open(key_path) as key:
                i = 0
                while True:
                    try:
                        names.append(self._winreg.EnumKey(key, i))
                    except OSError:
                        break
                    i += 1
        except FileNotFoundError:
            return []
        return names

    def key_exists(self, key_path: str) -> bool:
        try:
            with self._open(key_path):
                return True
        except FileNotFoundError:
            return False


def default_registry() -> RegistryReader:
    """Return the live registry on Windows and an empty one elsewhere."""
    if sys.platform == 'win32':
        return WindowsRegistry()
    logger.debug("[Registry] Not on Windows, using empty registry")
    return NullRegistry()
