"""
Settings Module.

Read-only, flattened view over a nested configuration mapping. Nested YAML/JSON
sections are addressed with dotted keys, e.g. ``issuetracking.jira.url``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterator, Mapping, Optional

_TRUE_VALUES = {"true", "1", "yes", "on"}


def flatten(data: Mapping[str, Any], prefix: str = "") -> Dict[str, Any]:
    """
    Flatten a nested mapping into dotted keys, preserving key order.

    Examples:
        {"a": {"b": 1, "c": {"d": 2}}} -> {"a.b": 1, "a.c.d": 2}
    """
    result: Dict[str, Any] = {}
    for key, value in data.items():
        full_key = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            result.update(flatten(value, full_key))
        else:
            result[full_key] = value
    return result


class Settings:
    """
    Flattened key/value settings.

    Attributes:
        source: Path of the file the settings were read from, if any.
    """

    def __init__(
        self,
        data: Optional[Mapping[str, Any]] = None,
        source: Optional[Path] = None,
    ) -> None:
        self._raw: Dict[str, Any] = dict(data or {})
        self._values = flatten(self._raw)
        self.source = source

    @property
    def raw(self) -> Dict[str, Any]:
        """The nested mapping as loaded."""
        return dict(self._raw)

    def contains(self, key: str) -> bool:
        return key in self._values

    def get(self, key: str, default: Any = None) -> Any:
        value = self._values.get(key)
        return default if value is None else value

    def get_string(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = self._values.get(key)
        return default if value is None else str(value)

    def get_int(self, key: str, default: Optional[int] = None) -> Optional[int]:
        try:
            return int(self._values[key])
        except (KeyError, TypeError, ValueError):
            return default

    def get_float(self, key: str, default: Optional[float] = None) -> Optional[float]:
        try:
            return float(self._values[key])
        except (KeyError, TypeError, ValueError):
            return default

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self._values.get(key)
        if value is None:
            return default
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in _TRUE_VALUES

    def get_map(self, prefix: str) -> Dict[str, Optional[str]]:
        """Return every key starting with ``prefix`` with its value as a string."""
        return {
            key: (None if value is None else str(value))
            for key, value in self._values.items()
            if key.startswith(prefix)
        }

    def __contains__(self, key: str) -> bool:
        return self.contains(key)

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Settings(keys={len(self._values)}, source={self.source})"


def provider_of(settings: Optional["Settings"], key: str) -> Optional[str]:
    """Return the normalized provider name stored under ``key``, if any."""
    if settings is None:
        return None
    value = settings.get_string(key)
    return value.strip().lower() if value and value.strip() else None
