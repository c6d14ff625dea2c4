"""
Persisted key-value settings backed by a YAML file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from powertool.logging import get_logger

logger = get_logger("settings")


class SettingsStore:
    """
    Flat key-value store persisted to a YAML file.

    The file is read lazily and rewritten on every mutation. There is no
    locking; concurrent writers race.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._data: dict[str, Any] | None = None

    def _load(self) -> dict[str, Any]:
        if self._data is None:
            if self.path.is_file():
                with open(self.path) as f:
                    data = yaml.safe_load(f)
                self._data = dict(data) if isinstance(data, dict) else {}
            else:
                self._data = {}
        return self._data

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            yaml.safe_dump(self._load(), f, default_flow_style=False, sort_keys=True)

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value for *key*, or *default* if unset."""
        return self._load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Store *value* under *key* and persist."""
        self._load()[key] = value
        self._save()
        logger.debug("Set %s=%r", key, value)

    def reset(self, key: str | None = None) -> bool:
        """
        Remove *key*, or every key when *key* is ``None``.

        Returns:
            True if anything was removed
        """
        data = self._load()
        if key is None:
            removed = bool(data)
            data.clear()
        else:
            removed = key in data
            data.pop(key, None)
        if removed:
            self._save()
        return removed

    def items(self) -> list[tuple[str, Any]]:
        """All settings sorted by key."""
        return sorted(self._load().items())
