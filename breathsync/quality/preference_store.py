"""
Preference stores.

The quality controller persists the user's preset through a plain string
key-value store. Stores may fail (storage disabled, disk full); callers
treat every failure as recoverable.

To add a new store:
1. Inherit from PreferenceStore
2. Implement get() and set()
"""

from __future__ import annotations

import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

from loguru import logger


class PreferenceStore(ABC):
    """Abstract string key-value preference store."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a value, raising on failure."""


class MemoryPreferenceStore(PreferenceStore):
    """Process-local store. Survives controller reconstruction, not restarts."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def snapshot(self) -> Dict[str, str]:
        return dict(self._values)


class JsonPreferenceStore(PreferenceStore):
    """
    Store backed by a flat JSON object on disk.

    Writes go to a temporary file that replaces the target, so a crash
    mid-write leaves the previous file intact.
    """

    def __init__(self, path: str | os.PathLike):
        self.path = Path(path).expanduser()

    def get(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def _read(self) -> Dict[str, object]:
        if not self.path.exists():
            return {}

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Ignoring corrupt preferences file {self.path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Ignoring preferences file {self.path}: expected a JSON object")
            return {}
        return data
