"""
Key-value stores for saved games.

The game board is always authoritative in memory; a store is a convenience
mirror written after each successful attack and read back on startup.
Payloads are plain JSON-serializable dicts.
"""

from __future__ import annotations

import json
import os
import re
from abc import ABC, abstractmethod
from typing import Any, Optional


class StorageError(Exception):
    """Raised when a store cannot read or write a key."""
    pass


class KeyValueStore(ABC):
    """Abstract named-key store."""

    @abstractmethod
    def get(self, key: str) -> Optional[dict[str, Any]]:
        """Return the payload under key, or None if nothing is stored."""
        ...

    @abstractmethod
    def set(self, key: str, value: dict[str, Any]) -> None:
        """Store value under key, replacing any previous payload."""
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...


class MemoryStore(KeyValueStore):
    """In-process store. Values round-trip through JSON like a real backend."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Optional[dict[str, Any]]:
        raw = self._data.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageError(f"Corrupt payload under {key!r}: {e}") from e

    def set(self, key: str, value: dict[str, Any]) -> None:
        try:
            self._data[key] = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Payload for {key!r} is not JSON-serializable: {e}") from e

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data


class JsonFileStore(KeyValueStore):
    """One JSON file per key inside a directory."""

    def __init__(self, directory: str):
        self.directory = directory

    def _path(self, key: str) -> str:
        safe = re.sub(r'[^A-Za-z0-9_.-]', '_', key)
        return os.path.join(self.directory, f"{safe}.json")

    def get(self, key: str) -> Optional[dict[str, Any]]:
        path = self._path(key)
        if not os.path.exists(path):
            return None
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read {path}: {e}") from e

    def set(self, key: str, value: dict[str, Any]) -> None:
        path = self._path(key)
        tmp_path = path + '.tmp'
        try:
            os.makedirs(self.directory, exist_ok=True)
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(value, f)
            os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError) as e:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise StorageError(f"Failed to write {path}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            os.remove(self._path(key))
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageError(f"Failed to delete {key!r}: {e}") from e
