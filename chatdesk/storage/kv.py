"""
Key-value substrates for persisted conversations.

Values are opaque strings; callers own serialization. Every ``set`` is a
whole-value overwrite.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from urllib.parse import quote

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Synchronous string key-value storage."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None when the key is missing."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Overwrite the value stored under key."""


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local storage, mostly useful for tests and ephemeral sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def keys(self) -> list[str]:
        return sorted(self._data)


class FileKeyValueStore(KeyValueStore):
    """Persist each key as one JSON document under a data directory."""

    def __init__(self, data_dir: Path | str) -> None:
        self.data_dir = Path(data_dir)

    def _ensure_dir(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True, mode=0o700)

    def path_for(self, key: str) -> Path:
        # percent-encoding keeps distinct keys in distinct files
        safe_key = quote(key, safe="")
        return self.data_dir / f"{safe_key}.json"

    def get(self, key: str) -> str | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as handle:
            return handle.read()

    def set(self, key: str, value: str) -> None:
        self._ensure_dir()
        path = self.path_for(key)
        with open(path, "w", encoding="utf-8") as handle:
            handle.write(value)
        logger.debug("kv_write", extra={"key": key, "path": str(path), "bytes": len(value)})
