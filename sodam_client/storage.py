"""Async key-value storage collaborators used by the token store.

``KeyValueStorage`` is the contract (``get_item``/``set_item``/``remove_item``);
``MemoryStorage`` keeps values for the life of the process and ``FileStorage``
persists them as a JSON object on disk.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
import json
import logging

logger = logging.getLogger(__name__)


class KeyValueStorage(ABC):
    """Abstract async string store."""

    @abstractmethod
    async def get_item(self, key: str) -> str | None:
        """Return the stored value, or None if the key is absent."""
        pass

    @abstractmethod
    async def set_item(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``."""
        pass

    @abstractmethod
    async def remove_item(self, key: str) -> None:
        """Delete ``key``; removing a missing key is not an error."""
        pass


class MemoryStorage(KeyValueStorage):
    """Storage in memory (lost on process exit)."""

    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    async def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self._items[key] = value
        logger.debug("MemoryStorage.set_item: %s", key)

    async def remove_item(self, key: str) -> None:
        self._items.pop(key, None)
        logger.debug("MemoryStorage.remove_item: %s", key)

    async def clear(self) -> None:
        self._items.clear()

    def keys(self) -> list[str]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)


class FileStorage(KeyValueStorage):
    """Storage backed by a JSON file holding one flat object."""

    def __init__(self, file_path: Path | str) -> None:
        self.file_path = Path(file_path)

    def _read(self) -> dict[str, str]:
        if not self.file_path.exists():
            return {}
        try:
            with open(self.file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError):
            logger.exception("Failed to read %s; treating as empty", self.file_path)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring non-object content in %s", self.file_path)
            return {}
        return data

    def _write(self, data: dict[str, str]) -> None:
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.file_path, "w", encoding="utf-8") as f:
            json.dump(data, f)

    async def get_item(self, key: str) -> str | None:
        return self._read().get(key)

    async def set_item(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)
        logger.debug("Saved %s to %s", key, self.file_path)

    async def remove_item(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)
            logger.debug("Removed %s from %s", key, self.file_path)
