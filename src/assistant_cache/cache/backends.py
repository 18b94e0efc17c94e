"""
Key-value storage backends.

The cache persists its entries through a KeyValueStore. Implementations
are free to raise on any call; the persistence adapter contains failures.
Provides memory, disk, and null backends.
"""

from __future__ import annotations

import asyncio
import hashlib
import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


class KeyValueStore(ABC):
    """Abstract asynchronous string key-value store."""

    @abstractmethod
    async def get(self, name: str) -> str | None:
        """Get a value.

        Args:
            name: Record name

        Returns:
            Stored value or None
        """
        raise NotImplementedError

    @abstractmethod
    async def set(self, name: str, value: str) -> None:
        """Store a value.

        Args:
            name: Record name
            value: Value to store
        """
        raise NotImplementedError

    @abstractmethod
    async def list_keys(self) -> list[str]:
        """List every record name in the store."""
        raise NotImplementedError

    @abstractmethod
    async def remove_many(self, names: Iterable[str]) -> None:
        """Remove records. Missing names are ignored.

        Args:
            names: Record names to remove
        """
        raise NotImplementedError

    async def close(self) -> None:
        """Close the backend (cleanup)."""
        pass


class MemoryStore(KeyValueStore):
    """In-memory key-value store.

    Survives cache instances but not the process; useful for tests and for
    sharing one store between several caches.

    Example:
        >>> store = MemoryStore()
        >>> await store.set("ai_cache:k", '{"response": "hi", "recency": 1}')
        >>> await store.list_keys()
        ['ai_cache:k']
    """

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self._lock = asyncio.Lock()

    async def get(self, name: str) -> str | None:
        async with self._lock:
            return self._data.get(name)

    async def set(self, name: str, value: str) -> None:
        async with self._lock:
            self._data[name] = value

    async def list_keys(self) -> list[str]:
        async with self._lock:
            return list(self._data)

    async def remove_many(self, names: Iterable[str]) -> None:
        async with self._lock:
            for name in names:
                self._data.pop(name, None)

    @property
    def size(self) -> int:
        """Get current number of records."""
        return len(self._data)


class DiskStore(KeyValueStore):
    """Disk-based key-value store.

    Stores each record as a JSON file named after the hash of its name.

    Example:
        >>> store = DiskStore(path="/tmp/assistant_cache")
        >>> await store.set("ai_cache:k", "value")
        >>> await store.get("ai_cache:k")
        'value'
    """

    def __init__(self, path: str | Path) -> None:
        """Initialize disk store.

        Args:
            path: Storage directory path
        """
        self._path = Path(path)
        self._lock = asyncio.Lock()
        self._path.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def _name_to_path(self, name: str) -> Path:
        # Hash name to create safe filename
        name_hash = hashlib.sha256(name.encode()).hexdigest()
        return self._path / f"{name_hash}.json"

    async def get(self, name: str) -> str | None:
        path = self._name_to_path(name)

        async with self._lock:
            if not path.exists():
                return None
            data = json.loads(path.read_text())
            return data["value"]

    async def set(self, name: str, value: str) -> None:
        path = self._name_to_path(name)

        async with self._lock:
            tmp = path.with_suffix(".tmp")
            tmp.write_text(json.dumps({"name": name, "value": value}))
            tmp.replace(path)

    async def list_keys(self) -> list[str]:
        names = []
        async with self._lock:
            for path in self._path.glob("*.json"):
                try:
                    names.append(json.loads(path.read_text())["name"])
                except (json.JSONDecodeError, KeyError, TypeError):
                    # Not one of ours; leave it alone
                    continue
        return names

    async def remove_many(self, names: Iterable[str]) -> None:
        async with self._lock:
            for name in names:
                self._name_to_path(name).unlink(missing_ok=True)


class NullStore(KeyValueStore):
    """Store that keeps nothing, turning the cache into a memory-only cache."""

    async def get(self, name: str) -> str | None:  # noqa: ARG002
        """Always returns None."""
        return None

    async def set(self, name: str, value: str) -> None:
        """Does nothing."""
        pass

    async def list_keys(self) -> list[str]:
        """Always empty."""
        return []

    async def remove_many(self, names: Iterable[str]) -> None:
        """Does nothing."""
        pass
