"""
Persistence adapter for the response cache.

Mirrors cache entries to an injected KeyValueStore, one record per entry
under a namespace prefix. Every storage call is bounded by a timeout and
every failure is logged and contained here: callers only ever see a
successful (possibly empty) result.
"""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING, Any, TypeVar

from assistant_cache.cache.store import CacheEntry
from assistant_cache.errors import CorruptRecordError, PersistenceError
from assistant_cache.telemetry import get_logger

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable

    from assistant_cache.cache.backends import KeyValueStore

T = TypeVar("T")

logger = get_logger("assistant_cache.cache.persistence")


def encode_entry(entry: CacheEntry) -> str:
    """Serialize an entry to its stored record value."""
    return json.dumps({"response": entry.response, "recency": entry.recency})


def decode_entry(key: str, value: str) -> CacheEntry:
    """Parse a stored record value.

    Raises:
        CorruptRecordError: If the value is not a valid record
    """
    try:
        data: Any = json.loads(value)
    except (json.JSONDecodeError, TypeError) as e:
        raise CorruptRecordError("Record is not valid JSON", name=key, cause=e) from e

    if not isinstance(data, dict):
        raise CorruptRecordError("Record is not an object", name=key)

    response = data.get("response")
    recency = data.get("recency")
    if not isinstance(response, str):
        raise CorruptRecordError("Record has no string 'response'", name=key)
    if isinstance(recency, bool) or not isinstance(recency, int):
        raise CorruptRecordError("Record has no integer 'recency'", name=key)

    return CacheEntry(key=key, response=response, recency=recency)


class CachePersistence:
    """Write-through mirror of the cache in a key-value store.

    Example:
        >>> persistence = CachePersistence(DiskStore("/tmp/assistant_cache"))
        >>> entries = await persistence.load()
        >>> await persistence.save(entry)
    """

    def __init__(
        self,
        store: KeyValueStore,
        namespace: str = "ai_cache:",
        timeout: float | None = 2.0,
    ) -> None:
        """Initialize persistence adapter.

        Args:
            store: Backing key-value store
            namespace: Prefix for record names owned by the cache
            timeout: Per-call storage timeout in seconds (None = unbounded)
        """
        self._store = store
        self._namespace = namespace
        self._timeout = timeout
        self._io_lock = asyncio.Lock()
        self._failures = 0

    @property
    def store(self) -> KeyValueStore:
        return self._store

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def failures(self) -> int:
        """Number of storage failures contained so far."""
        return self._failures

    def record_name(self, key: str) -> str:
        """Storage record name for a cache key."""
        return f"{self._namespace}{key}"

    def _owned(self, names: Iterable[str] | None) -> list[str]:
        return [
            n for n in (names or ()) if isinstance(n, str) and n.startswith(self._namespace)
        ]

    async def _run(
        self,
        func: Callable[..., Awaitable[T]],
        args: tuple[Any, ...],
        exclusive: bool,
    ) -> T:
        if not exclusive:
            return await func(*args)
        async with self._io_lock:
            return await func(*args)

    async def _call(
        self,
        operation: str,
        func: Callable[..., Awaitable[T]],
        *args: Any,
        name: str | None = None,
        exclusive: bool = False,
    ) -> T:
        # With exclusive=True the wait for the I/O lock counts against the timeout
        try:
            if self._timeout is None:
                return await self._run(func, args, exclusive)
            return await asyncio.wait_for(self._run(func, args, exclusive), timeout=self._timeout)
        except asyncio.TimeoutError as e:
            raise PersistenceError(
                f"Storage {operation} timed out after {self._timeout}s",
                operation=operation,
                name=name,
                cause=e,
            ) from e
        except Exception as e:
            raise PersistenceError(
                f"Storage {operation} failed: {e}",
                operation=operation,
                name=name,
                cause=e,
            ) from e

    def _contain(self, error: PersistenceError) -> None:
        self._failures += 1
        logger.warning(
            "Cache persistence degraded",
            error=error.message,
            operation=error.operation,
            record=error.name,
        )

    async def _fetch(self, name: str) -> str | None:
        try:
            return await self._store.get(name)
        except Exception as e:
            self._contain(
                PersistenceError(f"Storage get failed: {e}", operation="get", name=name, cause=e)
            )
            return None

    async def _read_records(self) -> list[tuple[str, str | None]]:
        names = self._owned(await self._store.list_keys())
        values = await asyncio.gather(*(self._fetch(n) for n in names))
        return list(zip(names, values))

    async def load(self) -> list[CacheEntry]:
        """Read every persisted entry.

        Listing and fetching all records share one timeout; if it elapses
        the load is abandoned and nothing is restored.

        Returns:
            Decoded entries; empty if storage is unreadable
        """
        try:
            records = await self._call("load", self._read_records)
        except PersistenceError as e:
            self._contain(e)
            return []

        entries: list[CacheEntry] = []
        corrupt: list[str] = []
        for name, value in records:
            if value is None:
                continue
            try:
                entries.append(decode_entry(name[len(self._namespace):], value))
            except CorruptRecordError as e:
                logger.warning("Dropping corrupt cache record", record=name, error=e.message)
                corrupt.append(name)

        if corrupt:
            await self._remove_names(corrupt)

        logger.debug("Loaded persisted cache entries", count=len(entries))
        return entries

    async def save(self, entry: CacheEntry) -> None:
        """Write one entry."""
        name = self.record_name(entry.key)
        try:
            await self._call(
                "set", self._store.set, name, encode_entry(entry), name=name, exclusive=True
            )
        except PersistenceError as e:
            self._contain(e)

    async def remove(self, keys: Iterable[str]) -> None:
        """Remove the records of the given cache keys."""
        names = [self.record_name(k) for k in keys]
        if names:
            await self._remove_names(names)

    async def _remove_names(self, names: list[str]) -> None:
        try:
            await self._call("remove_many", self._store.remove_many, names, exclusive=True)
        except PersistenceError as e:
            self._contain(e)

    async def _clear_owned(self) -> None:
        owned = self._owned(await self._store.list_keys())
        if owned:
            await self._store.remove_many(owned)

    async def clear(self) -> None:
        """Remove every record in the cache namespace.

        Listing and removal happen under the I/O lock, so a write already
        in progress lands before the listing and is removed with the rest.
        Records belonging to other users of the store are left untouched.
        """
        try:
            await self._call("clear", self._clear_owned, exclusive=True)
        except PersistenceError as e:
            self._contain(e)

    async def close(self) -> None:
        """Close the backing store."""
        try:
            await self._call("close", self._store.close)
        except PersistenceError as e:
            self._contain(e)
