"""
In-memory LRU store for cached answers.

The store itself is not locked; ContextAwareResponseCache serializes every
call under its own lock and mirrors the returned changes to persistence.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator


@dataclass
class CacheEntry:
    """A cache entry.

    Attributes:
        key: Cache key string
        response: Cached answer text
        recency: Sequence number of the last read or write
    """

    key: str
    response: str
    recency: int


@dataclass
class StoreUpdate:
    """Result of a put: the written entry and the entries evicted for it."""

    entry: CacheEntry
    evicted: list[CacheEntry] = field(default_factory=list)


class LRUStore:
    """Bounded map of cache entries with least-recently-used eviction.

    Entries are kept in recency order, least recent first. Both ``get``
    hits and ``put`` move an entry to the most-recent end.

    Example:
        >>> store = LRUStore(capacity=2)
        >>> store.put("a", "A")
        >>> store.put("b", "B")
        >>> store.get("a")
        'A'
        >>> store.put("c", "C").evicted[0].key
        'b'
    """

    def __init__(self, capacity: int = 50) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self._capacity = capacity
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._sequence = 0

    def _next_recency(self) -> int:
        self._sequence += 1
        return self._sequence

    def get(self, key: str) -> CacheEntry | None:
        """Look up an entry and mark it most recently used."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        entry.recency = self._next_recency()
        self._entries.move_to_end(key)
        return entry

    def put(self, key: str, response: str) -> StoreUpdate:
        """Insert or overwrite an entry as most recently used.

        Evicts the least recently used entry if the insert pushed the store
        over capacity.
        """
        entry = self._entries.get(key)
        if entry is None:
            entry = CacheEntry(key=key, response=response, recency=self._next_recency())
            self._entries[key] = entry
        else:
            entry.response = response
            entry.recency = self._next_recency()
            self._entries.move_to_end(key)

        return StoreUpdate(entry=entry, evicted=self._evict_overflow())

    def load(self, entries: Iterable[CacheEntry]) -> list[CacheEntry]:
        """Seed the store from persisted entries.

        Entries are ordered by their stored recency; keys already present
        in memory win over persisted copies. Returns the entries dropped to
        respect capacity.
        """
        persisted = sorted(
            (e for e in entries if e.key not in self._entries),
            key=lambda e: e.recency,
        )
        if not persisted:
            return []

        current = list(self._entries.values())
        self._entries.clear()
        for entry in persisted:
            self._entries[entry.key] = entry
        # In-memory entries are newer than anything loaded from storage
        for entry in current:
            self._entries[entry.key] = entry

        self._sequence = max(self._sequence, max(e.recency for e in persisted))
        for entry in current:
            entry.recency = self._next_recency()

        return self._evict_overflow()

    def clear(self) -> list[str]:
        """Remove every entry. Returns the removed keys."""
        keys = list(self._entries)
        self._entries.clear()
        return keys

    def _evict_overflow(self) -> list[CacheEntry]:
        evicted = []
        while len(self._entries) > self._capacity:
            _, entry = self._entries.popitem(last=False)
            evicted.append(entry)
        return evicted

    def keys(self) -> list[str]:
        """Keys in recency order, least recent first."""
        return list(self._entries)

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def size(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[CacheEntry]:
        return iter(list(self._entries.values()))
