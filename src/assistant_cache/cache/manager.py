"""
Context-aware response cache for the AI assistant.

Combines key derivation, the in-memory LRU store and the persistence
adapter behind three coroutines that never raise.
"""

from __future__ import annotations

import asyncio
import dataclasses
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from assistant_cache.cache.backends import DiskStore, KeyValueStore, NullStore
from assistant_cache.cache.key import CacheKeyGenerator
from assistant_cache.cache.persistence import CachePersistence
from assistant_cache.cache.store import CacheEntry, LRUStore
from assistant_cache.errors import AssistantCacheError, ErrorContext
from assistant_cache.telemetry import get_logger

if TYPE_CHECKING:
    from assistant_cache.types.context import ContextSnapshot

logger = get_logger("assistant_cache.cache")


@dataclass
class CacheStats:
    """Cache statistics.

    Attributes:
        hits: Number of cache hits
        misses: Number of cache misses
        sets: Number of cache writes
        evictions: Number of LRU evictions
    """

    hits: int = 0
    misses: int = 0
    sets: int = 0
    evictions: int = 0

    @property
    def total_requests(self) -> int:
        """Get total number of lookups."""
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        """Get cache hit rate (0.0 to 1.0)."""
        total = self.total_requests
        if total == 0:
            return 0.0
        return self.hits / total

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "sets": self.sets,
            "evictions": self.evictions,
            "total_requests": self.total_requests,
            "hit_rate": self.hit_rate,
        }

    def reset(self) -> None:
        """Reset statistics."""
        self.hits = 0
        self.misses = 0
        self.sets = 0
        self.evictions = 0


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class CacheConfig:
    """Cache configuration.

    Attributes:
        enabled: Whether caching is enabled
        max_entries: Maximum number of cached answers
        namespace: Record name prefix in the key-value store
        storage_timeout: Per-call storage timeout in seconds (None = unbounded)
        persist_reads: Whether read hits write their new recency to storage
        key_prefix: Cache key prefix
        storage_dir: Directory for the default disk store (None = memory only)
    """

    enabled: bool = True
    max_entries: int = 50
    namespace: str = "ai_cache:"
    storage_timeout: float | None = 2.0
    persist_reads: bool = True
    key_prefix: str = "assistant"
    storage_dir: str | None = None

    def __post_init__(self) -> None:
        if self.max_entries < 1:
            raise AssistantCacheError(
                f"max_entries must be at least 1, got {self.max_entries}",
                ErrorContext(source="config", details={"field": "max_entries"}),
            )

    @classmethod
    def disabled(cls) -> CacheConfig:
        """Create disabled cache config."""
        return cls(enabled=False)

    @classmethod
    def memory_only(cls, max_entries: int = 50) -> CacheConfig:
        """Create config that never touches persistent storage."""
        return cls(max_entries=max_entries, storage_dir=None)

    @classmethod
    def from_env(cls) -> CacheConfig:
        """Create configuration from environment variables."""
        timeout = os.getenv("ASSISTANT_CACHE_STORAGE_TIMEOUT_SECS")
        return cls(
            enabled=_env_bool("ASSISTANT_CACHE_ENABLED", True),
            max_entries=int(os.getenv("ASSISTANT_CACHE_MAX_ENTRIES", "50")),
            namespace=os.getenv("ASSISTANT_CACHE_NAMESPACE", "ai_cache:"),
            storage_timeout=float(timeout) if timeout else 2.0,
            persist_reads=_env_bool("ASSISTANT_CACHE_PERSIST_READS", True),
            storage_dir=os.getenv("ASSISTANT_CACHE_DIR") or None,
        )

    @classmethod
    def from_file(cls, path: str | Path) -> CacheConfig:
        """Load configuration from a YAML file.

        The file holds a mapping of field names to values, optionally nested
        under a top-level ``cache`` key.

        Raises:
            AssistantCacheError: If the file is missing, malformed or has
                unknown fields
        """
        path = Path(path)
        try:
            data = yaml.safe_load(path.read_text())
        except (OSError, yaml.YAMLError) as e:
            raise AssistantCacheError(
                f"Cannot read cache config: {e}",
                ErrorContext(source="config", details={"path": str(path)}),
            ) from e

        if isinstance(data, dict) and isinstance(data.get("cache"), dict):
            data = data["cache"]
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise AssistantCacheError(
                "Cache config must be a mapping",
                ErrorContext(source="config", details={"path": str(path)}),
            )

        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise AssistantCacheError(
                f"Unknown cache config fields: {', '.join(unknown)}",
                ErrorContext(source="config", details={"path": str(path)}),
            ).with_hint(f"Valid fields: {', '.join(sorted(known))}")

        return cls(**data)


class ContextAwareResponseCache:
    """Bounded, per-user, context-aware cache of assistant answers.

    An answer is returned only when the question and the fingerprinted parts
    of the context are unchanged. Once ``max_entries`` answers are stored, each
    new answer evicts the least recently used one. Entries are mirrored to
    an injected key-value store so they survive restarts; storage failures
    are logged and otherwise ignored.

    Construct one instance at application start and pass it to callers.

    Example:
        >>> cache = ContextAwareResponseCache(storage=DiskStore("/tmp/ai"))
        >>>
        >>> cached = await cache.get_cached_response(question, context)
        >>> if cached is None:
        ...     answer = await ask_model(question, context)
        ...     await cache.cache_response(question, answer, context)
    """

    def __init__(
        self,
        config: CacheConfig | None = None,
        storage: KeyValueStore | None = None,
    ) -> None:
        """Initialize cache.

        Args:
            config: Cache configuration
            storage: Persistent key-value store (defaults to a DiskStore
                when ``config.storage_dir`` is set, otherwise no persistence)
        """
        self._config = config or CacheConfig()
        self._key_generator = CacheKeyGenerator(prefix=self._config.key_prefix)
        self._stats = CacheStats()
        self._store = LRUStore(capacity=self._config.max_entries)
        self._lock = asyncio.Lock()
        self._load_lock = asyncio.Lock()
        self._loaded = False

        if storage is None:
            if self._config.storage_dir:
                storage = DiskStore(self._config.storage_dir)
            else:
                storage = NullStore()
        self._persistence = CachePersistence(
            storage,
            namespace=self._config.namespace,
            timeout=self._config.storage_timeout,
        )

    async def _ensure_loaded(self) -> None:
        if self._loaded:
            return

        async with self._load_lock:
            if self._loaded:
                return
            entries = await self._persistence.load()
            async with self._lock:
                dropped = self._store.load(entries)
            self._loaded = True

        if entries:
            logger.debug("Restored cached answers", count=len(entries) - len(dropped))
        if dropped:
            await self._persistence.remove(e.key for e in dropped)

    async def get_cached_response(
        self,
        question: str,
        context: ContextSnapshot | None = None,
    ) -> str | None:
        """Get a cached answer.

        Args:
            question: Question text
            context: Context the question was asked in

        Returns:
            Cached answer or None
        """
        if not self._config.enabled:
            self._stats.misses += 1
            return None

        try:
            key = self._key_generator.generate(question, context)
            await self._ensure_loaded()

            async with self._lock:
                entry = self._store.get(key.key)
                snapshot = dataclasses.replace(entry) if entry is not None else None

            if snapshot is None:
                self._stats.misses += 1
                logger.debug("Cache miss", cache_key=key.key)
                return None

            self._stats.hits += 1
            logger.debug("Cache hit", cache_key=key.key)
            if self._config.persist_reads:
                await self._persistence.save(snapshot)
            return snapshot.response

        except Exception:
            logger.exception("Cache lookup failed")
            self._stats.misses += 1
            return None

    async def cache_response(
        self,
        question: str,
        response: str,
        context: ContextSnapshot | None = None,
    ) -> None:
        """Cache an answer.

        Args:
            question: Question text
            response: Answer to cache
            context: Context the question was asked in
        """
        if not self._config.enabled:
            return
        if not isinstance(response, str):
            logger.warning("Ignoring non-string response", type=type(response).__name__)
            return

        try:
            key = self._key_generator.generate(question, context)
            await self._ensure_loaded()

            async with self._lock:
                update = self._store.put(key.key, response)
                written = dataclasses.replace(update.entry)
                evicted = [e.key for e in update.evicted]

            self._stats.sets += 1
            if evicted:
                self._stats.evictions += len(evicted)
                logger.debug("Evicted least recently used answer", evicted_keys=evicted)
                await self._persistence.remove(evicted)
            await self._persistence.save(written)

        except Exception:
            logger.exception("Caching answer failed")

    async def clear_cache(self) -> None:
        """Clear all cached answers, in memory and in storage."""
        try:
            async with self._load_lock:
                async with self._lock:
                    removed = self._store.clear()
                # Anything still persisted is about to be deleted
                self._loaded = True

            self._stats.reset()
            logger.debug("Cleared cache", count=len(removed))
            await self._persistence.clear()

        except Exception:
            logger.exception("Clearing cache failed")

    @property
    def stats(self) -> CacheStats:
        """Get cache statistics."""
        return self._stats

    @property
    def config(self) -> CacheConfig:
        """Get cache configuration."""
        return self._config

    @property
    def enabled(self) -> bool:
        """Check if caching is enabled."""
        return self._config.enabled

    @property
    def size(self) -> int:
        """Number of answers currently held in memory."""
        return self._store.size

    @property
    def persistence(self) -> CachePersistence:
        return self._persistence

    def entries(self) -> list[CacheEntry]:
        """Copies of the cached entries, least recently used first."""
        return [dataclasses.replace(e) for e in self._store]

    async def close(self) -> None:
        """Close the cache and its storage."""
        await self._persistence.close()
