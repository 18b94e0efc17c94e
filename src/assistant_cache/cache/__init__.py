"""
Response caching module for assistant-cache.

Provides a bounded, context-aware LRU cache of assistant answers with
pluggable persistent storage.
"""

from assistant_cache.cache.backends import (
    DiskStore,
    KeyValueStore,
    MemoryStore,
    NullStore,
)
from assistant_cache.cache.key import (
    NO_CONTEXT_FINGERPRINT,
    CacheKey,
    CacheKeyGenerator,
    derive_fingerprint,
    derive_key,
)
from assistant_cache.cache.manager import CacheConfig, CacheStats, ContextAwareResponseCache
from assistant_cache.cache.persistence import CachePersistence, decode_entry, encode_entry
from assistant_cache.cache.store import CacheEntry, LRUStore, StoreUpdate

__all__ = [
    "NO_CONTEXT_FINGERPRINT",
    "CacheConfig",
    "CacheEntry",
    "CacheKey",
    "CacheKeyGenerator",
    "CachePersistence",
    "CacheStats",
    "ContextAwareResponseCache",
    "DiskStore",
    "KeyValueStore",
    "LRUStore",
    "MemoryStore",
    "NullStore",
    "StoreUpdate",
    "decode_entry",
    "derive_fingerprint",
    "derive_key",
    "encode_entry",
]
