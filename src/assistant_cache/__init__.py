"""
assistant-cache: context-aware response cache for an in-app AI assistant.

Answers are reused only when the question and the parts of the screen
context that affect correctness are unchanged, per user, with LRU eviction
and best-effort persistence.
"""
from __future__ import annotations

from assistant_cache.assistant import AssistantAnswer, CachedAssistant, assess_confidence
from assistant_cache.cache import (
    CacheConfig,
    CacheKey,
    CacheStats,
    ContextAwareResponseCache,
    DiskStore,
    KeyValueStore,
    MemoryStore,
    NullStore,
    derive_key,
)
from assistant_cache.errors import (
    AssistantCacheError,
    CorruptRecordError,
    PersistenceError,
    RateLimitedError,
)
from assistant_cache.types import (
    ContextSnapshot,
    DealCockpitPayload,
    GenericPayload,
    PropertyDetailPayload,
)

__version__ = "0.1.0"

__all__ = [
    # Assistant
    "AssistantAnswer",
    "CachedAssistant",
    "assess_confidence",
    # Cache
    "CacheConfig",
    "CacheKey",
    "CacheStats",
    "ContextAwareResponseCache",
    "DiskStore",
    "KeyValueStore",
    "MemoryStore",
    "NullStore",
    "derive_key",
    # Errors
    "AssistantCacheError",
    "CorruptRecordError",
    "PersistenceError",
    "RateLimitedError",
    # Types
    "ContextSnapshot",
    "DealCockpitPayload",
    "GenericPayload",
    "PropertyDetailPayload",
    # Version
    "__version__",
]
