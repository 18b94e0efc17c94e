"""
Error hierarchy for assistant-cache.
"""

from assistant_cache.errors.base import (
    AssistantCacheError,
    CorruptRecordError,
    ErrorContext,
    PersistenceError,
    RateLimitedError,
)

__all__ = [
    "AssistantCacheError",
    "CorruptRecordError",
    "ErrorContext",
    "PersistenceError",
    "RateLimitedError",
]
