"""
Cache key generation utilities.

Keys are derived from the trimmed question text and a fingerprint of the
parts of the context snapshot that affect whether a cached answer is still
correct: the user, the screen, the selected entities, the payload type and
the payload's declared status fields. Volatile descriptive fields (summary
text, timestamps, metrics) are not part of the fingerprint.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from assistant_cache.types.context import ContextSnapshot

NO_CONTEXT_FINGERPRINT = "no-context"


@dataclass(frozen=True)
class CacheKey:
    """A cache key with metadata.

    Attributes:
        key: The cache key string
        fingerprint: Context fingerprint the key was derived from
        question: Trimmed question text
    """

    key: str
    fingerprint: str = ""
    question: str = ""

    def __str__(self) -> str:
        return self.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, CacheKey):
            return self.key == other.key
        if isinstance(other, str):
            return self.key == other
        return False


def derive_fingerprint(context: ContextSnapshot | None) -> str:
    """Compute the cache fingerprint of a context snapshot.

    Args:
        context: Context snapshot, or None for the shared no-context bucket

    Returns:
        Deterministic fingerprint string
    """
    if context is None:
        return NO_CONTEXT_FINGERPRINT

    parts = {
        "user": context.user_id,
        "screen": context.screen_name,
        "selection": dict(sorted(context.selection.items())),
        "payload_type": context.payload.type,
        "status": context.payload.fingerprint_fields(),
    }
    return json.dumps(parts, sort_keys=True, ensure_ascii=True, separators=(",", ":"))


class CacheKeyGenerator:
    """Generates deterministic cache keys for assistant questions.

    Example:
        >>> generator = CacheKeyGenerator()
        >>> key = generator.generate("What is the MAO?", context)
        >>> print(key.key)  # "assistant:3f9a...:c41d..."
    """

    def __init__(self, prefix: str = "assistant") -> None:
        """Initialize key generator.

        Args:
            prefix: Key prefix
        """
        self._prefix = prefix

    @property
    def prefix(self) -> str:
        return self._prefix

    def generate(
        self,
        question: str,
        context: ContextSnapshot | None = None,
    ) -> CacheKey:
        """Generate a cache key.

        Args:
            question: Question text; surrounding whitespace is ignored
            context: Context snapshot the question was asked in

        Returns:
            CacheKey instance
        """
        question = question.strip()
        fingerprint = derive_fingerprint(context)

        # Encode as a JSON pair so no (fingerprint, question) split is ambiguous
        payload = json.dumps([fingerprint, question], ensure_ascii=True)
        key = ":".join([
            self._prefix,
            self._hash_string(fingerprint)[:16],
            self._hash_string(payload),
        ])

        return CacheKey(key=key, fingerprint=fingerprint, question=question)

    def _hash_string(self, content: str) -> str:
        """Hash a string using SHA-256."""
        return hashlib.sha256(content.encode()).hexdigest()


_default_generator = CacheKeyGenerator()


def derive_key(question: str, context: ContextSnapshot | None = None) -> CacheKey:
    """Derive the cache key for a question asked in a context."""
    return _default_generator.generate(question, context)
