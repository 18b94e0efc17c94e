"""
Base error classes for assistant-cache.

Provides a small layered error hierarchy:
- AssistantCacheError: Base class for all library errors
- PersistenceError: Key-value storage read/write failures
- CorruptRecordError: Persisted records that cannot be decoded
- RateLimitedError: Per-user request budget exhausted

Persistence errors never escape the public cache operations; they are
raised inside the persistence adapter and logged at its boundary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class ErrorContext:
    """Structured error context for diagnostics."""

    details: dict[str, Any] = field(default_factory=dict)
    """Additional details about the error"""

    source: str | None = None
    """Error source (e.g., 'persistence', 'assistant')"""

    hint: str | None = None
    """Actionable hint for resolving the error"""

    def __str__(self) -> str:
        parts = []
        if self.source:
            parts.append(f"[{self.source}]")
        if self.hint:
            parts.append(f"(hint: {self.hint})")
        return " ".join(parts)


class AssistantCacheError(Exception):
    """Base class for all assistant-cache errors.

    Attributes:
        message: Human-readable error message
        context: Optional structured error context
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
    ) -> None:
        self.message = message
        self.context = context or ErrorContext()
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the full error message."""
        ctx_str = str(self.context)
        if ctx_str:
            return f"{self.message} {ctx_str}"
        return self.message

    def with_hint(self, hint: str) -> AssistantCacheError:
        """Add a hint to this error."""
        self.context.hint = hint
        return self


class PersistenceError(AssistantCacheError):
    """Error talking to the injected key-value store.

    Raised when:
    - A read (get / list_keys) fails or times out
    - A write (set / remove_many) fails or times out
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        operation: str | None = None,
        name: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        ctx = context or ErrorContext(source="persistence")
        if operation:
            ctx.details["operation"] = operation
        if name:
            ctx.details["name"] = name
        super().__init__(message, ctx)
        self.operation = operation
        self.name = name
        self.__cause__ = cause


class CorruptRecordError(PersistenceError):
    """A persisted cache record could not be decoded."""

    def __init__(
        self,
        message: str,
        *,
        name: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, operation="decode", name=name, cause=cause)


class RateLimitedError(AssistantCacheError):
    """A user exceeded their assistant request budget."""

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        user_id: str | None = None,
        retry_after: float | None = None,
    ) -> None:
        ctx = context or ErrorContext(source="assistant")
        if user_id is not None:
            ctx.details["user_id"] = user_id
        if retry_after is not None:
            ctx.details["retry_after"] = retry_after
        super().__init__(message, ctx)
        self.user_id = user_id
        self.retry_after = retry_after
