"""Tests for error module."""

from assistant_cache.errors import (
    AssistantCacheError,
    CorruptRecordError,
    ErrorContext,
    PersistenceError,
    RateLimitedError,
)


class TestErrorContext:
    """Tests for ErrorContext."""

    def test_empty_context(self) -> None:
        """Test empty context string representation."""
        assert str(ErrorContext()) == ""

    def test_context_with_source_and_hint(self) -> None:
        """Test source and hint formatting."""
        ctx = ErrorContext(source="persistence", hint="Check disk space")
        assert str(ctx) == "[persistence] (hint: Check disk space)"


class TestAssistantCacheError:
    """Tests for AssistantCacheError."""

    def test_message(self) -> None:
        """Test plain message."""
        error = AssistantCacheError("Something failed")
        assert str(error) == "Something failed"
        assert error.message == "Something failed"

    def test_with_hint(self) -> None:
        """Test adding a hint."""
        error = AssistantCacheError("Bad config").with_hint("Fix it")
        assert error.context.hint == "Fix it"


class TestPersistenceError:
    """Tests for persistence errors."""

    def test_details(self) -> None:
        """Test operation and record name are recorded."""
        cause = OSError("disk full")
        error = PersistenceError("Write failed", operation="set", name="ai_cache:k", cause=cause)
        assert isinstance(error, AssistantCacheError)
        assert error.context.source == "persistence"
        assert error.context.details == {"operation": "set", "name": "ai_cache:k"}
        assert error.__cause__ is cause

    def test_corrupt_record(self) -> None:
        """Test corrupt records are persistence errors on decode."""
        error = CorruptRecordError("Bad record", name="ai_cache:k")
        assert isinstance(error, PersistenceError)
        assert error.operation == "decode"
        assert error.name == "ai_cache:k"


class TestRateLimitedError:
    """Tests for RateLimitedError."""

    def test_details(self) -> None:
        """Test user and retry delay are recorded."""
        error = RateLimitedError("Slow down", user_id="user-a", retry_after=12.5)
        assert error.context.source == "assistant"
        assert error.context.details["retry_after"] == 12.5
        assert "[assistant]" in str(error)
