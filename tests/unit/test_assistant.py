"""Tests for the cached assistant wrapper."""

from __future__ import annotations

import pytest

from assistant_cache.assistant import CachedAssistant, assess_confidence, extract_suggested_actions
from assistant_cache.cache import ContextAwareResponseCache
from assistant_cache.errors import RateLimitedError
from assistant_cache.resilience import RateLimiterConfig, UserRateLimiter
from assistant_cache.telemetry import (
    LogContext,
    clear_log_context,
    get_log_context,
    set_log_context,
)


class FakeResponder:
    """Responder that records calls and returns canned answers."""

    def __init__(self, answer: str = "You should send the offer today.") -> None:
        self.answer = answer
        self.calls: list[tuple[str, object, list]] = []

    async def __call__(self, question, context, history) -> str:
        self.calls.append((question, context, list(history)))
        return self.answer


class BrokenResponder:
    async def __call__(self, question, context, history) -> str:
        raise ConnectionError("model unavailable")


class TestExtractSuggestedActions:
    """Tests for action phrase extraction."""

    def test_extracts_phrases(self) -> None:
        """Test the supported phrasings."""
        text = (
            "You should get a contractor walkthrough. "
            "I recommend verifying the ARV. Next step: send the offer."
        )
        assert extract_suggested_actions(text) == [
            "get a contractor walkthrough",
            "verifying the ARV",
            "send the offer",
        ]

    def test_limited_to_three(self) -> None:
        """Test at most three actions are returned."""
        text = "You should a. You should b. You should c. You should d."
        assert len(extract_suggested_actions(text)) == 3

    def test_none_found(self) -> None:
        """Test plain text yields no actions."""
        assert extract_suggested_actions("The deal looks solid.") == []


class TestCachedAssistant:
    """Tests for CachedAssistant."""

    @pytest.mark.asyncio
    async def test_second_ask_is_cached(self, cache, deal_context) -> None:
        """Test a repeated standalone question is served from the cache."""
        responder = FakeResponder()
        assistant = CachedAssistant(responder, cache)
        ctx = deal_context()

        first = await assistant.ask("What next?", ctx)
        second = await assistant.ask("What next?", ctx)

        assert not first.cached
        assert second.cached
        assert second.content == first.content
        assert second.suggested_actions == ["send the offer today"]
        assert len(responder.calls) == 1

    @pytest.mark.asyncio
    async def test_history_bypasses_cache(self, cache, deal_context) -> None:
        """Test follow-up questions are neither looked up nor stored."""
        responder = FakeResponder()
        assistant = CachedAssistant(responder, cache)
        ctx = deal_context()
        history = [{"role": "user", "content": "Hi"}, {"role": "assistant", "content": "Hello"}]

        await assistant.ask("What next?", ctx)
        answer = await assistant.ask("What next?", ctx, history=history)

        assert not answer.cached
        assert len(responder.calls) == 2
        assert responder.calls[1][2] == history
        assert cache.stats.sets == 1

    @pytest.mark.asyncio
    async def test_empty_answer_not_cached(self, cache, deal_context) -> None:
        """Test empty answers are not stored."""
        assistant = CachedAssistant(FakeResponder(answer=""), cache)
        await assistant.ask("What next?", deal_context())
        assert cache.size == 0

    @pytest.mark.asyncio
    async def test_responder_error_propagates(self, cache, deal_context) -> None:
        """Test model failures reach the caller and cache nothing."""
        assistant = CachedAssistant(BrokenResponder(), cache)
        with pytest.raises(ConnectionError):
            await assistant.ask("What next?", deal_context())
        assert cache.size == 0

    @pytest.mark.asyncio
    async def test_rate_limit_checked_before_cache(self, cache, deal_context) -> None:
        """Test cached answers still count against the user's budget."""
        limiter = UserRateLimiter(RateLimiterConfig.from_rpm(2))
        responder = FakeResponder()
        assistant = CachedAssistant(responder, cache, rate_limiter=limiter)
        ctx = deal_context(user_id="user-a")

        await assistant.ask("What next?", ctx)
        await assistant.ask("What next?", ctx)
        with pytest.raises(RateLimitedError) as exc_info:
            await assistant.ask("What next?", ctx)

        assert exc_info.value.user_id == "user-a"
        assert exc_info.value.retry_after is not None
        assert exc_info.value.retry_after > 0
        assert len(responder.calls) == 1

    @pytest.mark.asyncio
    async def test_rate_limit_is_per_user(self, cache, deal_context) -> None:
        """Test one user's budget does not affect another's."""
        limiter = UserRateLimiter(RateLimiterConfig.from_rpm(1))
        assistant = CachedAssistant(FakeResponder(), cache, rate_limiter=limiter)

        await assistant.ask("Q", deal_context(user_id="user-a"))
        answer = await assistant.ask("Q", deal_context(user_id="user-b"))

        assert not answer.cached

    @pytest.mark.asyncio
    async def test_without_context(self) -> None:
        """Test questions without context use the shared bucket."""
        cache = ContextAwareResponseCache()
        assistant = CachedAssistant(FakeResponder(answer="Generic answer"), cache)

        await assistant.ask("Generic question")
        answer = await assistant.ask("Generic question")

        assert answer.cached
        assert answer.content == "Generic answer"

    @pytest.mark.asyncio
    async def test_answer_carries_confidence(self, cache, deal_context) -> None:
        """Test fresh and cached answers report the same confidence."""
        assistant = CachedAssistant(FakeResponder(), cache)
        ctx = deal_context(payload=_deal_payload("high"))

        first = await assistant.ask("What next?", ctx)
        second = await assistant.ask("What next?", ctx)

        assert second.cached
        assert first.confidence == second.confidence == "medium"

    @pytest.mark.asyncio
    async def test_log_context_restored(self, cache, deal_context) -> None:
        """Test the caller's log context is put back after each ask."""
        assistant = CachedAssistant(FakeResponder(), cache)
        set_log_context(LogContext(request_id="req-9"))
        try:
            await assistant.ask("What next?", deal_context(user_id="user-a"))
            assert get_log_context().to_dict() == {"request_id": "req-9"}
        finally:
            clear_log_context()

    @pytest.mark.asyncio
    async def test_log_context_restored_on_error(self, cache, deal_context) -> None:
        """Test a rate-limited ask does not leave its user in the log context."""
        limiter = UserRateLimiter(RateLimiterConfig.from_rpm(1))
        assistant = CachedAssistant(FakeResponder(), cache, rate_limiter=limiter)
        ctx = deal_context(user_id="user-a")

        await assistant.ask("What next?", ctx)
        with pytest.raises(RateLimitedError):
            await assistant.ask("What next?", ctx)

        assert get_log_context().to_dict() == {}


def _deal_payload(*severities: str) -> dict:
    return {
        "type": "deal_cockpit",
        "deal": {"id": "deal-123", "stage": "analyzing", "numbers": {}},
        "missingInfo": [
            {"key": f"field{i}", "label": f"Field {i}", "severity": s}
            for i, s in enumerate(severities)
        ],
        "recentEvents": [],
    }


class TestAssessConfidence:
    """Tests for answer confidence."""

    @pytest.mark.parametrize(
        ("severities", "expected"),
        [
            ((), "high"),
            (("med", "low"), "high"),
            (("high",), "medium"),
            (("high", "high", "med"), "medium"),
            (("high", "high", "high"), "low"),
        ],
    )
    def test_deal_missing_info(self, deal_context, severities, expected) -> None:
        """Test confidence drops with high-severity gaps."""
        ctx = deal_context(payload=_deal_payload(*severities))
        assert assess_confidence(ctx) == expected

    def test_other_screens_are_medium(self, generic_context) -> None:
        """Test non-deal screens and missing context rate medium."""
        assert assess_confidence(generic_context()) == "medium"
        assert assess_confidence(None) == "medium"
