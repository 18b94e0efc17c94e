"""
Cache-aside wrapper around the assistant's model call.

The model call itself is injected as a ``responder`` coroutine; this module
only decides when to consult the cache, when to store an answer, and who
may ask at all.
"""

from __future__ import annotations

import re
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal, Optional

from assistant_cache.errors import RateLimitedError
from assistant_cache.resilience import UserRateLimiter
from assistant_cache.telemetry import LogContext, get_log_context, get_logger, set_log_context

if TYPE_CHECKING:
    from assistant_cache.cache import ContextAwareResponseCache
    from assistant_cache.types.context import ContextSnapshot

logger = get_logger("assistant_cache.assistant")

History = Sequence[Mapping[str, str]]
Responder = Callable[[str, Optional["ContextSnapshot"], History], Awaitable[str]]

_ACTION_PATTERNS = [
    re.compile(r"(?:you (?:should|could|might want to))\s+([^.!?]+)", re.IGNORECASE),
    re.compile(r"(?:I (?:suggest|recommend))\s+([^.!?]+)", re.IGNORECASE),
    re.compile(r"(?:next step:?)\s+([^.!?]+)", re.IGNORECASE),
    re.compile(r"(?:action:?)\s+([^.!?]+)", re.IGNORECASE),
]

MAX_SUGGESTED_ACTIONS = 3

Confidence = Literal["high", "medium", "low"]


def extract_suggested_actions(text: str) -> list[str]:
    """Pull up to three action phrases out of an answer."""
    actions: list[str] = []
    for pattern in _ACTION_PATTERNS:
        for match in pattern.finditer(text):
            phrase = match.group(1).strip()
            if phrase:
                actions.append(phrase)
    return actions[:MAX_SUGGESTED_ACTIONS]


def assess_confidence(context: ContextSnapshot | None) -> Confidence:
    """Rate how much an answer can be trusted given what the deal is missing.

    Three or more high-severity gaps give "low", one or two "medium", none
    "high". Screens other than the deal cockpit are always "medium".
    """
    if context is None or context.payload.type != "deal_cockpit":
        return "medium"
    missing_high = sum(1 for item in context.payload.missing_info if item.severity == "high")
    if missing_high >= 3:
        return "low"
    if missing_high >= 1:
        return "medium"
    return "high"


@dataclass
class AssistantAnswer:
    """Answer returned to the UI.

    Attributes:
        content: Answer text
        cached: Whether the answer came from the cache
        suggested_actions: Action phrases found in the answer
        confidence: How complete the context behind the answer was
    """

    content: str
    cached: bool = False
    suggested_actions: list[str] = field(default_factory=list)
    confidence: Confidence = "medium"


class CachedAssistant:
    """Answers questions through the cache, falling back to the responder.

    Only standalone questions (no conversation history) are looked up and
    stored, since a follow-up's answer depends on the turns before it. The
    per-user rate limit is checked before the cache so cached answers
    still count against the budget.

    Example:
        >>> assistant = CachedAssistant(call_model, cache)
        >>> answer = await assistant.ask("What is the MAO?", context)
        >>> answer.cached
        False
    """

    def __init__(
        self,
        responder: Responder,
        cache: ContextAwareResponseCache,
        rate_limiter: UserRateLimiter | None = None,
    ) -> None:
        self._responder = responder
        self._cache = cache
        self._rate_limiter = rate_limiter

    @property
    def cache(self) -> ContextAwareResponseCache:
        return self._cache

    async def ask(
        self,
        question: str,
        context: ContextSnapshot | None = None,
        history: History | None = None,
    ) -> AssistantAnswer:
        """Answer a question.

        Args:
            question: Question text
            context: Context the question was asked in
            history: Earlier conversation turns, if any

        Returns:
            AssistantAnswer

        Raises:
            RateLimitedError: If the user has exhausted their request budget
        """
        user_id = context.user_id if context is not None else ""
        previous = get_log_context()
        set_log_context(
            LogContext(
                request_id=previous.request_id,
                user_id=user_id,
                screen=context.screen_name if context else None,
                extra=previous.extra,
            )
        )
        try:
            return await self._answer(question, context, list(history or []), user_id)
        finally:
            set_log_context(previous)

    async def _answer(
        self,
        question: str,
        context: ContextSnapshot | None,
        history: list[Mapping[str, str]],
        user_id: str,
    ) -> AssistantAnswer:
        if self._rate_limiter is not None and not await self._rate_limiter.try_acquire(user_id):
            retry_after = self._rate_limiter.get_wait_time(user_id)
            logger.info("Assistant request rate limited", retry_after=round(retry_after, 2))
            raise RateLimitedError(
                f"Too many requests; retry in {retry_after:.0f}s",
                user_id=user_id or UserRateLimiter.ANONYMOUS,
                retry_after=retry_after,
            )

        confidence = assess_confidence(context)
        standalone = not history
        if standalone:
            cached = await self._cache.get_cached_response(question, context)
            if cached is not None:
                return AssistantAnswer(
                    content=cached,
                    cached=True,
                    suggested_actions=extract_suggested_actions(cached),
                    confidence=confidence,
                )

        content = await self._responder(question, context, history)

        if standalone and content:
            await self._cache.cache_response(question, content, context)

        return AssistantAnswer(
            content=content,
            suggested_actions=extract_suggested_actions(content),
            confidence=confidence,
        )
