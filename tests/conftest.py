"""Root pytest fixtures for assistant-cache tests."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

import pytest

from assistant_cache.cache import CacheConfig, ContextAwareResponseCache, KeyValueStore, MemoryStore
from assistant_cache.types import ContextSnapshot


class FailingStore(KeyValueStore):
    """Key-value store whose selected operations always raise."""

    def __init__(
        self,
        fail_reads: bool = True,
        fail_writes: bool = True,
        data: dict[str, str] | None = None,
    ) -> None:
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes
        self.data: dict[str, str] = dict(data or {})
        self.calls: list[str] = []

    async def get(self, name: str) -> str | None:
        self.calls.append("get")
        if self.fail_reads:
            raise OSError("storage unavailable")
        return self.data.get(name)

    async def set(self, name: str, value: str) -> None:
        self.calls.append("set")
        if self.fail_writes:
            raise OSError("disk full")
        self.data[name] = value

    async def list_keys(self) -> list[str]:
        self.calls.append("list_keys")
        if self.fail_reads:
            raise OSError("storage unavailable")
        return list(self.data)

    async def remove_many(self, names: Iterable[str]) -> None:
        self.calls.append("remove_many")
        if self.fail_writes:
            raise OSError("disk full")
        for name in names:
            self.data.pop(name, None)


def _deal_context(
    user_id: str = "test-user",
    stage: str = "analyzing",
    deal_id: str = "deal-123",
    **overrides: Any,
) -> ContextSnapshot:
    data: dict[str, Any] = {
        "app": {"version": "1.0.0", "platform": "ios"},
        "user": {"id": user_id, "plan": "pro", "timezone": "America/New_York"},
        "screen": {"name": "DealCockpit", "route": f"/deals/{deal_id.removeprefix('deal-')}"},
        "permissions": {"canWrite": True, "canSendForESign": True, "canGenerateReports": True},
        "focusMode": False,
        "selection": {"dealId": deal_id},
        "summary": {"oneLiner": "Test deal", "lastUpdated": "2026-01-15T10:00:00Z"},
        "payload": {
            "type": "deal_cockpit",
            "deal": {"id": deal_id, "stage": stage, "numbers": {}},
            "missingInfo": [],
            "recentEvents": [],
        },
    }
    data.update(overrides)
    return ContextSnapshot.model_validate(data)


def _generic_context(user_id: str = "test-user", screen: str = "DealCockpit") -> ContextSnapshot:
    return ContextSnapshot.model_validate({
        "user": {"id": user_id, "plan": "pro"},
        "screen": {"name": screen, "route": "/deals/123"},
        "selection": {"dealId": "deal-123"},
        "summary": {"oneLiner": "Test deal"},
        "payload": {"type": "generic", "screenName": screen},
    })


@pytest.fixture
def deal_context() -> Callable[..., ContextSnapshot]:
    """Factory for deal cockpit contexts."""
    return _deal_context


@pytest.fixture
def generic_context() -> Callable[..., ContextSnapshot]:
    """Factory for generic-screen contexts."""
    return _generic_context


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def cache(memory_store: MemoryStore) -> ContextAwareResponseCache:
    """A fresh cache per test, persisted to an in-memory store."""
    return ContextAwareResponseCache(CacheConfig(), storage=memory_store)


@pytest.fixture
def failing_store() -> FailingStore:
    return FailingStore()


@pytest.fixture
def failing_store_factory() -> Callable[..., FailingStore]:
    return FailingStore
