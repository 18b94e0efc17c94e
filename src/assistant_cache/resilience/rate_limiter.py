"""
Per-user rate limiting using the token bucket algorithm.

Each user id gets its own bucket, so one busy user cannot exhaust the
assistant budget of another.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass


@dataclass
class RateLimiterConfig:
    """Configuration for rate limiter.

    Attributes:
        requests_per_second: Maximum sustained requests per second (0 = unlimited)
        burst_size: Maximum burst size (tokens in bucket)
        initial_tokens: Initial tokens in bucket
    """

    requests_per_second: float = 0.0
    burst_size: int | None = None
    initial_tokens: int | None = None

    @classmethod
    def from_rps(cls, rps: float, burst_multiplier: float = 1.5) -> RateLimiterConfig:
        """Create config from requests per second.

        Args:
            rps: Requests per second
            burst_multiplier: Multiplier for burst size
        """
        burst = max(1, int(rps * burst_multiplier)) if rps > 0 else None
        return cls(
            requests_per_second=rps,
            burst_size=burst,
            initial_tokens=burst,
        )

    @classmethod
    def from_rpm(cls, rpm: float, burst: int | None = None) -> RateLimiterConfig:
        """Create config from requests per minute.

        Args:
            rpm: Requests per minute
            burst: Bucket size (defaults to one minute's worth of requests)
        """
        if rpm <= 0:
            return cls.unlimited()
        size = burst if burst is not None else max(1, int(rpm))
        return cls(requests_per_second=rpm / 60.0, burst_size=size, initial_tokens=size)

    @classmethod
    def unlimited(cls) -> RateLimiterConfig:
        """Create an unlimited rate limiter config."""
        return cls(requests_per_second=0.0)


class RateLimiter:
    """Token bucket rate limiter.

    - Tokens are added at a fixed rate
    - Requests consume tokens
    - If no tokens are available, try_acquire fails immediately

    Example:
        >>> limiter = RateLimiter(RateLimiterConfig.from_rpm(10))
        >>> if await limiter.try_acquire():
        ...     ...  # Make request
    """

    def __init__(self, config: RateLimiterConfig | None = None) -> None:
        self._config = config or RateLimiterConfig()
        self._lock = asyncio.Lock()

        self._tokens = float(
            self._config.initial_tokens
            if self._config.initial_tokens is not None
            else (self._config.burst_size or 1)
        )
        self._max_tokens = float(self._config.burst_size or 1)
        self._last_refill = time.monotonic()
        self._rate = self._config.requests_per_second

    def _refill(self) -> None:
        if self._rate <= 0:
            return

        now = time.monotonic()
        elapsed = now - self._last_refill
        self._last_refill = now
        self._tokens = min(self._tokens + elapsed * self._rate, self._max_tokens)

    async def try_acquire(self, tokens: int = 1) -> bool:
        """Try to acquire tokens without waiting.

        Returns:
            True if acquired, False if the caller would need to wait
        """
        if self._rate <= 0:
            return True

        async with self._lock:
            self._refill()
            if self._tokens >= tokens:
                self._tokens -= tokens
                return True
            return False

    def get_wait_time(self, tokens: int = 1) -> float:
        """Get estimated wait time in seconds until tokens are available."""
        if self._rate <= 0:
            return 0.0

        self._refill()
        if self._tokens >= tokens:
            return 0.0
        return (tokens - self._tokens) / self._rate

    @property
    def available_tokens(self) -> float:
        """Get current available tokens."""
        self._refill()
        return self._tokens

    @property
    def is_limited(self) -> bool:
        """Check if rate limiting is enabled."""
        return self._rate > 0


class UserRateLimiter:
    """One token bucket per user id.

    Anonymous callers (empty user id) share the ``"anonymous"`` bucket.

    Example:
        >>> limiter = UserRateLimiter(RateLimiterConfig.from_rpm(10))
        >>> await limiter.try_acquire("user-a")
        True
    """

    ANONYMOUS = "anonymous"

    def __init__(self, config: RateLimiterConfig | None = None) -> None:
        self._config = config or RateLimiterConfig.from_rpm(10)
        self._limiters: dict[str, RateLimiter] = {}

    @property
    def config(self) -> RateLimiterConfig:
        return self._config

    def _bucket(self, user_id: str) -> RateLimiter:
        user_id = user_id or self.ANONYMOUS
        limiter = self._limiters.get(user_id)
        if limiter is None:
            limiter = RateLimiter(self._config)
            self._limiters[user_id] = limiter
        return limiter

    async def try_acquire(self, user_id: str) -> bool:
        """Consume one request from the user's budget if available."""
        return await self._bucket(user_id).try_acquire()

    def get_wait_time(self, user_id: str) -> float:
        """Seconds until the user may make another request."""
        return self._bucket(user_id).get_wait_time()

    def remaining(self, user_id: str) -> int:
        """Whole requests left in the user's bucket."""
        limiter = self._bucket(user_id)
        if not limiter.is_limited:
            return -1
        return int(limiter.available_tokens)

    def reset(self, user_id: str | None = None) -> None:
        """Forget one user's bucket, or every bucket."""
        if user_id is None:
            self._limiters.clear()
        else:
            self._limiters.pop(user_id or self.ANONYMOUS, None)
