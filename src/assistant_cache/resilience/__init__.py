"""
Resilience helpers for assistant-cache.
"""

from assistant_cache.resilience.rate_limiter import (
    RateLimiter,
    RateLimiterConfig,
    UserRateLimiter,
)

__all__ = [
    "RateLimiter",
    "RateLimiterConfig",
    "UserRateLimiter",
]
