"""Rate limiting adapters.

The API layer talks to ``AbstractRateLimiter``; the Redis implementation keeps
counters shared across every worker process.
"""

from worknow.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from worknow.adapters.rate_limit.redis_fixed_window import RedisFixedWindowRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "RateLimitResult",
    "RedisFixedWindowRateLimiter",
]
