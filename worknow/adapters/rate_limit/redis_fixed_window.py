"""Redis fixed-window rate limiter.

Notes:
- Shared across workers: the counter lives in Redis, so the limit holds for
  the whole deployment, not per process.
- Fails open: if Redis is unavailable every request is allowed.
"""

from __future__ import annotations

import logging

from redis.asyncio import Redis

from worknow.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult

logger = logging.getLogger(__name__)

RATE_LIMIT_PREFIX = "rate_limit:"
DEFAULT_LIMIT = 100
DEFAULT_WINDOW_SECONDS = 3600

# Redis TTL reply for a key that exists without an expiry
_NO_EXPIRY = -1


class RedisFixedWindowRateLimiter(AbstractRateLimiter):
    """Counts requests per identifier with INCR and a window-long EXPIRE.

    The first INCR of a window sets the expiry. If that EXPIRE never landed
    (crash between the two commands, or an eviction race) the counter would
    never reset; ``consume`` re-applies the expiry whenever TTL reports none.
    """

    def __init__(
        self,
        client: Redis,
        *,
        limit: int = DEFAULT_LIMIT,
        window_seconds: int = DEFAULT_WINDOW_SECONDS,
    ) -> None:
        """Initialize the limiter.

        Args:
            client: Async Redis client.
            limit: Default maximum requests per window.
            window_seconds: Default window size in seconds.

        Raises:
            ValueError: If limit or window_seconds are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")

        self.client = client
        self.limit = limit
        self.window_seconds = window_seconds

    async def consume(
        self,
        identifier: str,
        *,
        limit: int | None = None,
        window_seconds: int | None = None,
    ) -> RateLimitResult:
        """Increment the window counter for ``identifier``.

        Raises:
            ValueError: If identifier is empty, or an override is below 1.
        """
        if not identifier:
            raise ValueError("identifier must be a non-empty string")

        limit = self.limit if limit is None else limit
        window = self.window_seconds if window_seconds is None else window_seconds
        if limit < 1 or window < 1:
            raise ValueError("limit and window_seconds must be >= 1")
        key = f"{RATE_LIMIT_PREFIX}{identifier}"

        try:
            current = await self.client.incr(key)
            if current == 1:
                await self.client.expire(key, window)

            reset_seconds = await self.client.ttl(key)
            if reset_seconds == _NO_EXPIRY:
                await self.client.expire(key, window)
                reset_seconds = window
        except Exception as exc:
            logger.warning(
                "rate_limit.store_unavailable",
                extra={"error_type": type(exc).__name__, "error_msg": str(exc)},
            )
            return RateLimitResult(
                allowed=True,
                limit=limit,
                remaining=limit,
                reset_seconds=window,
            )

        return RateLimitResult(
            allowed=current <= limit,
            limit=limit,
            remaining=max(0, limit - current),
            reset_seconds=max(0, int(reset_seconds)),
        )
