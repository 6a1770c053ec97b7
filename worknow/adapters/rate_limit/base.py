"""Rate limiter interfaces.

The HTTP layer depends on this abstraction, not on the Redis implementation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit check.

    Attributes:
        allowed: Whether the request may proceed.
        limit: Max requests per window.
        remaining: Requests left in the current window (0 when blocked).
        reset_seconds: Seconds until the current window resets.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_seconds: int


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    async def consume(
        self,
        identifier: str,
        *,
        limit: int | None = None,
        window_seconds: int | None = None,
    ) -> RateLimitResult:
        """Count one request for ``identifier`` and decide whether to allow it.

        Args:
            identifier: Requester identity (e.g. ``ip:1.2.3.4``).
            limit: Per-call override of the configured limit.
            window_seconds: Per-call override of the configured window.

        Returns:
            RateLimitResult describing the decision.
        """
        raise NotImplementedError
