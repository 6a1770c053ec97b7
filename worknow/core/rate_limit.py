"""Rate limiting middleware.

Strategy:
- Global fixed-window limit per requester, counted in Redis.
- Requester is the (hashed) API key when it is a configured key, else the
  client IP.
- Fail open: when Redis is down the limiter allows every request.
"""

from __future__ import annotations

import hashlib
import logging

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse

from worknow.adapters.rate_limit.base import RateLimitResult
from worknow.core.config import parse_csv, settings

logger = logging.getLogger(__name__)


def _hash_key(value: str) -> str:
    """Hash a secret for use in keys and logs without exposing it."""
    return hashlib.sha256(value.encode()).hexdigest()[:16]


def build_rate_limit_identifier(request: Request) -> str:
    """Build the limiter identifier for the current request.

    Args:
        request: Incoming request.

    Returns:
        ``api_key:<hash>`` for a configured key, else ``ip:<address>``.
        Unknown keys count against the caller's IP so rotating made-up keys
        cannot reset the window.
    """

    api_key = request.headers.get("X-API-Key")
    if api_key and api_key in parse_csv(settings.app.api_keys):
        return f"api_key:{_hash_key(api_key)}"

    if request.client and request.client.host:
        return f"ip:{request.client.host}"

    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return f"ip:{forwarded.split(',')[0].strip()}"
    return "ip:unknown"


def rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    return {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset_seconds),
    }


async def rate_limit_middleware(request: Request, call_next) -> Response:
    """Consume one unit of the requester's budget; answer 429 when exhausted.

    Allowed responses carry ``X-RateLimit-*`` headers. Denied requests get
    ``{"error", "message", "retryAfter"}`` and never reach the route handler.
    """

    if not settings.app.rate_limit_enabled:
        return await call_next(request)

    limiter = request.app.state.services.rate_limiter
    identifier = build_rate_limit_identifier(request)
    result = await limiter.consume(identifier)

    headers = rate_limit_headers(result) if settings.app.rate_limit_include_headers else {}

    if not result.allowed:
        logger.warning(
            "rate_limit.exceeded",
            extra={
                "key_type": identifier.split(":", 1)[0],
                "key_hash": _hash_key(identifier),
                "limit": result.limit,
                "retry_after_s": result.reset_seconds,
                "path": request.url.path,
            },
        )
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content={
                "error": "Rate limit exceeded",
                "message": f"Too many requests. Try again in {result.reset_seconds} seconds.",
                "retryAfter": result.reset_seconds,
            },
            headers={**headers, "Retry-After": str(result.reset_seconds)},
        )

    response = await call_next(request)
    for name, value in headers.items():
        response.headers[name] = value
    return response
