"""Write-through cache for GET JSON responses.

Per request:
- non-GET, or an excluded path prefix: passed through untouched
- GET, key found: cached JSON returned, the route handler is not called
- GET, key missing: handler runs; a 200 JSON body is stored with the
  response TTL before being returned

The key is the prefix plus the raw path and query string, so ``?a=1&b=2`` and
``?b=2&a=1`` are cached separately. Redis errors are treated as misses.
"""

from __future__ import annotations

import json
import logging

from fastapi import Request, Response
from fastapi.responses import JSONResponse

from worknow.core.config import parse_csv, settings

logger = logging.getLogger(__name__)


def response_cache_key(request: Request, prefix: str | None = None) -> str:
    prefix = settings.cache.response_key_prefix if prefix is None else prefix
    query = request.url.query
    url = f"{request.url.path}?{query}" if query else request.url.path
    return f"{prefix}{url}"


def _is_excluded(path: str) -> bool:
    return any(path.startswith(p) for p in parse_csv(settings.cache.response_exclude_prefixes))


async def response_cache_middleware(request: Request, call_next) -> Response:
    """Serve idempotent JSON responses from Redis when possible."""

    if (
        not settings.cache.response_cache_enabled
        or request.method != "GET"
        or _is_excluded(request.url.path)
    ):
        return await call_next(request)

    store = request.app.state.services.store
    cache_key = response_cache_key(request)

    cached = await store.fetch(cache_key)
    if cached.hit:
        logger.debug("response_cache.hit", extra={"path": request.url.path})
        return JSONResponse(content=cached.value)

    response = await call_next(request)

    content_type = response.headers.get("content-type", "")
    if response.status_code != 200 or not content_type.startswith("application/json"):
        return response

    body = b"".join([chunk async for chunk in response.body_iterator])
    try:
        payload = json.loads(body)
    except ValueError:
        logger.debug("response_cache.skip_undecodable", extra={"path": request.url.path})
    else:
        await store.set(cache_key, payload, settings.cache.response_ttl_seconds)

    replayed = Response(
        content=body,
        status_code=response.status_code,
        media_type=response.media_type,
    )
    # Raw list keeps repeated headers such as Set-Cookie
    replayed.raw_headers = list(response.raw_headers)
    return replayed
