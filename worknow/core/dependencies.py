"""Construction and request-time access to the Redis-backed services.

A single ``redis.asyncio`` client is created per application and handed to
every component; tests build the container around an in-memory double.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import redis.asyncio as redis
from fastapi import Request

from worknow.adapters.llm.factory import create_llm_client
from worknow.adapters.rate_limit.base import AbstractRateLimiter
from worknow.adapters.rate_limit.redis_fixed_window import RedisFixedWindowRateLimiter
from worknow.core.config import Settings
from worknow.core.errors import ValidationAppError
from worknow.services.activity import ActivityTracker, NotificationPublisher
from worknow.services.cache_store import CacheStore
from worknow.services.job_title_service import JobTitleService
from worknow.services.jobs_cache import JobsCache
from worknow.services.sessions import SessionStore

logger = logging.getLogger(__name__)


@dataclass
class CacheServices:
    """Everything route handlers and middleware need from Redis."""

    store: CacheStore
    sessions: SessionStore
    rate_limiter: AbstractRateLimiter
    jobs: JobsCache
    activity: ActivityTracker
    notifications: NotificationPublisher
    job_titles: JobTitleService


def create_redis_client(config: Settings) -> redis.Redis:
    """Create the async client; it connects lazily on the first command."""

    return redis.from_url(
        config.redis.url,
        encoding="utf-8",
        decode_responses=True,
        socket_timeout=config.redis.socket_timeout_seconds,
        socket_connect_timeout=config.redis.socket_connect_timeout_seconds,
        retry_on_timeout=config.redis.retry_on_timeout,
    )


def build_cache_services(config: Settings, client: redis.Redis | None = None) -> CacheServices:
    """Wire every Redis-backed component around one client.

    Args:
        config: Resolved settings.
        client: Optional pre-built client (tests pass an in-memory double).

    Returns:
        CacheServices container.
    """

    client = client if client is not None else create_redis_client(config)
    store = CacheStore(client, default_ttl=config.cache.default_ttl_seconds)

    try:
        llm = create_llm_client(config.llm)
    except ValidationAppError as exc:
        logger.warning(
            "job_titles.llm_disabled",
            extra={"error_code": exc.code, "error_message": exc.message},
        )
        llm = None

    return CacheServices(
        store=store,
        sessions=SessionStore(store, ttl_seconds=config.cache.session_ttl_seconds),
        rate_limiter=RedisFixedWindowRateLimiter(
            client,
            limit=config.app.rate_limit_requests,
            window_seconds=config.app.rate_limit_window_seconds,
        ),
        jobs=JobsCache(store, ttl_seconds=config.cache.jobs_ttl_seconds),
        activity=ActivityTracker(
            client,
            max_entries=config.cache.activity_max_entries,
            ttl_seconds=config.cache.activity_ttl_seconds,
        ),
        notifications=NotificationPublisher(client),
        job_titles=JobTitleService(llm=llm, store=store),
    )


def get_services(request: Request) -> CacheServices:
    """FastAPI dependency returning the application's service container."""
    return request.app.state.services
