"""Caching for paginated job listings.

Keys follow ``jobs:{category}:{city}:{page}``; a missing filter is ``all``.
Every written key is also added to the ``index:jobs`` set, so invalidation
reads the index instead of scanning the whole keyspace with ``KEYS jobs:*``.
Any job mutation invalidates the whole namespace.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from redis.exceptions import ResponseError

from worknow.services.cache_store import CacheStore

logger = logging.getLogger(__name__)

JOBS_PREFIX = "jobs:"
JOBS_INDEX_KEY = "index:jobs"
JOBS_TTL_SECONDS = 300


def jobs_key(category: str | None, city: str | None, page: int | str) -> str:
    """Build the listing key.

    Examples:
        >>> jobs_key("it", "telaviv", 1)
        'jobs:it:telaviv:1'
        >>> jobs_key(None, "", 2)
        'jobs:all:all:2'
    """
    return f"{JOBS_PREFIX}{category or 'all'}:{city or 'all'}:{page}"


class JobsCache:
    def __init__(self, store: CacheStore, *, ttl_seconds: int = JOBS_TTL_SECONDS) -> None:
        self.store = store
        self.ttl_seconds = ttl_seconds

    async def cache_jobs(
        self,
        category: str | None,
        city: str | None,
        page: int | str,
        jobs: Any,
    ) -> bool:
        """Write a listing page and register its key in the index.

        Returns:
            Whether the listing itself was written. A failed index update is
            logged; the entry then lives until its own TTL.
        """

        key = jobs_key(category, city, page)
        if not await self.store.set(key, jobs, self.ttl_seconds):
            return False

        try:
            await self.store.client.sadd(JOBS_INDEX_KEY, key)
            # The index outlives every entry it names
            await self.store.client.expire(JOBS_INDEX_KEY, self.ttl_seconds)
        except Exception as exc:
            logger.warning(
                "jobs_cache.index_failed",
                extra={"cache_key": key, "error_type": type(exc).__name__, "error_msg": str(exc)},
            )
        return True

    async def get_cached_jobs(
        self,
        category: str | None,
        city: str | None,
        page: int | str,
    ) -> Any:
        return await self.store.get(jobs_key(category, city, page))

    async def invalidate_jobs_cache(self) -> bool:
        """Delete every indexed listing key.

        The index is first renamed to a private key, so a ``cache_jobs`` that
        runs mid-invalidation registers in a fresh index and is caught by the
        next invalidation.

        Returns:
            True on success (including when nothing was cached), False if the
            store raised.
        """

        snapshot_key = f"{JOBS_INDEX_KEY}:invalidating:{uuid.uuid4().hex}"
        keys: set[str] = set()
        try:
            try:
                await self.store.client.rename(JOBS_INDEX_KEY, snapshot_key)
            except ResponseError as exc:
                if "no such key" not in str(exc).lower():
                    raise
            else:
                keys = await self.store.client.smembers(snapshot_key)
                await self.store.client.delete(*sorted(keys), snapshot_key)
        except Exception as exc:
            logger.warning(
                "jobs_cache.invalidate_failed",
                extra={"error_type": type(exc).__name__, "error_msg": str(exc)},
            )
            return False

        logger.info("jobs_cache.invalidated", extra={"keys_deleted": len(keys)})
        return True
