"""JSON key-value adapter over an injected ``redis.asyncio`` client.

Redis is a cache here, never the source of truth. Every read/write degrades to
"no cache" on failure: callers get ``None``/``False`` and fall through to the
database. Callers that need to tell a miss from an outage use ``fetch``.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any

from redis.asyncio import Redis

from worknow.core.errors import CacheAppError

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 3600


class CacheStatus(str, Enum):
    HIT = "hit"
    MISS = "miss"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class CacheResult:
    """Outcome of a cache lookup.

    Attributes:
        status: hit, miss, or unavailable (store raised).
        value: Decoded value on a hit, otherwise None.
        error: The store failure when status is UNAVAILABLE.
    """

    status: CacheStatus
    value: Any = None
    error: CacheAppError | None = None

    @property
    def hit(self) -> bool:
        return self.status is CacheStatus.HIT


def _store_error(operation: str, key: str | None, exc: Exception) -> CacheAppError:
    return CacheAppError(
        code="cache_unavailable",
        message=f"Cache {operation} failed: {exc}",
        details={
            "operation": operation,
            "key": key or "",
            "error_type": type(exc).__name__,
        },
    )


def encode_value(value: Any) -> str:
    """Serialize ``value`` to JSON text (strings are quoted too)."""
    return json.dumps(value, default=str, ensure_ascii=False)


def decode_value(raw: str) -> Any:
    """Decode stored text; values written by other clients may be plain strings."""
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        return raw


class CacheStore:
    """Fail-open get/set/delete with JSON (de)serialization and a default TTL."""

    def __init__(self, client: Redis, *, default_ttl: int = DEFAULT_TTL_SECONDS) -> None:
        self.client = client
        self.default_ttl = default_ttl

    async def fetch(self, key: str) -> CacheResult:
        """Look up ``key`` and report hit, miss or store failure."""

        try:
            raw = await self.client.get(key)
        except Exception as exc:
            error = _store_error("get", key, exc)
            logger.warning(
                "cache.get_failed",
                extra={"cache_key": key, "error_type": type(exc).__name__, "error_msg": str(exc)},
            )
            return CacheResult(status=CacheStatus.UNAVAILABLE, error=error)

        if raw is None:
            logger.debug("cache.miss", extra={"cache_key": key})
            return CacheResult(status=CacheStatus.MISS)

        logger.debug("cache.hit", extra={"cache_key": key})
        return CacheResult(status=CacheStatus.HIT, value=decode_value(raw))

    async def get(self, key: str) -> Any:
        """Return the cached value, or None on miss or store failure."""
        return (await self.fetch(key)).value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """Store ``value`` under ``key`` with an expiry.

        Args:
            key: Cache key.
            value: Any JSON-serializable value.
            ttl: Seconds to live; defaults to the store's default TTL.

        Returns:
            True when written, False when the store raised.

        Raises:
            ValueError: If an explicit ttl is below one second.
        """

        ttl = self.default_ttl if ttl is None else ttl
        if ttl < 1:
            raise ValueError("ttl must be >= 1")
        try:
            await self.client.setex(key, ttl, encode_value(value))
        except Exception as exc:
            logger.warning(
                "cache.set_failed",
                extra={"cache_key": key, "error_type": type(exc).__name__, "error_msg": str(exc)},
            )
            return False

        logger.debug("cache.set", extra={"cache_key": key, "ttl_s": ttl})
        return True

    async def delete(self, key: str) -> bool:
        try:
            await self.client.delete(key)
        except Exception as exc:
            logger.warning(
                "cache.delete_failed",
                extra={"cache_key": key, "error_type": type(exc).__name__, "error_msg": str(exc)},
            )
            return False
        return True

    async def count_keys(self, pattern: str = "*") -> int:
        """Count keys matching ``pattern`` using incremental SCAN.

        Raises:
            CacheAppError: If the store is unavailable.
        """

        try:
            count = 0
            async for _ in self.client.scan_iter(match=pattern, count=500):
                count += 1
            return count
        except Exception as exc:
            raise _store_error("scan", pattern, exc) from exc

    async def stats(self) -> dict[str, Any]:
        """Key counts by namespace plus Redis memory info, for operators.

        Raises:
            CacheAppError: If the store is unavailable.
        """

        total = await self.count_keys("*")
        jobs = await self.count_keys("jobs:*")
        sessions = await self.count_keys("session:*")
        try:
            memory = await self.client.info("memory")
        except Exception as exc:
            raise _store_error("info", None, exc) from exc

        return {
            "total_keys": total,
            "job_cache_keys": jobs,
            "session_keys": sessions,
            "memory": memory,
        }

    async def clear(self) -> None:
        """Drop every key in the configured database (FLUSHDB).

        Raises:
            CacheAppError: If the store is unavailable.
        """

        try:
            await self.client.flushdb()
        except Exception as exc:
            raise _store_error("flushdb", None, exc) from exc
        logger.info("cache.cleared")

    async def health_check(self) -> dict[str, Any]:
        """Ping the store and report latency and memory usage.

        Unlike the other operations this surfaces the error message so
        operators can see why the store is down.
        """

        try:
            start = time.perf_counter()
            await self.client.ping()
            latency_ms = int((time.perf_counter() - start) * 1000)
            memory = await self.client.info("memory")
        except Exception as exc:
            logger.error(
                "cache.health_check_failed",
                extra={"error_type": type(exc).__name__, "error_msg": str(exc)},
            )
            return {"status": "unhealthy", "error": str(exc), "connected": False}

        return {
            "status": "healthy",
            "latency": f"{latency_ms}ms",
            "memory": memory,
            "connected": True,
        }

    async def close(self) -> None:
        try:
            await self.client.aclose()
        except Exception as exc:
            logger.warning(
                "cache.close_failed",
                extra={"error_type": type(exc).__name__, "error_msg": str(exc)},
            )
