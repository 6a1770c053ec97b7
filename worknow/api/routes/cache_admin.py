"""Operator endpoints for inspecting and clearing the Redis cache."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from worknow.core.auth import verify_api_key
from worknow.core.dependencies import CacheServices, get_services
from worknow.core.errors import CacheAppError
from worknow.schemas.cache import CacheActionResponse, CacheStatsResponse

router = APIRouter(
    prefix="/api/redis/cache",
    tags=["Cache"],
    dependencies=[Depends(verify_api_key)],
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/stats", response_model=CacheStatsResponse)
async def cache_stats(
    services: CacheServices = Depends(get_services),
) -> CacheStatsResponse:
    """Key counts per namespace and Redis memory info.

    Raises:
        CacheAppError: 503 when Redis is unavailable.
    """
    stats = await services.store.stats()
    return CacheStatsResponse(**stats, timestamp=_now())


@router.delete("/clear", response_model=CacheActionResponse)
async def clear_cache(
    services: CacheServices = Depends(get_services),
) -> CacheActionResponse:
    """Flush the whole cache database, sessions and rate-limit counters included."""
    await services.store.clear()
    return CacheActionResponse(message="All cache cleared successfully", timestamp=_now())


@router.delete("/jobs", response_model=CacheActionResponse)
async def clear_jobs_cache(
    services: CacheServices = Depends(get_services),
) -> CacheActionResponse:
    """Invalidate every cached job listing page."""
    if not await services.jobs.invalidate_jobs_cache():
        raise CacheAppError(
            code="cache_unavailable",
            message="Job cache invalidation failed",
            details={"operation": "invalidate_jobs_cache"},
        )
    return CacheActionResponse(message="Job cache cleared successfully", timestamp=_now())
