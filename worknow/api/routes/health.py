from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from worknow.core.config import settings
from worknow.core.dependencies import CacheServices, get_services
from worknow.schemas.cache import RedisHealthResponse

router = APIRouter(tags=["Health"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health")
def health_check() -> dict:
    """Liveness probe used by load balancers."""

    return {"status": "ok"}


@router.get("/api/health")
def api_health() -> dict:
    """Liveness with environment details for the Docker healthcheck."""

    return {
        "status": "healthy",
        "timestamp": _now(),
        "environment": settings.app_env,
    }


@router.get("/api/redis/health", response_model=RedisHealthResponse)
async def redis_health(
    services: CacheServices = Depends(get_services),
) -> RedisHealthResponse:
    """Report Redis reachability, ping latency and memory usage.

    The endpoint itself answers 200 even when Redis is down; the ``redis``
    block carries ``status: unhealthy`` and the error message.
    """

    return RedisHealthResponse(
        status="healthy",
        redis=await services.store.health_check(),
        timestamp=_now(),
    )
