"""Application factory for the WorkNow API.

Builds the Redis-backed service container, registers middleware in request
order (request id → rate limit → session → activity → response cache
→ handler), exception handlers and routers.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from worknow.api.routes import cache_admin_router, health_router, job_titles_router
from worknow.core.config import settings
from worknow.core.dependencies import CacheServices, build_cache_services
from worknow.core.exception_handlers import setup_exception_handlers
from worknow.core.logging import configure_logging
from worknow.core.middleware import (
    activity_tracking_middleware,
    request_id_middleware,
    session_middleware,
)
from worknow.core.openapi import apply_openapi_customizations
from worknow.core.rate_limit import rate_limit_middleware
from worknow.core.response_cache import response_cache_middleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("app.startup", extra={"environment": settings.app_env})
    yield
    await app.state.services.store.close()
    logger.info("app.shutdown")


def create_app(services: CacheServices | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        services: Pre-built service container; built from settings when omitted.

    Returns:
        Configured FastAPI app.
    """
    configure_logging(settings.log)

    app = FastAPI(
        title="WorkNow API",
        description=(
            "Job board API for WorkNow. Redis backs response caching, "
            "fixed-window rate limiting, sessions, activity history and "
            "job listing caches; all of them fail open when Redis is down."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.services = services or build_cache_services(settings)

    # Starlette runs the last registered middleware first
    app.middleware("http")(response_cache_middleware)
    app.middleware("http")(activity_tracking_middleware)
    app.middleware("http")(session_middleware)
    app.middleware("http")(rate_limit_middleware)
    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(cache_admin_router)
    app.include_router(job_titles_router, prefix="/v1")

    apply_openapi_customizations(app)

    return app
