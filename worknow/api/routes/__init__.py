from __future__ import annotations

from worknow.api.routes.cache_admin import router as cache_admin_router
from worknow.api.routes.health import router as health_router
from worknow.api.routes.job_titles import router as job_titles_router

__all__ = ["cache_admin_router", "health_router", "job_titles_router"]
