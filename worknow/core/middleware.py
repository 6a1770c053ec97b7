"""HTTP middleware for request correlation, sessions and activity tracking.

Registration (outermost last):
    app.middleware("http")(response_cache_middleware)
    app.middleware("http")(activity_tracking_middleware)
    app.middleware("http")(session_middleware)
    app.middleware("http")(rate_limit_middleware)
    app.middleware("http")(request_id_middleware)

The session and activity middlewares never block a request: Redis failures
only mean the request proceeds without a session or without being recorded.
"""

from __future__ import annotations

import logging
import time
import uuid
from datetime import datetime, timezone

from fastapi import Request, Response

from worknow.core.config import settings
from worknow.core.logging import clear_request_id, set_request_id

logger = logging.getLogger(__name__)

SESSION_HEADER = "X-Session-ID"
SESSION_COOKIE = "sessionId"
USER_ID_HEADER = "X-User-ID"


async def request_id_middleware(request: Request, call_next) -> Response:
    """Propagate or generate a request id and time the request.

    The incoming ``X-Request-ID`` (header name configurable via
    ``LOG_REQUEST_ID_HEADER``) is reused when present, otherwise a UUID is
    generated. The id is bound to the logging context for the duration of the
    request and echoed back with an ``X-Request-Duration-ms`` header.
    """

    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
    finally:
        clear_request_id()

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response


async def session_middleware(request: Request, call_next) -> Response:
    """Load the caller's session into ``request.state.session``.

    The session id comes from the ``X-Session-ID`` header or the ``sessionId``
    cookie. ``request.state.session`` is None when there is no id, the id is
    unknown, or Redis is unavailable.
    """

    request.state.session = None
    session_id = request.headers.get(SESSION_HEADER) or request.cookies.get(SESSION_COOKIE)

    if session_id:
        services = request.app.state.services
        session = await services.sessions.get_session(session_id)
        if session is not None:
            request.state.session = session
            logger.debug("session.loaded", extra={"path": request.url.path})

    return await call_next(request)


async def activity_tracking_middleware(request: Request, call_next) -> Response:
    """Record method, path and user agent for identified users.

    The user id is taken from ``request.state.user_id`` when an upstream
    component set it, else from the ``X-User-ID`` header.
    """

    user_id = getattr(request.state, "user_id", None) or request.headers.get(USER_ID_HEADER)

    if user_id:
        action = {
            "method": request.method,
            "path": request.url.path,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "user_agent": request.headers.get("user-agent"),
        }
        await request.app.state.services.activity.track_user_activity(user_id, action)

    return await call_next(request)
