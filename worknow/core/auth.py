"""API key authentication for operator and AI endpoints.

Keys are validated against a comma-separated list from ``APP_API_KEYS``.
Public job-board reads stay unauthenticated; this guards cache
administration and paid AI features.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Annotated

from fastapi import Header

from worknow.core.config import parse_csv, settings
from worknow.core.errors import AuthenticationAppError

logger = logging.getLogger(__name__)


def parse_api_keys(keys_string: str | None) -> set[str]:
    """Parse comma-separated API keys into a set.

    Examples:
        >>> parse_api_keys("key1, key2 , key1")
        {'key1', 'key2'}
        >>> parse_api_keys(None)
        set()
    """
    return set(parse_csv(keys_string))


def validate_api_key(provided_key: str | None) -> None:
    """Check ``provided_key`` against the configured keys.

    Raises:
        AuthenticationAppError: If no keys are configured, or the key is
            missing or unknown.
    """
    if not settings.app.api_key_required:
        return

    valid_keys = parse_api_keys(settings.app.api_keys)
    if not valid_keys:
        logger.error(
            "api_key_validation_failed",
            extra={"reason": "api_keys_not_configured"},
        )
        raise AuthenticationAppError(
            code="api_keys_not_configured",
            message="API key authentication is enabled but no valid keys are configured",
            details={"hint": "Set APP_API_KEYS or disable auth with APP_API_KEY_REQUIRED=false"},
        )

    if not provided_key:
        logger.warning("auth.missing_key")
        raise AuthenticationAppError(
            code="missing_api_key",
            message="Missing API key. Provide X-API-Key header.",
        )

    if provided_key not in valid_keys:
        logger.warning(
            "api_key_validation_failed",
            extra={
                "reason": "invalid_api_key",
                "api_key_hash": hashlib.sha256(provided_key.encode()).hexdigest()[:16],
            },
        )
        raise AuthenticationAppError(
            code="invalid_api_key",
            message="Invalid or missing API key",
        )


async def verify_api_key(
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> None:
    """FastAPI dependency enforcing ``X-API-Key``.

    Usage:
        @router.delete("/cache/clear", dependencies=[Depends(verify_api_key)])

    Raises:
        AuthenticationAppError: Rendered as 403 by the global handler.
    """
    validate_api_key(x_api_key)
