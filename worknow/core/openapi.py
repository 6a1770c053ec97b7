"""OpenAPI customization: API key security scheme and tag descriptions.

Only routers that depend on ``verify_api_key`` are marked as secured; the
public health endpoints keep ``security: []``.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

TAGS_METADATA = [
    {"name": "Health", "description": "Liveness and Redis health checks."},
    {"name": "Cache", "description": "Redis cache inspection and invalidation (API key)."},
    {"name": "Jobs", "description": "Job posting helpers such as AI title suggestions (API key)."},
]

SECURED_TAGS = {"Cache", "Jobs"}


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and the X-API-Key scheme."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        components = schema.setdefault("components", {})
        components.setdefault("securitySchemes", {})["ApiKeyAuth"] = {
            "type": "apiKey",
            "in": "header",
            "name": "X-API-Key",
            "description": "Provide your API key via the X-API-Key header.",
        }

        existing = {t.get("name") for t in schema.setdefault("tags", [])}
        schema["tags"].extend(t for t in TAGS_METADATA if t["name"] not in existing)

        for methods in schema.get("paths", {}).values():
            for operation in methods.values():
                if not isinstance(operation, dict):
                    continue
                if SECURED_TAGS.intersection(operation.get("tags", [])):
                    operation["security"] = [{"ApiKeyAuth": []}]
                else:
                    operation["security"] = []

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
