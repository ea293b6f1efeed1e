"""OpenAPI metadata and customization utilities.

Provides a helper to enrich the generated OpenAPI schema with:
- Tags metadata
- API Key security scheme (``X-API-Key``) applied to admin paths only
- The 429 response and its rate limit headers on the purchase operation

This keeps documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

_TAGS = [
    {"name": "Purchase", "description": "Rate-limited, row-locked purchase transaction."},
    {"name": "Catalog", "description": "Lock-free product and stock reads."},
    {"name": "Admin", "description": "Read-only sales statistics (API key required)."},
    {"name": "Health", "description": "Liveness and readiness checks."},
]

_RATE_LIMITED_RESPONSE = {
    "description": "Rate limit exceeded for the user or IP tier.",
    "headers": {
        "Retry-After": {"description": "Seconds until the window resets.", "schema": {"type": "integer"}},
        "X-RateLimit-Limit": {"description": "Budget of the denying tier.", "schema": {"type": "integer"}},
        "X-RateLimit-Remaining": {"description": "Always 0 on denial.", "schema": {"type": "integer"}},
    },
}


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add metadata and security."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "ApiKeyAuth",
            {
                "type": "apiKey",
                "in": "header",
                "name": "X-API-Key",
                "description": "Provide your API key via the X-API-Key header.",
            },
        )

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in _TAGS:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for path, methods in schema.get("paths", {}).items():
            for method_obj in methods.values():
                if not isinstance(method_obj, dict):
                    continue
                if "/admin/" in path:
                    method_obj["security"] = [{"ApiKeyAuth": []}]
                if path.endswith("/purchase"):
                    method_obj.setdefault("responses", {}).setdefault("429", _RATE_LIMITED_RESPONSE)

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
