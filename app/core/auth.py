"""API key authentication for the admin endpoints.

Purchase and catalog endpoints are public; only the sales statistics route
requires a key. Keys are validated against a comma-separated list from the
``APP_API_KEYS`` environment variable and the check can be switched off with
``APP_API_KEY_REQUIRED=false``.
"""

from __future__ import annotations

import hmac
import logging
from typing import Annotated

from fastapi import Header

from app.core.config import settings
from app.core.errors import AuthenticationAppError
from app.core.logging import hash_identifier

logger = logging.getLogger(__name__)


def parse_api_keys(keys_string: str | None) -> set[str]:
    """Parse comma-separated API keys into a set.

    Args:
        keys_string: Comma-separated string of API keys, or None.

    Returns:
        Set of trimmed, non-empty API keys.

    Examples:
        >>> sorted(parse_api_keys("key1, key2 , key3 "))
        ['key1', 'key2', 'key3']
        >>> parse_api_keys(None)
        set()
    """
    if not keys_string:
        return set()

    return {key.strip() for key in keys_string.split(",") if key.strip()}


def validate_api_key(provided_key: str | None) -> None:
    """Validate that the provided API key matches a configured key.

    Pure validation logic without FastAPI dependencies for easy testing.

    Args:
        provided_key: API key to validate (None when the header is absent).

    Raises:
        AuthenticationAppError: If the key is missing or invalid, or if
            authentication is required but no keys are configured.
    """
    if not settings.app.api_key_required:
        return

    valid_keys = parse_api_keys(settings.app.api_keys)

    if not valid_keys:
        logger.error(
            "auth.failed",
            extra={"reason": "api_keys_not_configured"},
        )
        raise AuthenticationAppError(
            code="api_keys_not_configured",
            message="API key authentication is enabled but no valid keys are configured",
            details={"hint": "Set APP_API_KEYS or disable auth with APP_API_KEY_REQUIRED=false"},
        )

    if not provided_key:
        logger.warning("auth.failed", extra={"reason": "missing_api_key"})
        raise AuthenticationAppError(
            code="missing_api_key",
            message="Missing API key. Provide X-API-Key header.",
        )

    if not any(hmac.compare_digest(provided_key, key) for key in valid_keys):
        logger.warning(
            "auth.failed",
            extra={
                "reason": "invalid_api_key",
                "api_key_hash": hash_identifier(provided_key),
            },
        )
        raise AuthenticationAppError(
            code="invalid_api_key",
            message="Invalid or missing API key",
        )


async def verify_api_key(
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> None:
    """FastAPI dependency guarding admin routes.

    Usage:
        @router.get("/admin/stats", dependencies=[Depends(verify_api_key)])

    Raises:
        AuthenticationAppError: Rendered as 403 by the global handler.
    """
    validate_api_key(x_api_key)
    if settings.app.api_key_required:
        logger.debug(
            "auth.success",
            extra={"api_key_hash": hash_identifier(x_api_key or "")},
        )
