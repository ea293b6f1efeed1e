"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.

Insufficient stock is deliberately absent: it is a normal purchase outcome
returned as data (see ``app.services.inventory_service.PurchaseStatus``).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep the shape flexible while encouraging
    consistent keys across the codebase.
    """

    code: str
    message: str
    hint: str
    field: str
    product_id: int
    quantity: int
    limit: int
    tier: str
    retry_after: int
    http_status: int
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class AuthenticationAppError(AppError):
    """Raised when authentication/authorization fails."""


class NotFoundAppError(AppError):
    """Raised when a referenced product does not exist."""


@dataclass
class RateLimitedAppError(AppError):
    """Raised when a rate limit tier denies the request.

    Attributes:
        retry_after: Seconds the client should wait before retrying.
        limit: Request budget of the tier that denied the request.
    """

    retry_after: int = 0
    limit: int = 0


class InfrastructureAppError(AppError):
    """Raised when the record store or counter backend fails.

    The message is safe to return to clients; backend detail is only logged.
    """


class CounterStoreError(Exception):
    """Raised by counter store adapters when the backend is unavailable."""
