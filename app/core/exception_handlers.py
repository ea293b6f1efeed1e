"""Global exception handlers for consistent error responses.

Every failure leaves the API in the same envelope::

    {"error": {"code": ..., "message": ..., "request_id": ..., "details": ...}}

| Exception                 | Status | Notes                                  |
|---------------------------|--------|----------------------------------------|
| ValidationAppError        | 400    | missing or invalid purchase fields     |
| RequestValidationError    | 400    | wrong types, unparseable JSON          |
| AuthenticationAppError    | 403    | admin API key                          |
| NotFoundAppError          | 404    | unknown product                        |
| RateLimitedAppError       | 429    | plus Retry-After / X-RateLimit-*       |
| InfrastructureAppError    | 500    | store failure, message is client-safe  |
| any other Exception       | 500    | generic message, traceback only logged |

Out-of-stock purchases never reach these handlers: they are successful
responses carrying a negative result.
"""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.errors import (
    AppError,
    AuthenticationAppError,
    InfrastructureAppError,
    NotFoundAppError,
    RateLimitedAppError,
)
from app.core.logging import get_request_id

logger = logging.getLogger(__name__)

_STATUS_BY_TYPE: tuple[tuple[type[AppError], int], ...] = (
    (AuthenticationAppError, 403),
    (NotFoundAppError, 404),
    (RateLimitedAppError, 429),
    (InfrastructureAppError, 500),
)


def _status_for(exc: AppError) -> int:
    for error_type, status_code in _STATUS_BY_TYPE:
        if isinstance(exc, error_type):
            return status_code
    return 400


def _rate_limit_headers(exc: RateLimitedAppError) -> dict[str, str] | None:
    if not settings.app.rate_limit_include_headers:
        return None
    return {
        "Retry-After": str(exc.retry_after),
        "X-RateLimit-Limit": str(exc.limit),
        "X-RateLimit-Remaining": "0",
    }


def _envelope(
    code: str, message: str, details: dict | None = None, request_id: str | None = None
) -> dict:
    error = {"code": code, "message": message, "request_id": request_id or get_request_id()}
    if details:
        error["details"] = details
    return {"error": error}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render a domain error with the status code for its type.

    Server-side faults (5xx) are logged at error level, client faults and
    throttling at warning level.
    """
    status_code = _status_for(exc)

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
        },
    )

    headers = None
    if isinstance(exc, RateLimitedAppError):
        headers = _rate_limit_headers(exc)

    return JSONResponse(
        status_code=status_code,
        content=_envelope(exc.code, exc.message, exc.details),
        headers=headers,
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed input as 400 instead of FastAPI's default 422."""
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", "invalid value"),
        }
        for err in exc.errors()
    ]

    logger.warning(
        "request_validation_failed",
        extra={"request_path": request.url.path, "error_count": len(errors)},
    )

    return JSONResponse(
        status_code=400,
        content=_envelope(
            "invalid_request",
            "Request body or parameters are malformed",
            {"context": {"errors": errors}},
        ),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback for unexpected errors.

    The traceback goes to the log; the client only sees a generic message.
    """
    request_id = get_request_id() or getattr(request.state, "request_id", None)
    logger.error(
        "unhandled_exception",
        exc_info=exc,
        extra={
            "error_type": type(exc).__name__,
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": request_id,
        },
    )

    return JSONResponse(
        status_code=500,
        content=_envelope(
            "internal_server_error",
            "An unexpected error occurred. Please try again later.",
            request_id=request_id,
        ),
        headers={settings.log.request_id_header: request_id} if request_id else None,
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(Exception)(general_exception_handler)
