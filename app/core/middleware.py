"""HTTP middleware for request ID propagation and access logging.

Every request/response pair carries a correlation id: the incoming header
(``LOG_REQUEST_ID_HEADER``, default ``X-Request-ID``) is reused when present,
otherwise a UUID is generated. The id lives in a contextvar for the duration
of the request so that service and engine logs can be joined with the access
log line emitted here.

Usage:
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request, Response

from app.core.config import settings
from app.core.logging import clear_request_id, set_request_id

logger = logging.getLogger(__name__)


async def request_id_middleware(request: Request, call_next) -> Response:
    """Assign a request id, time the request and log its completion.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        The downstream response with ``X-Request-ID`` and
        ``X-Request-Duration-ms`` headers added.
    """

    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    # The contextvar is cleared before an unhandled error reaches the outer
    # 500 handler, so the id is also kept on the request scope.
    request.state.request_id = request_id
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "request.completed",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
    finally:
        clear_request_id()

    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response
