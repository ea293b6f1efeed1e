from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.api.deps import get_resources
from app.core.resources import Resources

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness check.

    Returns:
        dict: A dictionary with a single "status" key set to "ok".
    """

    return {"status": "ok"}


@router.get("/health/ready")
async def readiness_check(resources: Resources = Depends(get_resources)) -> JSONResponse:
    """Readiness check covering the database and the counter store.

    The counter store being down does not make the service unready: the rate
    limiter fails open, so it is reported as degraded instead.
    """

    database_ok = await resources.check_database()
    counter_ok = await resources.counter_store.ping()

    status = "ok" if database_ok and counter_ok else ("degraded" if database_ok else "unavailable")
    return JSONResponse(
        status_code=200 if database_ok else 503,
        content={
            "status": status,
            "checks": {"database": database_ok, "counter_store": counter_ok},
        },
    )
