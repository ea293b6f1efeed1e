from __future__ import annotations

"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) and
the resource lifecycle: shared handles are built and started in the lifespan
startup phase and drained on shutdown.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api.routes import admin_router, catalog_router, health_router, purchase_router
from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations
from app.core.resources import Resources

logger = logging.getLogger(__name__)


def create_app(resources: Resources | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        resources: Pre-built resources (tests inject these). When omitted the
            resources are built from settings at startup.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        active = resources or Resources.from_settings(settings)
        await active.startup()
        app.state.resources = active
        try:
            yield
        finally:
            await active.shutdown()

    app = FastAPI(
        title="Flash Sale API",
        description=(
            "Sells a finite inventory to many concurrent buyers without overselling. "
            "Purchases run as row-locked database transactions and are gated by "
            "per-user and per-IP fixed-window rate limits."
        ),
        version="0.1.0",
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
        lifespan=lifespan,
    )

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(purchase_router, prefix="/api")
    app.include_router(catalog_router, prefix="/api")
    app.include_router(admin_router, prefix="/api")
    app.include_router(health_router)

    # OpenAPI customizations (security scheme, tags)
    apply_openapi_customizations(app)

    return app
