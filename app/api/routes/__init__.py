from __future__ import annotations

from app.api.routes.admin import router as admin_router
from app.api.routes.catalog import router as catalog_router
from app.api.routes.health import router as health_router
from app.api.routes.purchase import router as purchase_router

__all__ = ["admin_router", "catalog_router", "health_router", "purchase_router"]
