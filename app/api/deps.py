"""FastAPI dependencies wiring services to the shared resources.

Services are lightweight and built per request; the expensive handles
(engine, session factory, counter store) come from the ``Resources``
instance attached to ``app.state`` at startup.
"""

from __future__ import annotations

from fastapi import Depends, Request

from app.core.config import settings
from app.core.resources import Resources
from app.services.inventory_service import InventoryService
from app.services.purchase_service import PurchaseService, TierBudget
from app.services.rate_limiter import RateLimiter
from app.services.stats_service import StatsService


def get_resources(request: Request) -> Resources:
    """Return the process-wide resources created in the lifespan handler."""
    return request.app.state.resources


def get_inventory_service(resources: Resources = Depends(get_resources)) -> InventoryService:
    return InventoryService(resources.session_factory)


def get_rate_limiter(resources: Resources = Depends(get_resources)) -> RateLimiter:
    return RateLimiter(resources.counter_store, key_prefix=settings.counter.key_prefix)


def get_purchase_service(
    inventory: InventoryService = Depends(get_inventory_service),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> PurchaseService:
    return PurchaseService(
        inventory,
        limiter,
        ip_budget=TierBudget(
            max_requests=settings.app.ip_rate_limit_requests,
            window_seconds=settings.app.ip_rate_limit_window_seconds,
        ),
        rate_limit_enabled=settings.app.rate_limit_enabled,
        anonymous_user_id=settings.app.anonymous_user_id,
    )


def get_stats_service(resources: Resources = Depends(get_resources)) -> StatsService:
    return StatsService(resources.session_factory)
