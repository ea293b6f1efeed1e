from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Header, Query

from app.api.deps import get_purchase_service
from app.core.config import settings
from app.core.errors import NotFoundAppError, RateLimitedAppError
from app.schemas.purchase import OrderPayload, PurchaseBody, PurchaseResponse
from app.services.inventory_service import PurchaseStatus
from app.services.purchase_service import PurchaseRequest, PurchaseService, TierBudget
from app.services.rate_limiter import RateLimitDecision

router = APIRouter(tags=["Purchase"])


@router.post(
    "/purchase",
    response_model=PurchaseResponse,
    response_model_exclude_none=True,
)
async def purchase(
    body: PurchaseBody,
    service: PurchaseService = Depends(get_purchase_service),
    user_id: Annotated[str | None, Query(alias="userId")] = None,
    x_forwarded_for: Annotated[str | None, Header(alias="X-Forwarded-For")] = None,
    x_real_ip: Annotated[str | None, Header(alias="X-Real-IP")] = None,
) -> PurchaseResponse:
    """Buy units of a product.

    Rate limited per user (``APP_PURCHASE_RATE_LIMIT_*``) and per client IP
    (``APP_IP_RATE_LIMIT_*``). An out-of-stock result is a 200 response with
    ``success: false``.

    Raises:
        RateLimitedAppError: 429 when either tier denies the request.
        ValidationAppError: 400 for missing or invalid fields.
        NotFoundAppError: 404 when the product does not exist.
    """
    request = PurchaseRequest(
        product_id=body.product_id,
        user_id=body.user_id,
        quantity=body.quantity,
        query_user_id=user_id,
        forwarded_for=x_forwarded_for,
        real_ip=x_real_ip,
    )
    user_budget = TierBudget(
        max_requests=settings.app.purchase_rate_limit_requests,
        window_seconds=settings.app.purchase_rate_limit_window_seconds,
    )

    outcome = await service.handle_purchase(request, user_budget)

    if isinstance(outcome, RateLimitDecision):
        retry_after = outcome.retry_after_seconds
        raise RateLimitedAppError(
            code="rate_limited",
            message=f"Rate limit exceeded for {outcome.tier or 'client'}",
            details={"tier": outcome.tier or "unknown", "limit": outcome.limit, "retry_after": retry_after},
            retry_after=retry_after,
            limit=outcome.limit,
        )

    if outcome.status is PurchaseStatus.NOT_FOUND:
        raise NotFoundAppError(
            code="product_not_found",
            message="Product not found",
            details={"product_id": outcome.product_id},
        )

    if outcome.status is PurchaseStatus.OUT_OF_STOCK:
        return PurchaseResponse(success=False, message="Out of stock")

    order = outcome.order
    return PurchaseResponse(
        success=True,
        message="Purchase successful",
        order=OrderPayload(
            id=order.id,
            product_id=order.product_id,
            product_name=order.product_name,
            quantity=order.quantity,
            total_price=float(order.total_price),
            remaining_stock=order.remaining_stock,
            created_at=order.created_at,
        ),
    )
