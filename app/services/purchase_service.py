"""Purchase orchestration: identity resolution, rate limit tiers, engine call.

Request handling order:

1. Resolve the user identifier (body → query → anonymous marker) and the
   network identifier (first ``X-Forwarded-For`` hop → ``X-Real-IP`` →
   ``unknown``).
2. User tier with the caller's budget. A denial short-circuits.
3. IP tier with a fixed, stricter budget.
4. Validate the purchase fields and run the inventory transaction.

Rate limiting runs before field validation, so malformed floods are
throttled like any other traffic.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from app.core.errors import ValidationAppError
from app.services.inventory_service import InventoryService, PurchaseResult
from app.services.rate_limiter import RateLimitDecision, RateLimiter

logger = logging.getLogger(__name__)

UNKNOWN_ADDRESS = "unknown"


@dataclass(frozen=True)
class PurchaseRequest:
    """Transport-independent view of an inbound purchase request."""

    product_id: int | None
    user_id: str | None
    quantity: int = 1
    query_user_id: str | None = None
    forwarded_for: str | None = None
    real_ip: str | None = None


@dataclass(frozen=True)
class TierBudget:
    """Request budget for one rate limit tier."""

    max_requests: int
    window_seconds: int


PurchaseOutcome = RateLimitDecision | PurchaseResult


def resolve_user_identifier(request: PurchaseRequest, anonymous: str = "anonymous") -> str:
    """Pick the rate limit subject: body user id, then query user id, then ``anonymous``."""
    return request.user_id or request.query_user_id or anonymous


def resolve_network_identifier(request: PurchaseRequest) -> str:
    """Pick the client address: first forwarded hop, then real-IP header."""
    if request.forwarded_for:
        first_hop = request.forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop
    if request.real_ip and request.real_ip.strip():
        return request.real_ip.strip()
    return UNKNOWN_ADDRESS


class PurchaseService:
    """Composes the rate limiter and the inventory engine."""

    def __init__(
        self,
        inventory: InventoryService,
        limiter: RateLimiter,
        *,
        ip_budget: TierBudget,
        rate_limit_enabled: bool = True,
        anonymous_user_id: str = "anonymous",
    ) -> None:
        self._inventory = inventory
        self._limiter = limiter
        self._ip_budget = ip_budget
        self._rate_limit_enabled = rate_limit_enabled
        self._anonymous_user_id = anonymous_user_id

    async def _check_tiers(
        self, request: PurchaseRequest, user_budget: TierBudget
    ) -> RateLimitDecision | None:
        user_key = resolve_user_identifier(request, self._anonymous_user_id)
        decision = await self._limiter.check(
            f"user:{user_key}",
            user_budget.max_requests,
            user_budget.window_seconds,
        )
        if not decision.allowed:
            return decision

        ip_key = resolve_network_identifier(request)
        decision = await self._limiter.check(
            f"ip:{ip_key}",
            self._ip_budget.max_requests,
            self._ip_budget.window_seconds,
        )
        if not decision.allowed:
            return decision
        return None

    @staticmethod
    def _validate(request: PurchaseRequest) -> tuple[int, int, str]:
        if request.product_id is None or not request.user_id:
            raise ValidationAppError(
                code="missing_fields",
                message="Missing productId or userId",
            )
        if isinstance(request.quantity, bool) or not isinstance(request.quantity, int) or request.quantity < 1:
            raise ValidationAppError(
                code="invalid_quantity",
                message="quantity must be a positive integer",
                details={"field": "quantity"},
            )
        return request.product_id, request.quantity, request.user_id

    async def handle_purchase(
        self, request: PurchaseRequest, user_budget: TierBudget
    ) -> PurchaseOutcome:
        """Rate limit, validate and execute one purchase request.

        Args:
            request: Resolved request fields.
            user_budget: Budget for the per-user tier.

        Returns:
            A denying RateLimitDecision, or the engine's PurchaseResult.

        Raises:
            ValidationAppError: If product id, user id or quantity are invalid.
            InfrastructureAppError: If the record store fails.
        """
        if self._rate_limit_enabled:
            denial = await self._check_tiers(request, user_budget)
            if denial is not None:
                return denial

        product_id, quantity, user_id = self._validate(request)
        return await self._inventory.purchase(product_id, quantity, user_id)
