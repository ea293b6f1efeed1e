"""Pydantic schemas for the purchase endpoint."""

from datetime import datetime
from typing import Literal

from pydantic import Field

from app.schemas.base import MAX_ID, CamelModel


class PurchaseBody(CamelModel):
    """Purchase request body.

    Presence of ``productId`` and ``userId`` and the sign of ``quantity`` are
    checked after rate limiting, so they are optional here. A ``productId``
    outside the key range is malformed and rejected with the body.
    """

    product_id: int | None = Field(None, ge=1, le=MAX_ID, description="Product to buy.")
    user_id: str | None = Field(None, description="Opaque buyer identifier.")
    quantity: int = Field(1, description="Units to buy (positive integer).")


class OrderPayload(CamelModel):
    """Committed order returned on a successful purchase."""

    id: int
    product_id: int
    product_name: str
    quantity: int
    total_price: float = Field(..., description="quantity × unit price at purchase time.")
    remaining_stock: int
    created_at: datetime


class PurchaseResponse(CamelModel):
    """Purchase result.

    Out of stock is reported with ``success: false`` and HTTP 200: the
    purchase executed correctly and determined no sale was possible.
    """

    success: bool
    message: Literal["Purchase successful", "Out of stock"]
    order: OrderPayload | None = None
