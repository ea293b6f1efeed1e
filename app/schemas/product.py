"""Pydantic schemas for catalog reads."""

from pydantic import Field

from app.schemas.base import CamelModel


class StockResponse(CamelModel):
    success: bool = True
    stock: int = Field(..., ge=0, description="Current stock; may lag an in-flight purchase.")


class ProductPayload(CamelModel):
    id: int
    name: str
    description: str | None = None
    image_url: str | None = None
    stock: int
    price: float


class ProductResponse(CamelModel):
    success: bool = True
    product: ProductPayload
