from __future__ import annotations

from fastapi import APIRouter, Depends, Path

from app.api.deps import get_inventory_service
from app.core.errors import NotFoundAppError
from app.schemas.base import MAX_ID
from app.schemas.product import ProductPayload, ProductResponse, StockResponse
from app.services.inventory_service import InventoryService

router = APIRouter(tags=["Catalog"])


def _not_found(product_id: int) -> NotFoundAppError:
    return NotFoundAppError(
        code="product_not_found",
        message="Product not found",
        details={"product_id": product_id},
    )


@router.get("/stock/{product_id}", response_model=StockResponse)
async def get_stock(
    product_id: int = Path(..., ge=1, le=MAX_ID),
    inventory: InventoryService = Depends(get_inventory_service),
) -> StockResponse:
    """Lightweight stock poll for one product.

    Takes no lock: the value may be from just before or just after a
    concurrent purchase commits.
    """
    stock = await inventory.get_stock(product_id)
    if stock is None:
        raise _not_found(product_id)
    return StockResponse(stock=stock)


@router.get("/products/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: int = Path(..., ge=1, le=MAX_ID),
    inventory: InventoryService = Depends(get_inventory_service),
) -> ProductResponse:
    """Display data for one product."""
    product = await inventory.get_product(product_id)
    if product is None:
        raise _not_found(product_id)
    return ProductResponse(
        product=ProductPayload(
            id=product.id,
            name=product.name,
            description=product.description,
            image_url=product.image_url,
            stock=product.stock,
            price=float(product.price),
        )
    )
