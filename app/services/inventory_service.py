"""Inventory transaction engine and lock-free catalog reads.

A purchase is one database transaction:

1. ``SELECT ... FOR UPDATE`` the product row. Concurrent purchases of the
   same product queue here; purchases of other products never contend.
2. Missing product → roll back, ``NOT_FOUND``.
3. ``stock < quantity`` → roll back, ``OUT_OF_STOCK``. This is a normal
   business result, not an error.
4. Decrement stock, insert a completed order, commit (releases the lock).

Any storage fault rolls the transaction back, so stock is restored and no
order row survives, and surfaces as ``InfrastructureAppError``. Nothing is
retried here: re-issuing a purchase is a new purchase attempt.

Reads (``get_stock``, ``get_product``) take no lock and never write.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.errors import InfrastructureAppError, ValidationAppError
from app.core.logging import hash_identifier
from app.db.models import Order, OrderStatus, Product
from app.db.session import WRITE_LOCK_OPTIONS

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")


class PurchaseStatus(str, enum.Enum):
    """Tagged outcome of a purchase attempt."""

    SOLD = "sold"
    OUT_OF_STOCK = "out_of_stock"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class OrderSummary:
    """Committed order as reported back to the buyer."""

    id: int
    product_id: int
    product_name: str
    quantity: int
    total_price: Decimal
    remaining_stock: int
    created_at: datetime


@dataclass(frozen=True)
class PurchaseResult:
    """Outcome of ``InventoryService.purchase``.

    ``order`` is set only when ``status`` is ``SOLD``.
    """

    status: PurchaseStatus
    product_id: int
    order: OrderSummary | None = None

    @property
    def sold(self) -> bool:
        return self.status is PurchaseStatus.SOLD


@dataclass(frozen=True)
class ProductView:
    """Display data for one product."""

    id: int
    name: str
    description: str | None
    image_url: str | None
    stock: int
    price: Decimal


def compute_total(price: Decimal, quantity: int) -> Decimal:
    """Return ``price × quantity`` rounded to cents."""
    return (Decimal(price) * quantity).quantize(_CENT, rounding=ROUND_HALF_UP)


class InventoryService:
    """Executes purchases and catalog reads against the record store.

    A new session is opened per call; rows are never cached between calls.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def purchase(self, product_id: int, quantity: int, user_id: str) -> PurchaseResult:
        """Buy ``quantity`` units of a product for ``user_id``.

        Args:
            product_id: Product to buy.
            quantity: Units to buy; must be a positive integer.
            user_id: Opaque buyer identifier stored on the order.

        Returns:
            PurchaseResult tagged SOLD, OUT_OF_STOCK or NOT_FOUND.

        Raises:
            ValidationAppError: If quantity is not a positive integer.
            InfrastructureAppError: If the record store fails mid-transaction.
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValidationAppError(
                code="invalid_quantity",
                message="quantity must be a positive integer",
                details={"field": "quantity"},
            )

        log_extra = {
            "product_id": product_id,
            "quantity": quantity,
            "user_hash": hash_identifier(user_id),
        }

        async with self._session_factory() as session:
            try:
                await session.connection(execution_options=WRITE_LOCK_OPTIONS)
                product = await session.scalar(
                    select(Product).where(Product.id == product_id).with_for_update()
                )

                if product is None:
                    await session.rollback()
                    logger.info("purchase.not_found", extra=log_extra)
                    return PurchaseResult(PurchaseStatus.NOT_FOUND, product_id)

                if product.stock < quantity:
                    await session.rollback()
                    logger.info(
                        "purchase.out_of_stock",
                        extra={**log_extra, "stock": product.stock},
                    )
                    return PurchaseResult(PurchaseStatus.OUT_OF_STOCK, product_id)

                product.stock = product.stock - quantity
                order = Order(
                    user_id=user_id,
                    product_id=product.id,
                    quantity=quantity,
                    total_price=compute_total(product.price, quantity),
                    status=OrderStatus.COMPLETED,
                    created_at=datetime.now(timezone.utc),
                )
                session.add(order)
                await session.flush()
                summary = OrderSummary(
                    id=order.id,
                    product_id=product.id,
                    product_name=product.name,
                    quantity=quantity,
                    total_price=order.total_price,
                    remaining_stock=product.stock,
                    created_at=order.created_at,
                )
                await session.commit()
            except (SQLAlchemyError, OSError) as exc:
                await session.rollback()
                logger.error(
                    "purchase.transaction_failed",
                    exc_info=exc,
                    extra={**log_extra, "error_type": type(exc).__name__},
                )
                raise InfrastructureAppError(
                    code="purchase_failed",
                    message="The purchase could not be completed. Please try again later.",
                ) from exc

        logger.info(
            "purchase.sold",
            extra={**log_extra, "order_id": summary.id, "remaining_stock": summary.remaining_stock},
        )
        return PurchaseResult(PurchaseStatus.SOLD, product_id, summary)

    async def get_stock(self, product_id: int) -> int | None:
        """Return current stock without locking, or None if the product is absent."""
        try:
            async with self._session_factory() as session:
                return await session.scalar(
                    select(Product.stock).where(Product.id == product_id)
                )
        except (SQLAlchemyError, OSError) as exc:
            logger.error("stock.read_failed", exc_info=exc, extra={"product_id": product_id})
            raise InfrastructureAppError(
                code="stock_read_failed",
                message="Stock is temporarily unavailable.",
            ) from exc

    async def get_product(self, product_id: int) -> ProductView | None:
        """Return display data for a product, or None if it does not exist."""
        try:
            async with self._session_factory() as session:
                product = await session.get(Product, product_id)
        except (SQLAlchemyError, OSError) as exc:
            logger.error("product.read_failed", exc_info=exc, extra={"product_id": product_id})
            raise InfrastructureAppError(
                code="product_read_failed",
                message="Product is temporarily unavailable.",
            ) from exc

        if product is None:
            return None
        return ProductView(
            id=product.id,
            name=product.name,
            description=product.description,
            image_url=product.image_url,
            stock=product.stock,
            price=product.price,
        )
