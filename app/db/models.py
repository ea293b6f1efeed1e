"""ORM models for the record store.

Product rows are the contended resource; Order rows are append-only and never
updated or deleted by the application.
"""

from __future__ import annotations

import enum

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class OrderStatus(str, enum.Enum):
    """Order lifecycle states. Purchases settle synchronously."""

    COMPLETED = "completed"


class Product(Base):
    """Product offered in the sale.

    Attributes:
        id: Unique identifier for the product
        name: Product name
        description: Free-form display text
        image_url: Display image location
        stock: Available quantity (never negative)
        price: Unit price as a fixed-point amount
        created_at: Timestamp when product was created
        updated_at: Timestamp when product was last updated
    """

    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    image_url = Column(String(500))
    stock = Column(Integer, nullable=False, default=0)
    price = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    orders = relationship("Order", back_populates="product", lazy="raise")

    __table_args__ = (
        CheckConstraint("stock >= 0", name="check_stock_non_negative"),
        CheckConstraint("price >= 0", name="check_price_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, name='{self.name}', stock={self.stock})>"


class Order(Base):
    """A committed purchase of ``quantity`` units of one product."""

    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(255), nullable=False)
    product_id = Column(
        Integer, ForeignKey("products.id"), nullable=False, index=True
    )
    quantity = Column(Integer, nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)
    status = Column(
        Enum(
            OrderStatus,
            name="order_status",
            native_enum=False,
            length=50,
            values_callable=lambda members: [m.value for m in members],
        ),
        nullable=False,
        default=OrderStatus.COMPLETED,
    )
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)

    product = relationship("Product", back_populates="orders", lazy="raise")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="check_quantity_positive"),
    )

    def __repr__(self) -> str:
        return (
            f"<Order(id={self.id}, product_id={self.product_id}, "
            f"quantity={self.quantity})>"
        )
