"""Schema creation and demo catalogue seeding.

Run as a console script::

    flash-sale-bootstrap            # create tables and indexes
    flash-sale-bootstrap --seed     # ...and reset the demo catalogue
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Iterable

from sqlalchemy import delete, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from app.core.config import settings
from app.core.logging import configure_logging
from app.db.models import Base, Order, OrderStatus, Product
from app.db.session import create_engine, create_session_factory

logger = logging.getLogger(__name__)


DEMO_CATALOG: list[dict[str, Any]] = [
    {
        "name": "Laptop Pro 15",
        "description": "High-performance laptop with 16GB RAM and 512GB SSD. Perfect for developers and professionals.",
        "image_url": "https://images.unsplash.com/photo-1496181133206-80ce9b88a853?w=500",
        "stock": 100,
        "price": Decimal("1299.99"),
    },
    {
        "name": "Wireless Mouse",
        "description": "Ergonomic wireless mouse with precision tracking and long battery life.",
        "image_url": "https://images.unsplash.com/photo-1527814050087-3793815479db?w=500",
        "stock": 25,
        "price": Decimal("29.99"),
    },
    {
        "name": "Mechanical Keyboard",
        "description": "RGB mechanical keyboard with Cherry MX switches and customizable lighting.",
        "image_url": "https://images.unsplash.com/photo-1587829741301-dc798b83add3?w=500",
        "stock": 15,
        "price": Decimal("149.99"),
    },
    {
        "name": "4K Monitor",
        "description": "27-inch 4K UHD monitor with HDR support and 144Hz refresh rate.",
        "image_url": "https://images.unsplash.com/photo-1527443224154-c4a3942d3acf?w=500",
        "stock": 8,
        "price": Decimal("449.99"),
    },
    {
        "name": "USB-C Hub",
        "description": "7-in-1 USB-C hub with HDMI, USB 3.0, SD card reader, and power delivery.",
        "image_url": "https://images.unsplash.com/photo-1625842268584-8f3296236761?w=500",
        "stock": 30,
        "price": Decimal("49.99"),
    },
]

# (user_id, catalogue index, quantity); the n-th order is placed n days ago
DEMO_ORDERS: list[tuple[str, int, int]] = [
    ("user_1", 0, 2),
    ("user_2", 1, 1),
    ("user_3", 0, 1),
    ("user_4", 2, 3),
    ("user_5", 1, 2),
]


async def create_schema(engine: AsyncEngine) -> None:
    """Create all tables, constraints and indexes that do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("db.schema_ready", extra={"tables": sorted(Base.metadata.tables)})


async def _clear(session: AsyncSession) -> None:
    if session.bind.dialect.name == "postgresql":
        await session.execute(text("TRUNCATE TABLE orders, products RESTART IDENTITY CASCADE"))
        return
    await session.execute(delete(Order))
    await session.execute(delete(Product))


async def seed_catalog(
    session_factory: async_sessionmaker[AsyncSession],
    products: Iterable[dict[str, Any]] = DEMO_CATALOG,
    orders: Iterable[tuple[str, int, int]] = DEMO_ORDERS,
    *,
    reset: bool = True,
) -> list[int]:
    """Insert a product catalogue and sample historical orders.

    Sample orders are bookkeeping for the statistics endpoint only: they do
    not decrement the seeded stock.

    Args:
        session_factory: Session factory bound to the target database.
        products: Product column mappings to insert.
        orders: ``(user_id, product_index, quantity)`` tuples.
        reset: Remove existing orders and products first.

    Returns:
        Ids of the inserted products, in input order.
    """
    now = datetime.now(timezone.utc)
    async with session_factory() as session:
        async with session.begin():
            if reset:
                await _clear(session)

            rows = [Product(**data) for data in products]
            session.add_all(rows)
            await session.flush()

            for days_ago, (user_id, index, quantity) in enumerate(orders):
                product = rows[index]
                session.add(
                    Order(
                        user_id=user_id,
                        product_id=product.id,
                        quantity=quantity,
                        total_price=Decimal(product.price) * quantity,
                        status=OrderStatus.COMPLETED,
                        created_at=now - timedelta(days=days_ago % 7),
                    )
                )

        product_ids = [row.id for row in rows]

    logger.info("db.seeded", extra={"products": len(product_ids)})
    return product_ids


async def _run(seed: bool) -> None:
    engine = create_engine(settings.db)
    try:
        await create_schema(engine)
        if seed:
            await seed_catalog(create_session_factory(engine))
    finally:
        await engine.dispose()


def main(argv: list[str] | None = None) -> None:
    """Console entry point: create the schema and optionally seed it."""
    parser = argparse.ArgumentParser(description="Create the flash sale schema.")
    parser.add_argument(
        "--seed",
        action="store_true",
        help="reset products and orders to the demo catalogue",
    )
    args = parser.parse_args(argv)

    configure_logging(settings.log)
    asyncio.run(_run(args.seed))


if __name__ == "__main__":
    main()
