"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any ``app`` import so that the global
settings object is built for the test environment: in-memory counters, API
key auth enabled with known keys, and no .env file.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("APP_API_KEY_REQUIRED", "true")
os.environ.setdefault("APP_API_KEYS", "test-api-key-123,test-api-key-456")
os.environ.setdefault("COUNTER_BACKEND", "memory")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from decimal import Decimal  # noqa: E402
from pathlib import Path  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import func, select  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker  # noqa: E402

from app.adapters.counter_store.in_memory import InMemoryCounterStore  # noqa: E402
from app.core.app_factory import create_app  # noqa: E402
from app.core.config import DatabaseSettings  # noqa: E402
from app.core.resources import Resources  # noqa: E402
from app.db.bootstrap import create_schema, seed_catalog  # noqa: E402
from app.db.models import Order, Product  # noqa: E402
from app.db.session import create_engine, create_session_factory  # noqa: E402


def sqlite_url(directory: Path) -> str:
    return f"sqlite+aiosqlite:///{directory / 'flash_sale_test.db'}"


def product_row(stock: int, price: str = "10.00", name: str = "Test Product") -> dict[str, Any]:
    """Column mapping for a single test product."""
    return {
        "name": name,
        "description": f"{name} description",
        "image_url": "https://example.com/product.png",
        "stock": stock,
        "price": Decimal(price),
    }


@pytest.fixture
def db_settings(tmp_path: Path) -> DatabaseSettings:
    return DatabaseSettings(url=sqlite_url(tmp_path))


@pytest_asyncio.fixture
async def engine(db_settings: DatabaseSettings):
    engine = create_engine(db_settings)
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(engine)


async def seed_product(
    session_factory: async_sessionmaker[AsyncSession],
    stock: int,
    price: str = "10.00",
) -> int:
    """Insert one product (clearing the catalog) and return its id."""
    [product_id] = await seed_catalog(session_factory, [product_row(stock, price)], [])
    return product_id


async def read_stock(session_factory: async_sessionmaker[AsyncSession], product_id: int) -> int:
    async with session_factory() as session:
        return await session.scalar(select(Product.stock).where(Product.id == product_id))


async def ordered_quantity(
    session_factory: async_sessionmaker[AsyncSession], product_id: int
) -> tuple[int, int]:
    """Return ``(order_count, total_quantity)`` for a product."""
    async with session_factory() as session:
        count, total = (
            await session.execute(
                select(func.count(Order.id), func.coalesce(func.sum(Order.quantity), 0)).where(
                    Order.product_id == product_id
                )
            )
        ).one()
    return int(count), int(total)


@pytest.fixture
def api_resources(db_settings: DatabaseSettings) -> Resources:
    """Resources for an app under test: a fresh SQLite file and in-memory counters."""
    engine = create_engine(db_settings)
    return Resources(
        engine=engine,
        session_factory=create_session_factory(engine),
        counter_store=InMemoryCounterStore(),
        auto_create_schema=True,
    )


@pytest.fixture
def client(api_resources: Resources):
    """Test client with the lifespan running, so the schema exists."""
    with TestClient(create_app(api_resources)) as test_client:
        yield test_client


@pytest.fixture
def valid_api_key_headers() -> dict[str, str]:
    """Create valid API key headers for authenticated requests."""
    return {"X-API-Key": "test-api-key-123"}


def seed_via_client(
    client: TestClient,
    resources: Resources,
    products: list[dict[str, Any]],
    orders: list[tuple[str, int, int]] | None = None,
) -> list[int]:
    """Seed the app's database from sync test code through the client's event loop."""
    return client.portal.call(seed_catalog, resources.session_factory, products, orders or [])
