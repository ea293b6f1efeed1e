"""Tests for schema creation, seeding and the resource lifecycle."""

from decimal import Decimal
from unittest.mock import AsyncMock, Mock

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from app.adapters.counter_store.in_memory import InMemoryCounterStore
from app.core.config import CounterStoreSettings, DatabaseSettings, Settings
from app.core.resources import Resources
from app.db import bootstrap
from app.db.bootstrap import DEMO_CATALOG, DEMO_ORDERS, create_schema, seed_catalog
from app.db.models import Order, Product
from conftest import product_row, sqlite_url


@pytest.mark.asyncio
async def test_seed_demo_catalog(session_factory) -> None:
    ids = await seed_catalog(session_factory)

    assert len(ids) == len(DEMO_CATALOG)
    async with session_factory() as session:
        names = (await session.scalars(select(Product.name).order_by(Product.id))).all()
        order_count = await session.scalar(select(func.count(Order.id)))
        laptop = await session.get(Product, ids[0])

    assert names == [p["name"] for p in DEMO_CATALOG]
    assert order_count == len(DEMO_ORDERS)
    # Historical orders do not consume seeded stock.
    assert laptop.stock == 100
    assert laptop.price == Decimal("1299.99")


@pytest.mark.asyncio
async def test_reseeding_resets_the_catalog(session_factory) -> None:
    await seed_catalog(session_factory)
    ids = await seed_catalog(session_factory, [product_row(stock=1)], [])

    async with session_factory() as session:
        product_count = await session.scalar(select(func.count(Product.id)))
        order_count = await session.scalar(select(func.count(Order.id)))

    assert len(ids) == 1
    assert product_count == 1
    assert order_count == 0


@pytest.mark.asyncio
async def test_seeding_without_reset_appends(session_factory) -> None:
    await seed_catalog(session_factory, [product_row(stock=1)], [])
    await seed_catalog(session_factory, [product_row(stock=2)], [], reset=False)

    async with session_factory() as session:
        assert await session.scalar(select(func.count(Product.id))) == 2


@pytest.mark.asyncio
async def test_create_schema_is_idempotent(engine) -> None:
    await create_schema(engine)
    await create_schema(engine)


@pytest.mark.asyncio
async def test_negative_stock_is_rejected_by_the_schema(session_factory) -> None:
    with pytest.raises(IntegrityError):
        await seed_catalog(session_factory, [product_row(stock=-1)], [])


@pytest.mark.asyncio
async def test_resources_lifecycle(tmp_path) -> None:
    cfg = Settings(
        db=DatabaseSettings(url=sqlite_url(tmp_path)),
        counter=CounterStoreSettings(backend="memory"),
    )
    resources = Resources.from_settings(cfg)

    assert isinstance(resources.counter_store, InMemoryCounterStore)
    assert resources.auto_create_schema is True

    await resources.startup()
    try:
        assert await resources.check_database() is True
        ids = await seed_catalog(resources.session_factory, [product_row(stock=3)], [])
        assert ids
    finally:
        await resources.shutdown()


@pytest.mark.asyncio
async def test_shutdown_disposes_engine_even_if_store_close_fails() -> None:
    engine = AsyncMock()
    store = AsyncMock()
    store.close.side_effect = RuntimeError("close failed")
    resources = Resources(engine=engine, session_factory=Mock(), counter_store=store)

    with pytest.raises(RuntimeError):
        await resources.shutdown()

    engine.dispose.assert_awaited_once()


def test_cli_creates_schema_and_seeds(monkeypatch) -> None:
    run = AsyncMock()
    monkeypatch.setattr(bootstrap, "_run", run)
    monkeypatch.setattr(bootstrap, "configure_logging", lambda cfg: None)

    bootstrap.main(["--seed"])
    bootstrap.main([])

    assert [c.args for c in run.await_args_list] == [(True,), (False,)]
