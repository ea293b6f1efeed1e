"""Unit tests for the in-memory counter store."""

from unittest.mock import Mock

import pytest

from app.adapters.counter_store.base import TTL_MISSING_KEY, TTL_NO_EXPIRY
from app.adapters.counter_store.in_memory import InMemoryCounterStore


@pytest.mark.asyncio
async def test_incr_creates_missing_key_and_counts_up() -> None:
    store = InMemoryCounterStore(clock=Mock(return_value=1000.0))

    assert await store.incr("k") == 1
    assert await store.incr("k") == 2
    assert await store.incr("k") == 3


@pytest.mark.asyncio
async def test_ttl_reports_missing_and_unexpiring_keys() -> None:
    store = InMemoryCounterStore(clock=Mock(return_value=1000.0))

    assert await store.ttl("k") == TTL_MISSING_KEY
    await store.incr("k")
    assert await store.ttl("k") == TTL_NO_EXPIRY


@pytest.mark.asyncio
async def test_expire_sets_remaining_seconds() -> None:
    clock = Mock(return_value=1000.0)
    store = InMemoryCounterStore(clock=clock)

    await store.incr("k")
    assert await store.expire("k", 60) is True
    assert await store.ttl("k") == 60

    clock.return_value = 1035.5
    assert await store.ttl("k") == 25


@pytest.mark.asyncio
async def test_expire_on_missing_key_returns_false() -> None:
    store = InMemoryCounterStore(clock=Mock(return_value=1000.0))

    assert await store.expire("nope", 60) is False
    assert len(store) == 0


@pytest.mark.asyncio
async def test_expired_key_restarts_from_one() -> None:
    clock = Mock(return_value=1000.0)
    store = InMemoryCounterStore(clock=clock)

    await store.incr("k")
    await store.incr("k")
    await store.expire("k", 10)

    clock.return_value = 1010.0
    assert await store.ttl("k") == TTL_MISSING_KEY
    assert await store.incr("k") == 1
    assert await store.ttl("k") == TTL_NO_EXPIRY


@pytest.mark.asyncio
async def test_keys_are_isolated() -> None:
    store = InMemoryCounterStore(clock=Mock(return_value=1000.0))

    await store.incr("k1")
    await store.incr("k1")
    await store.expire("k1", 30)

    assert await store.incr("k2") == 1
    assert await store.ttl("k2") == TTL_NO_EXPIRY
    assert len(store) == 2


@pytest.mark.asyncio
async def test_default_ping_and_close() -> None:
    store = InMemoryCounterStore()

    assert await store.ping() is True
    await store.close()
    await store.close()
