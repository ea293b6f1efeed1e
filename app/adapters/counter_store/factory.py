"""Factory for counter store instances."""

from app.adapters.counter_store.base import AbstractCounterStore
from app.adapters.counter_store.in_memory import InMemoryCounterStore
from app.adapters.counter_store.redis_store import RedisCounterStore
from app.core.config import CounterStoreSettings
from app.core.errors import ValidationAppError


def create_counter_store(cfg: CounterStoreSettings) -> AbstractCounterStore:
    """Instantiate the configured counter backend.

    Args:
        cfg: Counter store settings (``COUNTER_*`` environment variables).

    Returns:
        AbstractCounterStore: Redis store (shared across processes) or the
            in-memory store (single process only).

    Raises:
        ValidationAppError: If the backend name is unknown.
    """
    backend = cfg.backend.lower()

    if backend == "redis":
        return RedisCounterStore.from_url(
            cfg.redis_url,
            max_connections=cfg.max_connections,
            socket_timeout=cfg.socket_timeout_seconds,
        )

    if backend == "memory":
        return InMemoryCounterStore()

    raise ValidationAppError(
        code="counter_store_unknown_backend",
        message=f"Unknown counter store backend: '{backend}'. Supported: redis, memory",
    )
