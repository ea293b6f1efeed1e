"""Redis-backed counter store.

A single ``redis.asyncio.Redis`` client (and therefore a single connection
pool) is created per process by ``create_counter_store`` and shared by all
request handlers. INCR, EXPIRE and TTL are each atomic on the server, so the
store needs no application-side locking.
"""

from __future__ import annotations

import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

from app.adapters.counter_store.base import AbstractCounterStore
from app.core.errors import CounterStoreError

logger = logging.getLogger(__name__)


class RedisCounterStore(AbstractCounterStore):
    """Counter store delegating to a shared Redis client."""

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(
        cls,
        url: str,
        *,
        max_connections: int = 100,
        socket_timeout: float = 5.0,
    ) -> "RedisCounterStore":
        """Build a store with its own connection pool.

        Connections are opened lazily on first command, so construction never
        blocks or fails on an unreachable server.
        """
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            max_connections=max_connections,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )
        return cls(client)

    async def incr(self, key: str) -> int:
        try:
            return int(await self._client.incr(key))
        except (RedisError, OSError) as exc:
            raise CounterStoreError(f"INCR failed: {exc}") from exc

    async def expire(self, key: str, seconds: int) -> bool:
        try:
            return bool(await self._client.expire(key, seconds))
        except (RedisError, OSError) as exc:
            raise CounterStoreError(f"EXPIRE failed: {exc}") from exc

    async def ttl(self, key: str) -> int:
        try:
            return int(await self._client.ttl(key))
        except (RedisError, OSError) as exc:
            raise CounterStoreError(f"TTL failed: {exc}") from exc

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except (RedisError, OSError):
            return False

    async def close(self) -> None:
        """Gracefully close the connection pool."""
        await self._client.aclose()
        logger.info("counter_store.closed", extra={"backend": "redis"})
