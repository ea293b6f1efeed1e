"""Fixed-window rate limiter over a shared counter store.

Algorithm, per ``check(identifier, max_requests, window_seconds)``:

1. ``INCR`` the identifier's counter.
2. If the result is 1, this is the first hit of a new window: ``EXPIRE`` the
   counter after ``window_seconds``. Later hits never extend the window.
3. If the count exceeds ``max_requests`` the request is denied and the
   counter's remaining TTL is returned as the retry hint.

The limiter keeps no local state, so any number of handler processes can
share one counter store.

Counter store failures fail open: the request is allowed and the fault is
logged. Purchase traffic is never blocked by a cache-layer outage.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from app.adapters.counter_store.base import TTL_NO_EXPIRY, AbstractCounterStore
from app.core.errors import CounterStoreError
from app.core.logging import hash_identifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitDecision:
    """Result of a rate limit check.

    Attributes:
        allowed: Whether the request may proceed.
        limit: Max requests per window for the evaluated tier.
        remaining: Requests left in the current window (0 when denied).
        retry_after_seconds: Seconds until the window resets, when denied.
        tier: Name of the tier that produced the decision, if any.
    """

    allowed: bool
    limit: int
    remaining: int
    retry_after_seconds: int | None = None
    tier: str | None = None


class RateLimiter:
    """Stateless fixed-window limiter."""

    def __init__(self, store: AbstractCounterStore, *, key_prefix: str = "rate_limit") -> None:
        self._store = store
        self._key_prefix = key_prefix

    def _key(self, identifier: str) -> str:
        return f"{self._key_prefix}:{identifier}"

    async def _retry_after(self, key: str, window_seconds: int) -> int:
        try:
            ttl = await self._store.ttl(key)
            if ttl == TTL_NO_EXPIRY:
                # The EXPIRE after the first hit was lost; without this the
                # counter would deny forever.
                await self._store.expire(key, window_seconds)
        except CounterStoreError:
            return window_seconds
        return ttl if ttl > 0 else window_seconds

    async def check(
        self,
        identifier: str,
        max_requests: int,
        window_seconds: int,
    ) -> RateLimitDecision:
        """Count one request for ``identifier`` and decide whether to allow it.

        Args:
            identifier: Namespaced subject, e.g. ``user:alice`` or ``ip:10.0.0.1``.
            max_requests: Requests allowed per window.
            window_seconds: Window length, anchored at the first request.

        Returns:
            RateLimitDecision; ``allowed`` is True when the store is unreachable.

        Raises:
            ValueError: If arguments are invalid.
        """
        if not identifier:
            raise ValueError("identifier must be a non-empty string")
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")

        key = self._key(identifier)
        tier = identifier.split(":", 1)[0] if ":" in identifier else None

        try:
            current = await self._store.incr(key)
            if current == 1:
                await self._store.expire(key, window_seconds)
        except CounterStoreError as exc:
            logger.warning(
                "rate_limit.backend_unavailable",
                extra={
                    "key_hash": hash_identifier(key),
                    "tier": tier,
                    "error_msg": str(exc),
                    "policy": "fail_open",
                },
            )
            return RateLimitDecision(
                allowed=True, limit=max_requests, remaining=max_requests, tier=tier
            )

        if current > max_requests:
            retry_after = await self._retry_after(key, window_seconds)
            logger.warning(
                "rate_limit.exceeded",
                extra={
                    "key_hash": hash_identifier(key),
                    "tier": tier,
                    "limit": max_requests,
                    "count": current,
                    "window_s": window_seconds,
                    "retry_after_s": retry_after,
                },
            )
            return RateLimitDecision(
                allowed=False,
                limit=max_requests,
                remaining=0,
                retry_after_seconds=retry_after,
                tier=tier,
            )

        logger.debug(
            "rate_limit.allowed",
            extra={
                "key_hash": hash_identifier(key),
                "tier": tier,
                "limit": max_requests,
                "remaining": max_requests - current,
            },
        )
        return RateLimitDecision(
            allowed=True,
            limit=max_requests,
            remaining=max_requests - current,
            tier=tier,
        )
