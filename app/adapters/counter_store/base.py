"""Counter store interface.

Semantics follow Redis so that every backend behaves the same way:

- ``incr`` creates a missing key at 0 and returns the post-increment value.
- ``expire`` sets a time-to-live on an existing key.
- ``ttl`` returns the remaining seconds, ``-1`` for a key without expiry
  and ``-2`` for a missing key.

Backends raise ``CounterStoreError`` when they cannot serve a call.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

TTL_NO_EXPIRY = -1
TTL_MISSING_KEY = -2


class AbstractCounterStore(ABC):
    """Interface for shared atomic counters with expiry."""

    @abstractmethod
    async def incr(self, key: str) -> int:
        """Atomically increment ``key`` and return the new value."""
        raise NotImplementedError

    @abstractmethod
    async def expire(self, key: str, seconds: int) -> bool:
        """Set ``key`` to expire after ``seconds``.

        Returns:
            True if the key existed and the expiry was set.
        """
        raise NotImplementedError

    @abstractmethod
    async def ttl(self, key: str) -> int:
        """Return remaining seconds before ``key`` expires (see module notes)."""
        raise NotImplementedError

    async def ping(self) -> bool:
        """Report whether the backend is reachable."""
        return True

    async def close(self) -> None:
        """Release backend connections. Safe to call more than once."""
        return None
