"""Atomic counter store adapters.

The rate limiter depends only on ``AbstractCounterStore`` so the shared Redis
backend and the single-process in-memory backend are interchangeable.
"""

from app.adapters.counter_store.base import AbstractCounterStore
from app.adapters.counter_store.factory import create_counter_store

__all__ = ["AbstractCounterStore", "create_counter_store"]
