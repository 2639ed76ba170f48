"""Counter store adapters for rate limiting.

This package provides a small abstraction layer so a single worker can keep
window counters in memory while deployments with several workers share them
through Redis, without changing the limiter or the API layer.
"""

from app.adapters.rate_limit.base import AbstractCounterStore, WindowHit
from app.adapters.rate_limit.factory import create_counter_store
from app.adapters.rate_limit.in_memory import InMemoryCounterStore
from app.adapters.rate_limit.redis_store import RedisCounterStore

__all__ = [
    "AbstractCounterStore",
    "InMemoryCounterStore",
    "RedisCounterStore",
    "WindowHit",
    "create_counter_store",
]
