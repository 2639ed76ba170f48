"""Factory for the counter store backing the rate limiter."""

from __future__ import annotations

from app.adapters.rate_limit.base import AbstractCounterStore
from app.adapters.rate_limit.in_memory import InMemoryCounterStore
from app.adapters.rate_limit.redis_store import RedisCounterStore
from app.adapters.redis_client import create_redis_client
from app.core.config import Settings
from app.core.errors import ValidationAppError


def create_counter_store(config: Settings) -> AbstractCounterStore:
    """Instantiate the counter store selected by ``APP_RATE_LIMIT_BACKEND``.

    Args:
        config: Resolved application settings.

    Returns:
        AbstractCounterStore: Configured store instance.

    Raises:
        ValidationAppError: If the backend name is unknown.
    """
    backend = config.app.rate_limit_backend.lower()

    if backend == "memory":
        return InMemoryCounterStore()

    if backend == "redis":
        return RedisCounterStore(
            create_redis_client(config.redis),
            key_prefix=config.redis.counter_key_prefix,
        )

    raise ValidationAppError(
        code="unknown_rate_limit_backend",
        message=(
            f"Unknown rate limit backend: '{backend}'. Supported backends: memory, redis"
        ),
    )
