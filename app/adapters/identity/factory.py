"""Factory for the identity store consulted by the authenticator."""

from __future__ import annotations

from app.adapters.identity.base import AbstractIdentityStore
from app.adapters.identity.in_memory import InMemoryIdentityStore
from app.adapters.identity.redis_store import RedisIdentityStore
from app.adapters.redis_client import create_redis_client
from app.core.config import Settings, parse_csv
from app.core.errors import ValidationAppError


def create_identity_store(config: Settings) -> AbstractIdentityStore:
    """Instantiate the identity store selected by ``APP_IDENTITY_BACKEND``.

    Args:
        config: Resolved application settings.

    Returns:
        AbstractIdentityStore: Configured store instance.

    Raises:
        ValidationAppError: If the backend name is unknown.
    """
    backend = config.app.identity_backend.lower()

    if backend == "memory":
        return InMemoryIdentityStore(parse_csv(config.app.api_keys))

    if backend == "redis":
        return RedisIdentityStore(
            create_redis_client(config.redis),
            set_key=config.redis.identity_key,
        )

    raise ValidationAppError(
        code="unknown_identity_backend",
        message=(
            f"Unknown identity backend: '{backend}'. Supported backends: memory, redis"
        ),
    )
