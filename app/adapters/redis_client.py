"""Shared Redis client construction."""

from __future__ import annotations

from redis import Redis

from app.core.config import RedisSettings


def create_redis_client(redis_settings: RedisSettings) -> Redis:
    """Build a synchronous Redis client with bounded timeouts.

    Timeouts surface as ``redis.exceptions.TimeoutError`` which the store
    adapters translate into ``StoreUnavailableAppError``.
    """

    return Redis.from_url(
        redis_settings.url,
        decode_responses=True,
        socket_timeout=redis_settings.socket_timeout_seconds,
        socket_connect_timeout=redis_settings.connect_timeout_seconds,
        health_check_interval=30,
    )
