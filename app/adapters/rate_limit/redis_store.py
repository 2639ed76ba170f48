"""Redis-backed counter store shared by every API worker.

The fixed-window check runs server-side as a Lua script so that reading,
creating and incrementing a counter is one atomic Redis command. Concurrent
requests sharing a key therefore never lose or double count an increment.
"""

from __future__ import annotations

import logging

from redis import Redis
from redis.exceptions import RedisError

from app.adapters.rate_limit.base import AbstractCounterStore, WindowHit
from app.core.errors import STORE_UNAVAILABLE_MESSAGE, StoreUnavailableAppError

logger = logging.getLogger(__name__)


# Returns {status, count, ttl}; status 1 = created, 2 = incremented, 0 = rejected.
FIXED_WINDOW_HIT_SCRIPT = """
local current = redis.call('GET', KEYS[1])
local window = tonumber(ARGV[2])
if not current then
  redis.call('SET', KEYS[1], 0, 'EX', window)
  return {1, 0, window}
end
local ttl = redis.call('TTL', KEYS[1])
if ttl < 0 then
  redis.call('EXPIRE', KEYS[1], window)
  ttl = window
end
current = tonumber(current)
if current >= tonumber(ARGV[1]) then
  return {0, current, ttl}
end
local count = redis.call('INCR', KEYS[1])
return {2, count, ttl}
"""

_STATUS_REJECTED = 0
_STATUS_CREATED = 1


class RedisCounterStore(AbstractCounterStore):
    """Counter store using Redis keys with TTL for window expiry."""

    def __init__(self, client: Redis, *, key_prefix: str = "count:") -> None:
        """Initialize the store.

        Args:
            client: Configured Redis client (timeouts set by the caller).
            key_prefix: Namespace prepended to every counter key.
        """
        self._client = client
        self._key_prefix = key_prefix
        self._hit_script = client.register_script(FIXED_WINDOW_HIT_SCRIPT)

    def _key(self, key: str) -> str:
        return f"{self._key_prefix}{key}"

    def _unavailable(self, operation: str, exc: RedisError) -> StoreUnavailableAppError:
        logger.error(
            "counter_store.unavailable",
            extra={
                "backend": "redis",
                "operation": operation,
                "error_type": type(exc).__name__,
            },
        )
        return StoreUnavailableAppError(
            code="store_unavailable",
            message=STORE_UNAVAILABLE_MESSAGE,
            details={"backend": "redis", "reason": type(exc).__name__},
        )

    def get(self, key: str) -> int | None:
        try:
            value = self._client.get(self._key(key))
        except RedisError as exc:
            raise self._unavailable("get", exc) from exc
        return int(value) if value is not None else None

    def set_with_expiry(self, key: str, value: int, ttl_seconds: int) -> None:
        try:
            self._client.set(self._key(key), value, ex=ttl_seconds)
        except RedisError as exc:
            raise self._unavailable("set_with_expiry", exc) from exc

    def increment(self, key: str) -> int:
        try:
            return int(self._client.incr(self._key(key)))
        except RedisError as exc:
            raise self._unavailable("increment", exc) from exc

    def hit(self, key: str, *, limit: int, ttl_seconds: int) -> WindowHit:
        try:
            status, count, ttl = self._hit_script(
                keys=[self._key(key)],
                args=[limit, ttl_seconds],
            )
        except RedisError as exc:
            raise self._unavailable("hit", exc) from exc

        status = int(status)
        return WindowHit(
            created=status == _STATUS_CREATED,
            allowed=status != _STATUS_REJECTED,
            count=int(count),
            ttl_seconds=int(ttl),
        )
