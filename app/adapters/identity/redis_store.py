"""Redis-backed identity store.

Valid API keys are members of a single Redis set, so provisioning or revoking
a key is one ``SADD``/``SREM`` away and takes effect on every worker at once.
"""

from __future__ import annotations

import logging

from redis import Redis
from redis.exceptions import RedisError

from app.adapters.identity.base import AbstractIdentityStore, PrincipalRecord
from app.core.errors import STORE_UNAVAILABLE_MESSAGE, StoreUnavailableAppError

logger = logging.getLogger(__name__)


class RedisIdentityStore(AbstractIdentityStore):
    """Identity store checking set membership of the presented token."""

    def __init__(self, client: Redis, *, set_key: str = "api_keys") -> None:
        self._client = client
        self._set_key = set_key

    def find_by_api_key(self, token: str) -> PrincipalRecord | None:
        try:
            found = self._client.sismember(self._set_key, token)
        except RedisError as exc:
            logger.error(
                "identity_store.unavailable",
                extra={
                    "backend": "redis",
                    "error_type": type(exc).__name__,
                },
            )
            raise StoreUnavailableAppError(
                code="store_unavailable",
                message=STORE_UNAVAILABLE_MESSAGE,
                details={"backend": "redis", "reason": type(exc).__name__},
            ) from exc

        return PrincipalRecord(api_key=token) if found else None
