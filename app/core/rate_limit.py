"""Fixed-window rate limiting.

Each rate limit key owns a counter in the shared counter store. The counter
is created at zero with an expiry of one window; later requests increment it
until the configured ceiling is reached. The expiry is never extended, so the
whole budget resets when the store forgets the key.

Quirk kept on purpose: the request that creates a counter does not consume
budget, so a window of ``max_requests`` admits ``max_requests + 1`` requests.
"""

from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from app.adapters.rate_limit.base import AbstractCounterStore
from app.core.errors import StoreUnavailableAppError

logger = logging.getLogger(__name__)


WINDOW_DURATION_SECONDS = 15 * 60
MAX_REQUESTS_PER_WINDOW = 60


class Admission(str, Enum):
    """Binary outcome of a rate limit check."""

    ALLOW = "allow"
    REJECT = "reject"


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit check.

    Attributes:
        admission: Allow or reject.
        limit: Max counted requests per window.
        count: Counter value after the check (0 right after creation).
        remaining: Counted requests left in the window.
        reset_at: UNIX epoch seconds when the window expires, if known.
        retry_after_seconds: Suggested wait time in seconds when rejected.
        degraded: True when the store was unreachable and the check failed open.
    """

    admission: Admission
    limit: int
    count: int
    remaining: int
    reset_at: int | None
    retry_after_seconds: int | None
    degraded: bool = False

    @property
    def allowed(self) -> bool:
        return self.admission is Admission.ALLOW


def token_key(token: str) -> str:
    return f"token:{token}"


def ip_key(address: str | None) -> str:
    return f"ip:{address or 'unknown'}"


def hash_limiter_key(key: str) -> str:
    """Hash the rate limit key for logging without exposing secrets."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


class FixedWindowRateLimiter:
    """Admit or reject requests per key using a fixed time window.

    The limiter is stateless; every count lives in the injected counter store,
    so any number of limiter instances can share one budget.
    """

    def __init__(
        self,
        store: AbstractCounterStore,
        *,
        max_requests: int = MAX_REQUESTS_PER_WINDOW,
        window_seconds: int = WINDOW_DURATION_SECONDS,
        fail_open: bool = False,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the limiter.

        Args:
            store: Counter store holding the window counters.
            max_requests: Ceiling checked before each increment.
            window_seconds: Lifetime of a counter from its creation.
            fail_open: Admit requests when the store is unreachable.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If max_requests or window_seconds are invalid.
        """
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")

        self._store = store
        self._max_requests = max_requests
        self._window_seconds = window_seconds
        self._fail_open = fail_open
        self._clock = clock

    @property
    def max_requests(self) -> int:
        return self._max_requests

    @property
    def window_seconds(self) -> int:
        return self._window_seconds

    def check_and_increment(self, key: str) -> RateLimitResult:
        """Check the window budget for ``key`` and count this request.

        Args:
            key: Non-empty rate limit key, e.g. ``token:<token>``.

        Returns:
            RateLimitResult with the admission decision and window metadata.

        Raises:
            ValueError: If key is empty.
            StoreUnavailableAppError: If the store is unreachable and the
                limiter fails closed.
        """
        if not key:
            raise ValueError("key must be a non-empty string")

        key_hash = hash_limiter_key(key)

        try:
            hit = self._store.hit(
                key,
                limit=self._max_requests,
                ttl_seconds=self._window_seconds,
            )
        except StoreUnavailableAppError:
            logger.error(
                "rate_limit.store_unavailable",
                extra={
                    "key_hash": key_hash,
                    "fail_open": self._fail_open,
                },
            )
            if not self._fail_open:
                raise
            return RateLimitResult(
                admission=Admission.ALLOW,
                limit=self._max_requests,
                count=0,
                remaining=self._max_requests,
                reset_at=None,
                retry_after_seconds=None,
                degraded=True,
            )

        now = self._clock()
        reset_at = int(now + hit.ttl_seconds) if hit.ttl_seconds is not None else None
        remaining = max(0, self._max_requests - hit.count)

        if hit.allowed:
            logger.info(
                "rate_limit.allowed",
                extra={
                    "key_hash": key_hash,
                    "window_created": hit.created,
                    "count": hit.count,
                    "limit": self._max_requests,
                    "remaining": remaining,
                    "window_s": self._window_seconds,
                },
            )
            return RateLimitResult(
                admission=Admission.ALLOW,
                limit=self._max_requests,
                count=hit.count,
                remaining=remaining,
                reset_at=reset_at,
                retry_after_seconds=None,
            )

        retry_after = hit.ttl_seconds if hit.ttl_seconds is not None else self._window_seconds
        logger.warning(
            "rate_limit.exceeded",
            extra={
                "key_hash": key_hash,
                "count": hit.count,
                "limit": self._max_requests,
                "window_s": self._window_seconds,
                "retry_after_s": retry_after,
            },
        )
        return RateLimitResult(
            admission=Admission.REJECT,
            limit=self._max_requests,
            count=hit.count,
            remaining=0,
            reset_at=reset_at,
            retry_after_seconds=retry_after,
        )
