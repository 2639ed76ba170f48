"""In-memory counter store for fixed-window rate limiting.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Expired counters are swept periodically from within hit(), so keys that
  are never seen again (e.g. one-off client IPs) do not accumulate.
- Thread-safe: uses a lock around shared state.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from app.adapters.rate_limit.base import AbstractCounterStore, WindowHit


@dataclass
class _CounterState:
    count: int
    expires_at: float | None


class InMemoryCounterStore(AbstractCounterStore):
    """Counter store keeping window counters in a process-local dict.

    Expired counters are treated as absent and dropped on access. hit() also
    sweeps every expired counter at most once per ``sweep_interval_seconds``,
    mirroring how a TTL store forgets keys on its own.

    Important:
        This store is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits. Use the Redis backend to share budgets.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.time,
        sweep_interval_seconds: float = 60.0,
    ) -> None:
        """Initialize the in-memory counter store.

        Args:
            clock: Time source function returning UNIX time in seconds.
            sweep_interval_seconds: Minimum time between full scans that
                drop expired counters of keys nobody asks about again.
        """
        if sweep_interval_seconds <= 0:
            raise ValueError("sweep_interval_seconds must be > 0")

        self._clock = clock
        self._sweep_interval = sweep_interval_seconds
        self._next_sweep_at = clock() + sweep_interval_seconds
        self._lock = threading.RLock()
        self._state_by_key: dict[str, _CounterState] = {}

    def _live_state_locked(self, key: str, now: float) -> _CounterState | None:
        state = self._state_by_key.get(key)
        if state is None:
            return None
        if state.expires_at is not None and now >= state.expires_at:
            del self._state_by_key[key]
            return None
        return state

    def _sweep_expired_locked(self, now: float) -> None:
        if now < self._next_sweep_at:
            return
        expired_keys = [
            key
            for key, state in self._state_by_key.items()
            if state.expires_at is not None and now >= state.expires_at
        ]
        for key in expired_keys:
            del self._state_by_key[key]
        self._next_sweep_at = now + self._sweep_interval

    def _ttl(self, state: _CounterState, now: float) -> int | None:
        if state.expires_at is None:
            return None
        return max(0, int(math.ceil(state.expires_at - now)))

    def get(self, key: str) -> int | None:
        with self._lock:
            state = self._live_state_locked(key, self._clock())
            return state.count if state else None

    def set_with_expiry(self, key: str, value: int, ttl_seconds: int) -> None:
        if ttl_seconds < 1:
            raise ValueError("ttl_seconds must be >= 1")
        with self._lock:
            self._state_by_key[key] = _CounterState(
                count=value,
                expires_at=self._clock() + ttl_seconds,
            )

    def increment(self, key: str) -> int:
        with self._lock:
            state = self._live_state_locked(key, self._clock())
            if state is None:
                # Same as Redis INCR on a missing key: starts at 1, no expiry.
                state = _CounterState(count=0, expires_at=None)
                self._state_by_key[key] = state
            state.count += 1
            return state.count

    def hit(self, key: str, *, limit: int, ttl_seconds: int) -> WindowHit:
        with self._lock:
            now = self._clock()
            self._sweep_expired_locked(now)
            state = self._live_state_locked(key, now)

            if state is None:
                self.set_with_expiry(key, 0, ttl_seconds)
                return WindowHit(created=True, allowed=True, count=0, ttl_seconds=ttl_seconds)

            if state.expires_at is None:
                state.expires_at = now + ttl_seconds

            if state.count >= limit:
                return WindowHit(
                    created=False,
                    allowed=False,
                    count=state.count,
                    ttl_seconds=self._ttl(state, now),
                )

            state.count += 1
            return WindowHit(
                created=False,
                allowed=True,
                count=state.count,
                ttl_seconds=self._ttl(state, now),
            )

    def __len__(self) -> int:
        """Number of counters held, expired ones not yet swept included."""

        with self._lock:
            return len(self._state_by_key)

    def clear(self) -> None:
        """Forget every counter."""

        with self._lock:
            self._state_by_key.clear()
