"""Counter store interfaces.

The rate limiter depends on this abstraction (not a concrete backend) so the
shared window counters can live in process memory for a single worker or in
Redis when several workers or instances must share one budget.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class WindowHit:
    """Outcome of one atomic check-and-increment against a window counter.

    Attributes:
        created: True when this hit (re)created the counter at zero.
        allowed: Whether the hit was within budget.
        count: Counter value after the hit.
        ttl_seconds: Remaining lifetime of the window, None if unknown.
    """

    created: bool
    allowed: bool
    count: int
    ttl_seconds: int | None


class AbstractCounterStore(ABC):
    """Key/value store of integer counters with per-key expiry."""

    @abstractmethod
    def get(self, key: str) -> int | None:
        """Return the current count, or None when the key is absent/expired."""
        raise NotImplementedError

    @abstractmethod
    def set_with_expiry(self, key: str, value: int, ttl_seconds: int) -> None:
        """Create (or overwrite) a counter that expires after ``ttl_seconds``."""
        raise NotImplementedError

    @abstractmethod
    def increment(self, key: str) -> int:
        """Atomically add one to the counter and return the new value.

        The expiry of an existing counter is left untouched.
        """
        raise NotImplementedError

    @abstractmethod
    def hit(self, key: str, *, limit: int, ttl_seconds: int) -> WindowHit:
        """Run the fixed-window check as a single atomic operation.

        - Absent key: create it at 0 with ``ttl_seconds`` expiry, allow.
        - ``count >= limit``: reject without mutating.
        - Otherwise: increment, allow.

        Args:
            key: Namespaced rate limit key.
            limit: Maximum counted requests per window.
            ttl_seconds: Window length applied when the counter is created.

        Returns:
            WindowHit describing the decision.

        Raises:
            StoreUnavailableAppError: If the backend cannot be reached.
        """
        raise NotImplementedError
