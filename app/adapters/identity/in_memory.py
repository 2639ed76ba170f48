"""In-memory identity store seeded from configuration."""

from __future__ import annotations

from typing import Iterable

from app.adapters.identity.base import AbstractIdentityStore, PrincipalRecord


class InMemoryIdentityStore(AbstractIdentityStore):
    """Identity store holding a fixed set of API keys.

    Suitable for single-tenant deployments where keys are provisioned through
    the ``APP_API_KEYS`` environment variable.
    """

    def __init__(self, api_keys: Iterable[str]) -> None:
        self._records = {key: PrincipalRecord(api_key=key) for key in api_keys if key}

    def __len__(self) -> int:
        return len(self._records)

    def find_by_api_key(self, token: str) -> PrincipalRecord | None:
        return self._records.get(token)
