"""Identity store interfaces.

The authenticator only needs to resolve a presented token to a stored record
by exact match on its ``api_key``; where those records live is up to the
concrete store.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class PrincipalRecord:
    """Stored identity as seen by the gate.

    Attributes:
        api_key: Credential the identity is looked up by.
    """

    api_key: str = field(repr=False)


class AbstractIdentityStore(ABC):
    """Interface for identity lookups."""

    @abstractmethod
    def find_by_api_key(self, token: str) -> PrincipalRecord | None:
        """Resolve a token to its stored record.

        Args:
            token: Raw credential presented by the client.

        Returns:
            The matching record, or None when no identity owns the token.

        Raises:
            StoreUnavailableAppError: If the backend cannot be reached.
        """
        raise NotImplementedError
