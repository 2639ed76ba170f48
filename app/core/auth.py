"""Token authentication logic.

Clients present their API key in the ``Authorization`` header using the token
scheme, e.g. ``Authorization: Token token="abc123"``. The key is resolved
against the identity store by exact match.

Design principles:
- Single Responsibility: only parses credentials and resolves identities
- Dependency Injection: the identity store is passed in, never imported
- Framework-free: raises application errors, HTTP rendering happens elsewhere
"""

from __future__ import annotations

import hashlib
import logging
import re
from dataclasses import dataclass, field

from app.adapters.identity.base import AbstractIdentityStore, PrincipalRecord
from app.core.errors import (
    BAD_CREDENTIALS_MESSAGE,
    AuthenticationAppError,
    build_challenge_header,
)

logger = logging.getLogger(__name__)


_TOKEN_SCHEME = re.compile(r"^(Token|Bearer)\s+")
_PAIR_DELIMITERS = re.compile(r"\s*(?:,|;|\t+)\s*")
_SURROUNDING_QUOTES = re.compile(r'^"|"$')
_TOKEN_KEY = "token="


@dataclass(frozen=True)
class Principal:
    """Identity resolved from a presented token.

    Attributes:
        token: Raw credential presented by the client.
        resolved: Whether the token matched a stored identity.
        record: Stored identity, when resolved.
    """

    token: str = field(repr=False)
    resolved: bool
    record: PrincipalRecord | None = field(default=None, repr=False)


def hash_token(token: str) -> str:
    """Short, non-reversible fingerprint of a token for logs."""
    return hashlib.sha256(token.encode()).hexdigest()[:16]


def parse_token_header(authorization: str | None) -> tuple[str, dict[str, str]] | None:
    """Extract the token and its options from an Authorization header.

    Accepts the ``Token`` and ``Bearer`` schemes. Parameters are separated by
    commas, semicolons or tabs; a leading bare value is treated as the token.

    Args:
        authorization: Raw header value, or None.

    Returns:
        ``(token, options)`` or None if the header is absent, uses another
        scheme, or carries a blank token.

    Examples:
        >>> parse_token_header('Token token="abc123", nonce="def"')
        ('abc123', {'nonce': 'def'})
        >>> parse_token_header("Bearer abc123")
        ('abc123', {})
        >>> parse_token_header("Basic dXNlcjpwYXNz") is None
        True
    """
    if not authorization:
        return None

    match = _TOKEN_SCHEME.match(authorization)
    if not match:
        return None

    raw_params = _PAIR_DELIMITERS.split(authorization[match.end():].strip())
    if not raw_params[0].startswith(_TOKEN_KEY):
        raw_params[0] = f"{_TOKEN_KEY}{raw_params[0]}"

    pairs: list[tuple[str, str]] = []
    for param in raw_params:
        name, _, value = param.partition("=")
        pairs.append((name, _SURROUNDING_QUOTES.sub("", value)))

    token = pairs[0][1]
    if not token.strip():
        return None

    return token, dict(pairs[1:])


class TokenAuthenticator:
    """Resolve the credential of a request to a Principal."""

    def __init__(self, identity_store: AbstractIdentityStore, *, realm: str = "Application") -> None:
        self._identity_store = identity_store
        self._realm = realm

    @property
    def realm(self) -> str:
        return self._realm

    def _error(self, code: str, reason: str) -> AuthenticationAppError:
        return AuthenticationAppError(
            code=code,
            message=BAD_CREDENTIALS_MESSAGE,
            details={"reason": reason, "realm": self._realm},
            headers=build_challenge_header(self._realm),
        )

    def authenticate(self, authorization: str | None) -> Principal:
        """Authenticate a request from its Authorization header.

        The lookup is read-only.

        Args:
            authorization: Raw ``Authorization`` header value.

        Returns:
            Principal with ``resolved=True``.

        Raises:
            AuthenticationAppError: ``missing_credentials`` if no parseable
                token was presented, ``invalid_credentials`` if the token does
                not resolve.
            StoreUnavailableAppError: If the identity store is unreachable.
        """
        parsed = parse_token_header(authorization)
        if parsed is None:
            logger.warning(
                "auth.missing_credentials",
                extra={
                    "authorization_present": bool(authorization),
                    "realm": self._realm,
                },
            )
            raise self._error("missing_credentials", "authorization_header_missing_or_unparseable")

        token, _options = parsed
        token_hash = hash_token(token)

        record = self._identity_store.find_by_api_key(token)
        if record is None:
            logger.warning(
                "auth.invalid_credentials",
                extra={
                    "token_hash": token_hash,
                    "realm": self._realm,
                },
            )
            raise self._error("invalid_credentials", "token_not_found")

        logger.info(
            "auth.success",
            extra={"token_hash": token_hash},
        )
        return Principal(token=token, resolved=True, record=record)
