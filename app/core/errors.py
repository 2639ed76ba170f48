"""Application-level exception types.

This module defines domain errors used across the gate and its adapters,
enabling consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability.

    Details are logged but never rendered to clients.
    """

    reason: str
    backend: str
    key_type: str
    limit: int
    remaining: int
    retry_after: int
    realm: str


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message, safe to return to clients.
        details: Optional structured details for debugging/observability.
        headers: Optional HTTP headers to attach to the error response.
    """

    code: str
    message: str
    details: ErrorDetails | None = None
    headers: dict[str, str] | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class AuthenticationAppError(AppError):
    """Raised when a request carries no credential or an unknown one."""


class RateLimitAppError(AppError):
    """Raised when the requester's window budget is exhausted."""


class StoreUnavailableAppError(AppError):
    """Raised when the identity or counter store cannot be reached."""


BAD_CREDENTIALS_MESSAGE = "Bad credentials"
TOO_MANY_REQUESTS_MESSAGE = "You have fired too many requests. Please wait for some time."
STORE_UNAVAILABLE_MESSAGE = "Service temporarily unavailable. Please try again later."


def build_challenge_header(realm: str) -> dict[str, str]:
    """Build the WWW-Authenticate challenge for the token scheme.

    Double quotes are stripped from the realm so the header stays well formed.
    """
    realm = realm.replace('"', "")
    return {"WWW-Authenticate": f'Token realm="{realm}"'}
