"""Request admission gate.

Runs, in order, token authentication and fixed-window rate limiting for every
gated route. The first failing step raises an application error that the
global exception handlers render; the route handler never runs.

Wiring:
- ``build_admission_gate`` assembles the gate from settings and stores.
- ``create_app`` keeps the gate on ``app.state.admission_gate``.
- Routers opt in with ``dependencies=[Depends(admit_request)]``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from fastapi import Request

from app.adapters.identity.base import AbstractIdentityStore
from app.adapters.identity.factory import create_identity_store
from app.adapters.rate_limit.base import AbstractCounterStore
from app.adapters.rate_limit.factory import create_counter_store
from app.core.auth import Principal, TokenAuthenticator
from app.core.config import Settings, parse_csv, settings
from app.core.errors import TOO_MANY_REQUESTS_MESSAGE, RateLimitAppError
from app.core.rate_limit import (
    FixedWindowRateLimiter,
    RateLimitResult,
    hash_limiter_key,
    ip_key,
    token_key,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GateRequest:
    """The parts of an HTTP request the gate looks at."""

    path: str
    authorization: str | None = None
    client_host: str | None = None

    @classmethod
    def from_request(cls, request: Request) -> "GateRequest":
        return cls(
            path=request.url.path,
            authorization=request.headers.get("Authorization"),
            client_host=request.client.host if request.client else None,
        )


@dataclass(frozen=True)
class AdmissionGranted:
    """Returned to the route when the request may proceed.

    Attributes:
        principal: Authenticated identity, None on auth-exempt routes.
        rate_limit: Limiter result, None when the request was not throttled.
        exempt: Whether the route skipped authentication.
    """

    principal: Principal | None
    rate_limit: RateLimitResult | None
    exempt: bool = False


class AdmissionGate:
    """Compose authentication and rate limiting into one admission check."""

    def __init__(
        self,
        authenticator: TokenAuthenticator,
        limiter: FixedWindowRateLimiter | None,
        *,
        exempt_routes: Iterable[str] = (),
        throttle_exempt_by_ip: bool = False,
        include_rate_limit_headers: bool = False,
    ) -> None:
        """Initialize the gate.

        Args:
            authenticator: Resolves the request credential.
            limiter: Fixed-window limiter, or None to disable throttling.
            exempt_routes: Paths that skip authentication.
            throttle_exempt_by_ip: Throttle exempt paths by client address.
            include_rate_limit_headers: Attach X-RateLimit-* and Retry-After
                headers to 429 responses.
        """
        self._authenticator = authenticator
        self._limiter = limiter
        self._exempt_routes = frozenset(exempt_routes)
        self._throttle_exempt_by_ip = throttle_exempt_by_ip
        self._include_rate_limit_headers = include_rate_limit_headers

    @property
    def exempt_routes(self) -> frozenset[str]:
        return self._exempt_routes

    def is_exempt(self, path: str) -> bool:
        return path in self._exempt_routes

    def _throttle(self, key: str, key_type: str) -> RateLimitResult | None:
        if self._limiter is None:
            return None

        result = self._limiter.check_and_increment(key)
        if result.allowed:
            return result

        headers: dict[str, str] | None = None
        if self._include_rate_limit_headers:
            headers = {
                "Retry-After": str(result.retry_after_seconds or 0),
                "X-RateLimit-Limit": str(result.limit),
                "X-RateLimit-Remaining": str(result.remaining),
            }
            if result.reset_at is not None:
                headers["X-RateLimit-Reset"] = str(result.reset_at)

        raise RateLimitAppError(
            code="rate_limit_exceeded",
            message=TOO_MANY_REQUESTS_MESSAGE,
            details={
                "key_type": key_type,
                "limit": result.limit,
                "remaining": result.remaining,
                "retry_after": result.retry_after_seconds or 0,
            },
            headers=headers,
        )

    def admit(self, request: GateRequest) -> AdmissionGranted:
        """Decide whether ``request`` may reach its route handler.

        Raises:
            AuthenticationAppError: Missing or unknown credential (401).
            RateLimitAppError: Window budget exhausted (429).
            StoreUnavailableAppError: A store is unreachable and the gate
                fails closed (503).
        """
        if self.is_exempt(request.path):
            logger.debug(
                "gate.exempt_route",
                extra={
                    "route": request.path,
                    "throttled": self._throttle_exempt_by_ip,
                },
            )
            rate_limit = None
            if self._throttle_exempt_by_ip:
                rate_limit = self._throttle(ip_key(request.client_host), "ip")
            return AdmissionGranted(principal=None, rate_limit=rate_limit, exempt=True)

        principal = self._authenticator.authenticate(request.authorization)

        key = token_key(principal.token)
        rate_limit = self._throttle(key, "token")

        logger.debug(
            "gate.admitted",
            extra={
                "route": request.path,
                "key_hash": hash_limiter_key(key),
            },
        )
        return AdmissionGranted(principal=principal, rate_limit=rate_limit)


def build_admission_gate(
    config: Settings | None = None,
    *,
    identity_store: AbstractIdentityStore | None = None,
    counter_store: AbstractCounterStore | None = None,
) -> AdmissionGate:
    """Assemble an AdmissionGate from settings.

    Stores not passed explicitly are created by their factories.

    Args:
        config: Settings to use; defaults to the global settings.
        identity_store: Optional identity store override.
        counter_store: Optional counter store override.

    Returns:
        Configured AdmissionGate.
    """
    cfg = config or settings

    if identity_store is None:
        identity_store = create_identity_store(cfg)

    authenticator = TokenAuthenticator(
        identity_store,
        realm=cfg.app.auth_realm,
    )

    limiter: FixedWindowRateLimiter | None = None
    if cfg.app.rate_limit_enabled:
        if counter_store is None:
            counter_store = create_counter_store(cfg)
        limiter = FixedWindowRateLimiter(
            counter_store,
            max_requests=cfg.app.rate_limit_requests,
            window_seconds=cfg.app.rate_limit_window_seconds,
            fail_open=cfg.app.rate_limit_fail_open,
        )

    return AdmissionGate(
        authenticator,
        limiter,
        exempt_routes=parse_csv(cfg.app.auth_exempt_routes),
        throttle_exempt_by_ip=cfg.app.throttle_exempt_by_ip,
        include_rate_limit_headers=cfg.app.rate_limit_include_headers,
    )


def admit_request(request: Request) -> AdmissionGranted:
    """FastAPI dependency running the admission gate.

    Declared as a plain function so FastAPI executes it in its threadpool:
    blocking store calls stay off the event loop and a started counter update
    finishes even if the client disconnects.

    Usage:
        router = APIRouter(dependencies=[Depends(admit_request)])
    """
    gate: AdmissionGate = request.app.state.admission_gate
    return gate.admit(GateRequest.from_request(request))
