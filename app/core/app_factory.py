"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers and the
admission gate) so tests can build isolated apps with their own stores.
"""

from __future__ import annotations

from fastapi import FastAPI

from app.api.routes import health_router, home_router, resources_router
from app.core.config import Settings, settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.gate import AdmissionGate, build_admission_gate
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations


def create_app(
    config: Settings | None = None,
    *,
    gate: AdmissionGate | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        config: Settings to build from; defaults to the global settings.
        gate: Pre-built admission gate (e.g. with in-memory stores in tests).

    Returns:
        Configured app with middleware, handlers, routers and docs.
    """
    cfg = config or settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log)

    app = FastAPI(
        title="Token Gate API",
        description=(
            "REST API guarded by per-token authentication "
            "(`Authorization: Token token=\"...\"`) and a fixed-window rate "
            "limit shared across workers."
        ),
        version="0.1.0",
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    app.state.admission_gate = gate or build_admission_gate(cfg)

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(home_router)
    app.include_router(resources_router, prefix="/v1")
    app.include_router(health_router)

    # OpenAPI customizations (security scheme, tags, exemptions)
    apply_openapi_customizations(app, public_paths={"/", "/health"})

    return app
