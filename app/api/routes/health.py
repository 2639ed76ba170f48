from __future__ import annotations

from fastapi import APIRouter

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness probe.

    Not gated: load balancers poll it without credentials and must not
    spend anyone's rate limit budget.
    """

    return {"status": "ok"}
