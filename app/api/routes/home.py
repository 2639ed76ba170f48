from __future__ import annotations

from fastapi import APIRouter, Depends

from app.core.gate import admit_request

router = APIRouter(tags=["Public"], dependencies=[Depends(admit_request)])

WELCOME_MESSAGE = "Welcome to ML API. Please contact admin to use our system."


@router.get("/")
def index_public() -> dict:
    """Public landing endpoint.

    Listed in ``APP_AUTH_EXEMPT_ROUTES`` by default, so it is reachable
    without a token while still passing through the admission gate.
    """

    return {"message": WELCOME_MESSAGE}
