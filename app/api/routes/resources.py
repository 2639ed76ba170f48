"""Token-protected resource listings.

Persistence lives outside this service, so the listings are empty stubs;
what matters here is that every route sits behind the admission gate.

Only the index listings are exposed. There are no show, create, update or
destroy routes, so a path such as ``/v1/users/1`` matches nothing and gets
404 before the gate runs, with or without a token.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.core.gate import admit_request

router = APIRouter(tags=["Resources"], dependencies=[Depends(admit_request)])


@router.get("/users")
def list_users() -> list[dict]:
    return []


@router.get("/products")
def list_products() -> list[dict]:
    return []


@router.get("/my_users/users")
def list_my_users() -> list[dict]:
    return []


@router.get("/my_users/pets")
def list_my_pets() -> list[dict]:
    return []
