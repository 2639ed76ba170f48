"""OpenAPI customization.

Adds the token security scheme (``Authorization: Token token="..."``) to the
generated schema, requires it globally and exempts public paths, mirroring
what the admission gate enforces at runtime.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable

from fastapi import FastAPI

SECURITY_SCHEME_NAME = "TokenAuth"

_TAGS = [
    {
        "name": "Resources",
        "description": "Token-protected resource listings.",
    },
    {
        "name": "Public",
        "description": "Endpoints reachable without a token.",
    },
    {
        "name": "Health",
        "description": "Liveness checks, outside the admission gate.",
    },
]


def apply_openapi_customizations(app: FastAPI, *, public_paths: Iterable[str] = ()) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and token security.

    Args:
        app: Application whose schema is patched.
        public_paths: Paths documented with ``security: []``.
    """

    original_openapi = app.openapi
    public = set(public_paths)

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            SECURITY_SCHEME_NAME,
            {
                "type": "apiKey",
                "in": "header",
                "name": "Authorization",
                "description": 'Send `Token token="<your api key>"`.',
            },
        )
        schema.setdefault("security", [{SECURITY_SCHEME_NAME: []}])

        tags = schema.setdefault("tags", [])
        existing = {t.get("name") for t in tags}
        tags.extend(tag for tag in _TAGS if tag["name"] not in existing)

        for path, methods in schema.get("paths", {}).items():
            if path not in public:
                continue
            for method_obj in methods.values():
                if isinstance(method_obj, dict):
                    method_obj["security"] = []

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
