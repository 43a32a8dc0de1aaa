"""OpenAPI metadata and customization utilities.

Enriches the generated OpenAPI schema with:
- Tags metadata
- An optional access token security scheme (header from RATE_LIMIT_TOKEN_HEADER)
  on rate-limited operations; health endpoints are left without one

This keeps documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

from app.core.config import settings


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and the token scheme."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "AccessToken",
            {
                "type": "apiKey",
                "in": "header",
                "name": settings.rate_limit.token_header,
                "description": (
                    "Optional access token. Registered tokens are limited by their own "
                    "scope; requests without a known token are limited by client address."
                ),
            },
        )

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        desired_tags = [
            {
                "name": "Rate Limited",
                "description": "Endpoints guarded by the per-address / per-token rate limiter.",
            },
            {
                "name": "Health",
                "description": "Liveness checks (not rate limited).",
            },
        ]
        for tag in desired_tags:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        # The token is optional, so anonymous access ({}) is listed alongside it
        for path, methods in schema.get("paths", {}).items():
            if path.endswith("/health"):
                continue
            for method_obj in methods.values():
                if isinstance(method_obj, dict):
                    method_obj.setdefault("security", [{"AccessToken": []}, {}])

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
