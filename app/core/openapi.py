"""OpenAPI metadata and customization utilities.

Provides a helper to enrich the generated OpenAPI schema with:
- Tags metadata
- Bearer JWT security scheme with per-path overrides for public endpoints
  and provider callbacks

This keeps documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

# Paths that authenticate by provider signature or not at all
PUBLIC_PATH_MARKERS = (
    "/health",
    "/webhooks/",
    "/api/calendar/",
    "/api/connect-card",
    "/api/giving/text-to-give",
)

TAGS = [
    {"name": "Payments", "description": "Stripe customers, payments, subscriptions and prices."},
    {"name": "Webhooks", "description": "Signed provider callbacks (Stripe)."},
    {"name": "Messaging", "description": "Email (Resend) and SMS (Twilio), single and bulk."},
    {"name": "AI", "description": "Text generation for message drafting."},
    {"name": "News", "description": "Headline feed for the dashboard."},
    {"name": "Calendar", "description": "Subscribable iCal feed."},
    {"name": "Connect Card", "description": "Public visitor intake form."},
    {"name": "Giving", "description": "Text-to-give SMS keywords (Twilio callback)."},
    {"name": "Health", "description": "Liveness and configuration checks."},
]


def _is_public(path: str) -> bool:
    return any(marker in path for marker in PUBLIC_PATH_MARKERS)


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add metadata and security.

    - Injects components.securitySchemes for Bearer JWT auth
    - Marks all operations as requiring it by default, then exempts public
      endpoints and provider callbacks by setting ``security: []``
    - Adds tags metadata if not present
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "BearerAuth",
            {
                "type": "http",
                "scheme": "bearer",
                "bearerFormat": "JWT",
                "description": "Session JWT issued by the identity provider.",
            },
        )

        schema.setdefault("security", [{"BearerAuth": []}])

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in TAGS:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for path, methods in schema.get("paths", {}).items():
            if _is_public(path):
                for method_obj in methods.values():
                    if isinstance(method_obj, dict):
                        method_obj["security"] = []

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
