"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) to
improve testability and separation of concerns compared to a monolithic main.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import (
    ai_router,
    calendar_router,
    connect_card_router,
    email_router,
    health_router,
    news_router,
    payments_router,
    sms_router,
    text_to_give_router,
    webhooks_router,
)
from app.core.config import settings
from app.core.csrf import CSRF_HEADER_NAME, csrf_cookie_middleware
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations

logger = logging.getLogger(__name__)


def _add_cors(app: FastAPI) -> None:
    if settings.app.cors_allow_all:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=False,
            allow_methods=["*"],
            allow_headers=["*"],
        )
        return

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.app.frontend_url],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", CSRF_HEADER_NAME, settings.log.request_id_header],
        expose_headers=[
            settings.log.request_id_header,
            "Retry-After",
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
        ],
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Grace CRM API",
        description=(
            "Server side of the Grace church CRM: Stripe giving (payments and "
            "webhooks), Resend email, Twilio SMS and text-to-give, Gemini text "
            "generation, news headlines, iCal feeds and visitor connect cards. "
            "Requires a Bearer token (or demo mode), a CSRF token on "
            "state-changing browser requests, and applies per-client rate limits."
        ),
        version="0.1.0",
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    # Middleware (last added runs first: CORS, then request id, then CSRF cookie)
    app.middleware("http")(csrf_cookie_middleware)
    app.middleware("http")(request_id_middleware)
    _add_cors(app)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(health_router)
    app.include_router(payments_router)
    app.include_router(webhooks_router)
    app.include_router(email_router)
    app.include_router(sms_router)
    app.include_router(ai_router)
    app.include_router(news_router)
    app.include_router(calendar_router)
    app.include_router(connect_card_router)
    app.include_router(text_to_give_router)

    # OpenAPI customizations (security scheme, tags, exemptions)
    apply_openapi_customizations(app)

    if settings.app.demo_mode:
        logger.warning("auth.demo_mode_enabled", extra={"app_env": settings.app_env})

    return app
