from __future__ import annotations

from app.api.routes.ai import router as ai_router
from app.api.routes.calendar import router as calendar_router
from app.api.routes.connect_card import router as connect_card_router
from app.api.routes.email import router as email_router
from app.api.routes.health import router as health_router
from app.api.routes.news import router as news_router
from app.api.routes.payments import router as payments_router
from app.api.routes.sms import router as sms_router
from app.api.routes.text_to_give import router as text_to_give_router
from app.api.routes.webhooks import router as webhooks_router

__all__ = [
    "ai_router",
    "calendar_router",
    "connect_card_router",
    "email_router",
    "health_router",
    "news_router",
    "payments_router",
    "sms_router",
    "text_to_give_router",
    "webhooks_router",
]
