from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter

from app.adapters.llm.factory import is_llm_configured
from app.api.deps import (
    is_email_configured,
    is_news_configured,
    is_payments_configured,
    is_sms_configured,
    is_store_configured,
)
from app.core.auth import get_auth_status
from app.schemas.health import HealthResponse

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
def health_check() -> dict:
    """Health check endpoint.

    Reports which integrations have credentials, without calling them. Used
    by load balancers and by the SPA to hide features that cannot work.

    Returns:
        dict: ``status``, ``timestamp``, per-service flags and auth status.
    """

    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "services": {
            "payments": is_payments_configured(),
            "email": is_email_configured(),
            "sms": is_sms_configured(),
            "ai": is_llm_configured(),
            "news": is_news_configured(),
            "store": is_store_configured(),
        },
        "auth": get_auth_status(),
    }
