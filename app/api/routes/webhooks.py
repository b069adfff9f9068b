from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request
from fastapi.concurrency import run_in_threadpool

from app.api.deps import get_webhook_service
from app.services.webhook_service import StripeWebhookService

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    service: Annotated[StripeWebhookService, Depends(get_webhook_service)],
    stripe_signature: Annotated[str | None, Header(alias="Stripe-Signature")] = None,
) -> dict[str, bool]:
    """Receive Stripe events.

    Authenticated by the ``Stripe-Signature`` header over the raw body, so no
    bearer token or CSRF token is required. Redelivered events are
    acknowledged without being applied twice.
    """
    payload = await request.body()
    result = await run_in_threadpool(service.process, payload, stripe_signature)
    return {"received": True, "duplicate": result.duplicate}
