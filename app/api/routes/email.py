from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends

from app.api.deps import get_email_service
from app.core.auth import require_auth, require_role
from app.core.csrf import csrf_protect
from app.core.rate_limit import rate_limit
from app.schemas.messaging import BulkEmailRequest, BulkSendResponse, SendEmailRequest, SendEmailResponse
from app.services.messaging_service import EmailService

router = APIRouter(
    prefix="/api/email",
    tags=["Messaging"],
    dependencies=[Depends(require_auth), Depends(csrf_protect), Depends(rate_limit("messaging"))],
)

Service = Annotated[EmailService, Depends(get_email_service)]


@router.post("/send", response_model=SendEmailResponse)
async def send_email(body: SendEmailRequest, service: Service) -> dict[str, Any]:
    """Send one email through Resend."""
    return await service.send(
        to=body.to,
        subject=body.subject,
        html=body.html,
        text=body.text,
        from_address=body.from_address,
        reply_to=body.reply_to,
        cc=body.cc,
        bcc=body.bcc,
    )


@router.post(
    "/send-bulk",
    response_model=BulkSendResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(require_role("staff"))],
)
async def send_bulk_email(body: BulkEmailRequest, service: Service) -> dict[str, Any]:
    """Send up to 100 emails sequentially; per-item failures are reported, not raised."""
    return await service.send_bulk(body.emails, body.delay_ms)
