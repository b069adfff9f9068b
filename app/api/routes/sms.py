from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends

from app.api.deps import get_sms_service, get_sms_status_service
from app.core.auth import require_auth, require_role
from app.core.csrf import csrf_protect
from app.core.rate_limit import rate_limit
from app.schemas.messaging import BulkSendResponse, BulkSMSRequest, SendSMSRequest, SMSStatusResponse
from app.services.messaging_service import SMSService

router = APIRouter(
    prefix="/api/sms",
    tags=["Messaging"],
    dependencies=[Depends(require_auth), Depends(csrf_protect), Depends(rate_limit("messaging"))],
)


@router.post("/send", response_model=SMSStatusResponse)
async def send_sms(
    body: SendSMSRequest,
    service: Annotated[SMSService, Depends(get_sms_service)],
) -> dict[str, Any]:
    """Send one SMS through Twilio. Numbers are normalised to E.164."""
    return await service.send(to=body.to, message=body.message)


@router.post(
    "/send-bulk",
    response_model=BulkSendResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(require_role("staff"))],
)
async def send_bulk_sms(
    body: BulkSMSRequest,
    service: Annotated[SMSService, Depends(get_sms_service)],
) -> dict[str, Any]:
    return await service.send_bulk(body.messages, body.delay_ms)


@router.get("/status/{message_id}", response_model=SMSStatusResponse)
async def sms_status(
    message_id: str,
    service: Annotated[SMSService, Depends(get_sms_status_service)],
) -> dict[str, Any]:
    return await service.get_status(message_id)
