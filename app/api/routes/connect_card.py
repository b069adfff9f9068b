from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends

from app.api.deps import get_connect_card_service
from app.core.rate_limit import rate_limit
from app.schemas.connect_card import ConnectCardRequest, ConnectCardResponse
from app.services.connect_card_service import ConnectCardService

router = APIRouter(prefix="/api", tags=["Connect Card"])


@router.post(
    "/connect-card",
    response_model=ConnectCardResponse,
    dependencies=[Depends(rate_limit("public"))],
)
def submit_connect_card(
    body: ConnectCardRequest,
    service: Annotated[ConnectCardService, Depends(get_connect_card_service)],
) -> dict[str, Any]:
    """Public visitor form; creates the person, prayer request and follow-up task."""
    return service.submit(
        church_id=body.church_id,
        first_name=body.first_name,
        last_name=body.last_name,
        email=body.email,
        phone=body.phone,
        how_did_you_hear=body.how_did_you_hear,
        prayer_request=body.prayer_request,
        interested_in=body.interested_in,
    )
