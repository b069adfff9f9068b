from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import Response
from twilio.request_validator import RequestValidator

from app.api.deps import get_text_to_give_service
from app.core.config import settings
from app.core.errors import AuthorizationAppError, ValidationAppError
from app.core.logging import hash_identifier
from app.services.text_to_give import ERROR_REPLY, TextToGiveService, twiml_reply

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/giving", tags=["Giving"])

TWIML_MEDIA_TYPE = "text/xml"


def verify_twilio_signature(url: str, params: dict[str, str], signature: str | None) -> None:
    """Reject callbacks not signed with the account's auth token.

    Skipped when no auth token is configured or validation is disabled.
    """
    if not (settings.twilio.auth_token and settings.twilio.validate_webhooks):
        return
    validator = RequestValidator(settings.twilio.auth_token)
    if not signature or not validator.validate(url, params, signature):
        logger.warning("text_to_give.invalid_signature")
        raise AuthorizationAppError(code="invalid_signature", message="Invalid Twilio signature")


@router.post("/text-to-give", response_class=Response)
async def text_to_give(
    request: Request,
    service: Annotated[TextToGiveService, Depends(get_text_to_give_service)],
    x_twilio_signature: Annotated[str | None, Header(alias="X-Twilio-Signature")] = None,
) -> Response:
    """Twilio inbound-SMS webhook for GIVE / FUNDS / HELP keywords.

    Replies are TwiML. Processing errors still answer 200 with an apology so
    the texter gets feedback instead of Twilio's generic failure message.
    """
    form = await request.form()
    params = {key: str(value) for key, value in form.items()}
    verify_twilio_signature(str(request.url), params, x_twilio_signature)

    from_phone, body = params.get("From"), params.get("Body")
    if not from_phone or not body:
        raise ValidationAppError(code="missing_fields", message="Missing required fields")

    try:
        reply = service.handle(body, from_phone)
    except Exception:
        logger.exception("text_to_give.failed", extra={"from_hash": hash_identifier(from_phone)})
        reply = twiml_reply(ERROR_REPLY)
    else:
        logger.info(
            "text_to_give.replied",
            extra={"from_hash": hash_identifier(from_phone), "command": (body.split() or [""])[0].upper()},
        )

    return Response(content=reply, media_type=TWIML_MEDIA_TYPE)
