from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response

from app.api.deps import get_calendar_service
from app.core.errors import ValidationAppError
from app.core.rate_limit import rate_limit
from app.services.calendar_service import CalendarService

router = APIRouter(prefix="/api/calendar", tags=["Calendar"])


@router.get(
    "/ical",
    response_class=Response,
    dependencies=[Depends(rate_limit("public"))],
    responses={200: {"content": {"text/calendar": {}}}},
)
async def ical_feed(
    service: Annotated[CalendarService, Depends(get_calendar_service)],
    church_id: Annotated[str | None, Query(alias="churchId", max_length=100, pattern=r"^[A-Za-z0-9_-]+$")] = None,
    church_name: Annotated[str, Query(alias="churchName", max_length=200)] = "Grace Church",
) -> Response:
    """Subscribable .ics feed of a church's events.

    Public: calendar apps fetch it without credentials.
    """
    if not church_id:
        raise ValidationAppError(code="church_id_required", message="churchId is required")

    body = await run_in_threadpool(service.feed, church_id, church_name)
    return Response(
        content=body,
        media_type="text/calendar; charset=utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="{church_id}-calendar.ics"',
            "Cache-Control": "public, max-age=3600",
        },
    )
