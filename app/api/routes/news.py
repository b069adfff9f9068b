from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_news_service
from app.core.auth import require_auth
from app.core.rate_limit import rate_limit
from app.schemas.news import HeadlinesResponse
from app.services.news_service import NewsService

router = APIRouter(
    prefix="/api/news",
    tags=["News"],
    dependencies=[Depends(require_auth), Depends(rate_limit("news"))],
)


@router.get("/headlines", response_model=HeadlinesResponse)
async def headlines(
    service: Annotated[NewsService, Depends(get_news_service)],
    category: Annotated[str | None, Query(max_length=32, pattern=r"^[a-z]+$")] = None,
) -> dict[str, Any]:
    """Top US headlines, optionally filtered by NewsAPI category."""
    return await service.headlines(category)
