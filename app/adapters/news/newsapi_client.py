"""NewsAPI ``top-headlines`` adapter."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from app.core.errors import UpstreamServiceAppError

logger = logging.getLogger(__name__)


class NewsAPIClient:
    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://newsapi.org/v2",
        country: str = "us",
        page_size: int = 10,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.country = country
        self.page_size = page_size
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def top_headlines(self, category: str | None = None) -> list[dict[str, Any]]:
        """Return the raw ``articles`` list for the configured country.

        Raises:
            UpstreamServiceAppError: NewsAPI error status (passed through) or
                network failure (500).
        """
        params: dict[str, Any] = {
            "apiKey": self.api_key,
            "country": self.country,
            "pageSize": self.page_size,
        }
        if category:
            params["category"] = category

        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
                response = await client.get(f"{self.base_url}/top-headlines", params=params)
        except httpx.HTTPError as exc:
            logger.error("news.request_failed", extra={"error_type": type(exc).__name__})
            raise UpstreamServiceAppError(
                code="news_request_failed",
                message="Failed to fetch news",
                details={"http_status": 500, "provider": "newsapi"},
            ) from exc

        try:
            data = response.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            data = None

        if response.is_error:
            logger.warning("news.rejected", extra={"http_status": response.status_code})
            raise UpstreamServiceAppError(
                code="news_rejected",
                message=(data or {}).get("message") or "Failed to fetch news",
                details={"http_status": response.status_code, "provider": "newsapi"},
            )

        articles = (data.get("articles") or []) if data is not None else None
        if not isinstance(articles, list):
            logger.warning("news.invalid_response", extra={"http_status": response.status_code})
            raise UpstreamServiceAppError(
                code="news_invalid_response",
                message="Failed to fetch news",
                details={"http_status": 502, "provider": "newsapi"},
            )
        return articles
