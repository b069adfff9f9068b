"""Headline feed for the dashboard news widget."""

from __future__ import annotations

import time
from typing import Any, Callable

from app.adapters.news.newsapi_client import NewsAPIClient
from app.utils.simple_cache import SimpleTTLCache

REMOVED_TITLE = "[Removed]"


def format_articles(raw_articles: list[dict[str, Any]], now_ms: int) -> list[dict[str, Any]]:
    """Drop removed/untitled articles and map the rest to the widget shape."""
    kept = [a for a in raw_articles if a.get("title") and a.get("title") != REMOVED_TITLE]
    return [
        {
            "id": f"news-{now_ms}-{index}",
            "headline": article["title"],
            "description": article.get("description") or "",
            "source": (article.get("source") or {}).get("name") or "Unknown",
            "url": article.get("url"),
            "publishedAt": article.get("publishedAt"),
        }
        for index, article in enumerate(kept)
    ]


class NewsService:
    def __init__(
        self,
        client: NewsAPIClient,
        cache: SimpleTTLCache | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.client = client
        self.cache = cache
        self._clock = clock

    async def headlines(self, category: str | None = None) -> dict[str, Any]:
        cache_key = f"headlines:{category or 'all'}"
        if self.cache is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached

        raw = await self.client.top_headlines(category)
        result = {"articles": format_articles(raw, int(self._clock() * 1000))}

        if self.cache is not None:
            self.cache.set(cache_key, result)
        return result
