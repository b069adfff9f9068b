"""Tests for the NewsAPI adapter, NewsService and GET /api/news/headlines."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from app.adapters.news.newsapi_client import NewsAPIClient
from app.api.deps import get_news_service
from app.core.config import settings
from app.core.errors import UpstreamServiceAppError
from app.services.news_service import NewsService, format_articles
from app.utils.simple_cache import SimpleTTLCache

RAW_ARTICLES = [
    {
        "title": "Local food bank expands hours",
        "description": "Volunteers needed",
        "source": {"name": "City Times"},
        "url": "https://example.com/a",
        "publishedAt": "2026-03-01T12:00:00Z",
    },
    {"title": "[Removed]", "source": {"name": "x"}},
    {"title": None},
    {"title": "Storm warning", "source": {}},
]


class TestFormatArticles:
    def test_drops_removed_and_untitled(self):
        articles = format_articles(RAW_ARTICLES, now_ms=1700000000000)

        assert [a["headline"] for a in articles] == ["Local food bank expands hours", "Storm warning"]

    def test_maps_widget_fields_with_defaults(self):
        articles = format_articles(RAW_ARTICLES, now_ms=1700000000000)

        assert articles[0] == {
            "id": "news-1700000000000-0",
            "headline": "Local food bank expands hours",
            "description": "Volunteers needed",
            "source": "City Times",
            "url": "https://example.com/a",
            "publishedAt": "2026-03-01T12:00:00Z",
        }
        assert articles[1]["id"] == "news-1700000000000-1"
        assert articles[1]["description"] == ""
        assert articles[1]["source"] == "Unknown"


class TestNewsAPIClient:
    @pytest.mark.asyncio
    async def test_requests_top_headlines(self):
        captured: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["path"] = request.url.path
            captured["params"] = dict(request.url.params)
            return httpx.Response(200, json={"status": "ok", "articles": RAW_ARTICLES[:1]})

        client = NewsAPIClient("news-key", page_size=5, transport=httpx.MockTransport(handler))

        articles = await client.top_headlines("health")

        assert articles == RAW_ARTICLES[:1]
        assert captured["path"] == "/v2/top-headlines"
        assert captured["params"] == {"apiKey": "news-key", "country": "us", "pageSize": "5", "category": "health"}

    @pytest.mark.asyncio
    async def test_error_status_passes_provider_message(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(429, json={"status": "error", "message": "You have made too many requests"})
        )
        client = NewsAPIClient("news-key", transport=transport)

        with pytest.raises(UpstreamServiceAppError) as exc_info:
            await client.top_headlines()

        assert exc_info.value.details["http_status"] == 429
        assert exc_info.value.message == "You have made too many requests"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status, body",
        [(200, ["not", "an", "object"]), (200, {"status": "ok", "articles": {"title": "x"}}), (500, ["oops"])],
    )
    async def test_non_object_body_is_upstream_error(self, status, body):
        client = NewsAPIClient("news-key", transport=httpx.MockTransport(lambda request: httpx.Response(status, json=body)))

        with pytest.raises(UpstreamServiceAppError) as exc_info:
            await client.top_headlines()

        assert exc_info.value.message == "Failed to fetch news"


class TestNewsService:
    @pytest.mark.asyncio
    async def test_results_are_cached_per_category(self):
        client = AsyncMock()
        client.top_headlines.return_value = RAW_ARTICLES
        service = NewsService(client, SimpleTTLCache(ttl_seconds=300), clock=lambda: 1700000000.0)

        first = await service.headlines("health")
        second = await service.headlines("health")
        await service.headlines(None)

        assert first == second
        assert client.top_headlines.await_count == 2
        assert first["articles"][0]["id"] == "news-1700000000000-0"

    @pytest.mark.asyncio
    async def test_without_cache_always_fetches(self):
        client = AsyncMock()
        client.top_headlines.return_value = []
        service = NewsService(client)

        await service.headlines()
        await service.headlines()

        assert client.top_headlines.await_count == 2


class TestHeadlinesRoute:
    def test_returns_articles(self, app, client, token_factory):
        news_client = AsyncMock()
        news_client.top_headlines.return_value = RAW_ARTICLES
        app.dependency_overrides[get_news_service] = lambda: NewsService(news_client)

        response = client.get("/api/news/headlines", headers={"Authorization": f"Bearer {token_factory()}"})

        assert response.status_code == 200
        assert len(response.json()["articles"]) == 2

    def test_rejects_bad_category(self, app, client, token_factory):
        app.dependency_overrides[get_news_service] = lambda: NewsService(AsyncMock())

        response = client.get(
            "/api/news/headlines?category=Sports;DROP",
            headers={"Authorization": f"Bearer {token_factory()}"},
        )

        assert response.status_code == 422

    def test_requires_auth(self, client):
        assert client.get("/api/news/headlines").status_code == 401

    def test_unconfigured_news_returns_503(self, client, token_factory):
        with patch.object(settings.news, "api_key", None):
            response = client.get("/api/news/headlines", headers={"Authorization": f"Bearer {token_factory()}"})

        assert response.status_code == 503
        assert response.json()["error"]["message"] == "News service not configured"
