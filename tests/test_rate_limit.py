"""Tests for the rate limit dependency and client identification."""

from __future__ import annotations

from unittest.mock import Mock, patch

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.rate_limit import get_client_key, get_rate_limiter, rate_limit


@pytest.fixture
def limited_client() -> TestClient:
    app = FastAPI()
    setup_exception_handlers(app)

    @app.get("/limited", dependencies=[Depends(rate_limit("ai"))])
    async def limited():
        return {"ok": True}

    @app.get("/other", dependencies=[Depends(rate_limit("news"))])
    async def other():
        return {"ok": True}

    return TestClient(app)


def _request(headers: dict[str, str] | None = None, host: str | None = "10.0.0.1"):
    request = Mock()
    request.headers = headers or {}
    request.client = Mock(host=host) if host else None
    return request


class TestClientKey:
    """Client identification from proxy headers and socket address."""

    def test_uses_first_forwarded_hop(self):
        request = _request({"x-forwarded-for": "203.0.113.7, 10.0.0.2"})
        assert get_client_key(request) == "203.0.113.7"

    def test_falls_back_to_peer_address(self):
        assert get_client_key(_request()) == "10.0.0.1"

    def test_blank_forwarded_header_is_ignored(self):
        assert get_client_key(_request({"x-forwarded-for": " , 10.0.0.2"})) == "10.0.0.1"

    def test_unknown_when_no_client(self):
        assert get_client_key(_request(host=None)) == "unknown"


class TestRateLimitDependency:
    """Budget enforcement through a FastAPI dependency."""

    def test_allows_within_budget_and_sets_headers(self, limited_client: TestClient):
        with patch.object(settings.app, "rate_limit_ai_requests", 3):
            response = limited_client.get("/limited")

        assert response.status_code == 200
        assert response.headers["X-RateLimit-Limit"] == "3"
        assert response.headers["X-RateLimit-Remaining"] == "2"

    def test_returns_429_with_retry_after_when_exhausted(self, limited_client: TestClient):
        with patch.object(settings.app, "rate_limit_ai_requests", 2):
            assert limited_client.get("/limited").status_code == 200
            assert limited_client.get("/limited").status_code == 200
            blocked = limited_client.get("/limited")

        assert blocked.status_code == 429
        assert int(blocked.headers["Retry-After"]) > 0
        assert blocked.headers["X-RateLimit-Remaining"] == "0"
        body = blocked.json()
        assert body["error"]["code"] == "http_429"
        assert body["error"]["message"] == "Too many requests. Please try again later."
        assert body["error"]["details"]["retry_after"] > 0

    def test_scopes_have_separate_budgets(self, limited_client: TestClient):
        with patch.object(settings.app, "rate_limit_ai_requests", 1):
            assert limited_client.get("/limited").status_code == 200
            assert limited_client.get("/limited").status_code == 429
            assert limited_client.get("/other").status_code == 200

    def test_forwarded_clients_are_counted_separately(self, limited_client: TestClient):
        with patch.object(settings.app, "rate_limit_ai_requests", 1):
            first = limited_client.get("/limited", headers={"X-Forwarded-For": "198.51.100.1"})
            second = limited_client.get("/limited", headers={"X-Forwarded-For": "198.51.100.2"})

        assert first.status_code == 200
        assert second.status_code == 200

    def test_disabled_limiter_never_blocks(self, limited_client: TestClient):
        with patch.object(settings.app, "rate_limit_enabled", False), patch.object(
            settings.app, "rate_limit_ai_requests", 1
        ):
            for _ in range(3):
                response = limited_client.get("/limited")
                assert response.status_code == 200
                assert "X-RateLimit-Limit" not in response.headers

    def test_headers_can_be_disabled(self, limited_client: TestClient):
        with patch.object(settings.app, "rate_limit_include_headers", False):
            response = limited_client.get("/limited")

        assert response.status_code == 200
        assert "X-RateLimit-Limit" not in response.headers

    def test_unknown_scope_is_rejected(self):
        with pytest.raises(ValueError):
            rate_limit("uploads")


class TestLimiterCache:
    """Process-wide limiter instances per scope."""

    def test_same_instance_for_same_config(self):
        assert get_rate_limiter("payments") is get_rate_limiter("payments")

    def test_rebuilt_when_config_changes(self):
        before = get_rate_limiter("payments")
        with patch.object(settings.app, "rate_limit_payments_requests", 7):
            after = get_rate_limiter("payments")

        assert after is not before
        assert after.limit == 7
