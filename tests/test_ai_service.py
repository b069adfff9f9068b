"""Tests for AIService and the /api/ai routes."""

from unittest.mock import patch

import pytest

from app.adapters.llm.base import AbstractLLMClient
from app.api.deps import get_ai_service
from app.core.config import settings
from app.core.errors import LLMAppError, ValidationAppError
from app.services.ai_service import (
    DEFAULT_MAX_TOKENS,
    MAX_OUTPUT_TOKENS,
    AIService,
    build_prompt,
    resolve_max_tokens,
)


class FakeLLM(AbstractLLMClient):
    """Records prompts and returns a canned reply or raises."""

    provider = "fake"
    model = "fake-model"

    def __init__(self, reply: str = "Generated draft", error: LLMAppError | None = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: list[dict] = []

    async def generate_text(self, prompt: str, *, max_tokens: int, temperature: float) -> str:
        self.calls.append({"prompt": prompt, "max_tokens": max_tokens, "temperature": temperature})
        if self.error:
            raise self.error
        return self.reply


class TestHelpers:
    def test_build_prompt_with_context(self):
        assert build_prompt("Write a note", "Member since 2019") == "Context: Member since 2019\n\nRequest: Write a note"

    def test_build_prompt_ignores_non_string_context(self):
        assert build_prompt("Write a note", {"a": 1}) == "Write a note"

    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, DEFAULT_MAX_TOKENS),
            ("500", DEFAULT_MAX_TOKENS),
            (True, DEFAULT_MAX_TOKENS),
            (-5, DEFAULT_MAX_TOKENS),
            (500, 500),
            (99999, MAX_OUTPUT_TOKENS),
        ],
    )
    def test_resolve_max_tokens(self, value, expected):
        assert resolve_max_tokens(value) == expected


class TestAIService:
    @pytest.mark.asyncio
    async def test_generate_returns_text_and_model(self):
        llm = FakeLLM()

        result = await AIService(llm).generate("  Draft a welcome email  ", "New family", 300)

        assert result == {"success": True, "text": "Generated draft", "model": "fake-model"}
        assert llm.calls[0]["prompt"] == "Context: New family\n\nRequest: Draft a welcome email"
        assert llm.calls[0]["max_tokens"] == 300
        assert llm.calls[0]["temperature"] == 0.7

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "prompt, message",
        [
            (None, "Prompt is required and must be a string"),
            (42, "Prompt is required and must be a string"),
            ("   x   ", "Prompt is too short"),
        ],
    )
    async def test_prompt_validation(self, prompt, message):
        llm = FakeLLM()

        with pytest.raises(ValidationAppError) as exc_info:
            await AIService(llm).generate(prompt)

        assert exc_info.value.message == message
        assert llm.calls == []

    @pytest.mark.asyncio
    async def test_empty_output_is_an_error(self):
        with pytest.raises(LLMAppError) as exc_info:
            await AIService(FakeLLM(reply="")).generate("Draft something")

        assert exc_info.value.message == "No response generated"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "provider_message, status, message",
        [
            ("Gemini API error: API key not valid", 401, "Invalid API key configuration"),
            ("Gemini API error: 429 RESOURCE_EXHAUSTED Quota exceeded", 429, "API quota exceeded"),
            ("Gemini API error: 500 INTERNAL", None, "AI generation failed"),
        ],
    )
    async def test_provider_errors_are_classified(self, provider_message, status, message):
        llm = FakeLLM(error=LLMAppError("llm_provider_error", provider_message))

        with pytest.raises(LLMAppError) as exc_info:
            await AIService(llm).generate("Draft something")

        assert exc_info.value.message == message
        assert (exc_info.value.details or {}).get("http_status") == status


class TestAIRoutes:
    def test_generate(self, app, client, auth_headers):
        app.dependency_overrides[get_ai_service] = lambda: AIService(FakeLLM())

        response = client.post("/api/ai/generate", json={"prompt": "Draft a thank-you", "maxTokens": 200}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"success": True, "text": "Generated draft", "model": "fake-model"}

    def test_quota_error_maps_to_429(self, app, client, auth_headers):
        llm = FakeLLM(error=LLMAppError("llm_provider_error", "quota exceeded for project"))
        app.dependency_overrides[get_ai_service] = lambda: AIService(llm)

        response = client.post("/api/ai/generate", json={"prompt": "Draft a thank-you"}, headers=auth_headers)

        assert response.status_code == 429
        assert response.json()["error"]["message"] == "API quota exceeded"

    def test_missing_prompt_is_400(self, app, client, auth_headers):
        app.dependency_overrides[get_ai_service] = lambda: AIService(FakeLLM())

        response = client.post("/api/ai/generate", json={}, headers=auth_headers)

        assert response.status_code == 400

    def test_unconfigured_provider_is_503(self, client, auth_headers):
        with patch.object(settings.llm, "api_key", None):
            response = client.post("/api/ai/generate", json={"prompt": "Draft"}, headers=auth_headers)

        assert response.status_code == 503
        assert response.json()["error"]["message"] == "AI service not configured"

    def test_ai_scope_is_rate_limited(self, app, client, auth_headers):
        app.dependency_overrides[get_ai_service] = lambda: AIService(FakeLLM())

        with patch.object(settings.app, "rate_limit_ai_requests", 1):
            first = client.post("/api/ai/generate", json={"prompt": "Draft"}, headers=auth_headers)
            second = client.post("/api/ai/generate", json={"prompt": "Draft"}, headers=auth_headers)

        assert first.status_code == 200
        assert second.status_code == 429

    def test_health_is_public(self, client):
        response = client.get("/api/ai/health")

        assert response.status_code == 200
        assert response.json() == {"status": "configured", "model": settings.llm.model}

    def test_health_reports_missing_key(self, client):
        with patch.object(settings.llm, "api_key", None):
            response = client.get("/api/ai/health")

        assert response.json()["status"] == "not_configured"
