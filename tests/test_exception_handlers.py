"""Tests for global exception handlers.

Validates that all exception types are handled consistently with
proper HTTP status codes, error format, and no information leakage.
"""

import asyncio
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient

from app.core.errors import (
    AppError,
    AuthenticationAppError,
    AuthorizationAppError,
    LLMAppError,
    ServiceNotConfiguredAppError,
    StoreAppError,
    UpstreamServiceAppError,
    ValidationAppError,
    WebhookSignatureAppError,
)
from app.core.exception_handlers import resolve_status_code, setup_exception_handlers


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    """Create test client with handlers enabled."""
    return TestClient(app_with_handlers)


class TestResolveStatusCode:
    """Mapping from domain errors to HTTP status codes."""

    @pytest.mark.parametrize(
        "error, expected",
        [
            (ValidationAppError("v", "v"), 400),
            (WebhookSignatureAppError("invalid_signature", "Invalid signature"), 400),
            (AuthenticationAppError("a", "a"), 401),
            (AuthorizationAppError("a", "a"), 403),
            (ServiceNotConfiguredAppError("s", "s"), 503),
            (UpstreamServiceAppError("u", "u"), 502),
            (LLMAppError("l", "l"), 500),
            (StoreAppError("s", "s"), 500),
        ],
    )
    def test_default_status_codes(self, error: AppError, expected: int):
        assert resolve_status_code(error) == expected

    def test_upstream_status_is_passed_through(self):
        error = UpstreamServiceAppError("stripe_error", "Your card was declined.", details={"http_status": 402})
        assert resolve_status_code(error) == 402

    def test_llm_status_override(self):
        error = LLMAppError("llm_quota_exceeded", "API quota exceeded", details={"http_status": 429})
        assert resolve_status_code(error) == 429

    def test_not_configured_status_override(self):
        error = ServiceNotConfiguredAppError(
            "webhook_not_configured", "Webhook not configured", details={"http_status": 500}
        )
        assert resolve_status_code(error) == 500


class TestAppErrorHandler:
    """Test handler for AppError and subclasses."""

    def test_validation_error_returns_400(self, client: TestClient, app_with_handlers: FastAPI):
        """Verify ValidationAppError returns HTTP 400."""
        @app_with_handlers.get("/test-validation")
        async def test_endpoint():
            raise ValidationAppError(
                code="validation_error",
                message="Amount must be at least $0.50"
            )

        response = client.get("/test-validation")

        assert response.status_code == 400
        data = response.json()
        assert data["error"]["code"] == "validation_error"
        assert data["error"]["message"] == "Amount must be at least $0.50"
        assert "request_id" in data["error"]

    def test_validation_error_includes_details(self, client: TestClient, app_with_handlers: FastAPI):
        """Verify ValidationAppError includes details when provided."""
        @app_with_handlers.get("/test-validation-details")
        async def test_endpoint():
            raise ValidationAppError(
                code="batch_too_large",
                message="Maximum 50 messages per batch",
                details={"max_value": 50, "actual_value": 51},
            )

        response = client.get("/test-validation-details")

        assert response.status_code == 400
        data = response.json()
        assert data["error"]["details"]["max_value"] == 50
        assert data["error"]["details"]["actual_value"] == 51

    def test_authentication_error_returns_401(self, client: TestClient, app_with_handlers: FastAPI):
        """Verify AuthenticationAppError returns HTTP 401."""
        @app_with_handlers.get("/test-auth")
        async def test_endpoint():
            raise AuthenticationAppError(
                code="invalid_token",
                message="Invalid or expired token"
            )

        response = client.get("/test-auth")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "invalid_token"

    def test_retry_after_detail_sets_header(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-retry")
        async def test_endpoint():
            raise UpstreamServiceAppError(
                code="sms_rejected",
                message="Too many requests",
                details={"http_status": 429, "retry_after": 30},
            )

        response = client.get("/test-retry")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "30"

    def test_llm_error_returns_500(self, client: TestClient, app_with_handlers: FastAPI):
        """Verify LLMAppError returns HTTP 500."""
        @app_with_handlers.get("/test-llm")
        async def test_endpoint():
            raise LLMAppError(
                code="llm_provider_error",
                message="AI generation failed"
            )

        response = client.get("/test-llm")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "llm_provider_error"

    def test_error_response_format_is_consistent(self, client: TestClient, app_with_handlers: FastAPI):
        """Verify error responses have consistent JSON structure."""
        @app_with_handlers.get("/test-format")
        async def test_endpoint():
            raise ValidationAppError(code="test", message="test")

        response = client.get("/test-format")
        data = response.json()

        # Required fields always present
        assert "error" in data
        assert "code" in data["error"]
        assert "message" in data["error"]
        assert "request_id" in data["error"]


class TestHTTPExceptionHandler:
    """HTTPException raised by dependencies uses the same envelope."""

    def test_http_exception_is_wrapped(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-http")
        async def test_endpoint():
            raise HTTPException(status_code=403, detail="Invalid or missing CSRF token")

        response = client.get("/test-http")

        assert response.status_code == 403
        assert response.json()["error"] == {
            "code": "http_403",
            "message": "Invalid or missing CSRF token",
            "request_id": None,
        }

    def test_unknown_route_uses_envelope(self, client: TestClient):
        response = client.get("/does-not-exist")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "http_404"


class TestGeneralExceptionHandler:
    """Test fallback handler for unexpected exceptions."""

    def test_unexpected_exception_handler_registered(self, app_with_handlers: FastAPI):
        """Verify fallback exception handler is registered."""
        assert Exception in app_with_handlers.exception_handlers

    def test_general_exception_handler_logic(self):
        """Verify general_exception_handler returns correct structure."""
        from app.core.exception_handlers import general_exception_handler

        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"
        request.state = SimpleNamespace()

        exc = RuntimeError("Unexpected error: supabase connection failed")
        response = asyncio.run(general_exception_handler(request, exc))

        response_body = response.body if isinstance(response.body, bytes) else bytes(response.body)
        data = json.loads(response_body.decode())
        assert response.status_code == 500
        assert data["error"]["code"] == "internal_server_error"
        # Original error message should NOT be in response
        assert "supabase connection" not in data["error"]["message"]
        assert "request_id" in data["error"]

    def test_general_exception_handler_never_leaks_stack_trace(self):
        """Verify stack traces are never included in response."""
        from app.core.exception_handlers import general_exception_handler

        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"
        request.state = SimpleNamespace()

        exc = ValueError("Test error with details")
        response = asyncio.run(general_exception_handler(request, exc))

        response_body = response.body if isinstance(response.body, bytes) else bytes(response.body)
        response_text = response_body.decode()
        # No traceback indicators
        assert "Traceback" not in response_text
        assert "File \"" not in response_text
        assert "ValueError" not in response_text


class TestErrorHandlerIntegration:
    """Integration tests for exception handler setup."""

    def test_setup_exception_handlers_registers_handlers(self, app_with_handlers: FastAPI):
        """Verify setup_exception_handlers properly registers handlers."""
        assert AppError in app_with_handlers.exception_handlers
        assert Exception in app_with_handlers.exception_handlers

    def test_multiple_handler_setups_does_not_fail(self):
        """Verify calling setup_exception_handlers multiple times is safe."""
        app = FastAPI()

        setup_exception_handlers(app)
        setup_exception_handlers(app)  # Second call should override safely

        assert AppError in app.exception_handlers
