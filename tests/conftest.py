"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment defaults are set before anything imports ``app.core.config``,
because settings are read once at import time.
"""

import os
import time

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"

# Set default env vars that all tests might need
os.environ.setdefault("APP_DEMO_MODE", "false")
os.environ.setdefault("APP_CSRF_ENABLED", "true")
os.environ.setdefault("APP_RATE_LIMIT_ENABLED", "true")
os.environ.setdefault("AUTH_JWT_SECRET", "test-jwt-secret-with-at-least-32-bytes!")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_123")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_secret")
os.environ.setdefault("RESEND_API_KEY", "re_test_123")
os.environ.setdefault("TWILIO_ACCOUNT_SID", "AC_test")
os.environ.setdefault("TWILIO_AUTH_TOKEN", "twilio-test-token")
os.environ.setdefault("TWILIO_FROM_NUMBER", "+15550000000")
os.environ.setdefault("LLM_PROVIDER", "gemini")
os.environ.setdefault("LLM_MODEL", "gemini-2.0-flash")
os.environ.setdefault("LLM_API_KEY", "test-key-123")
os.environ.setdefault("NEWS_API_KEY", "news-test-key")

import jwt  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.adapters.store.in_memory import InMemoryCRMStore  # noqa: E402
from app.api.deps import get_store  # noqa: E402
from app.core.app_factory import create_app  # noqa: E402
from app.core.config import settings  # noqa: E402
from app.core.csrf import CSRF_COOKIE_NAME, CSRF_HEADER_NAME, generate_csrf_token  # noqa: E402
from app.core.rate_limit import reset_rate_limiters  # noqa: E402


def make_token(sub: str = "user-1", role: str | None = "staff", expires_in: int = 3600, **claims) -> str:
    """Encode an HS256 session token signed with the test secret."""
    payload = {"sub": sub, "sid": "session-1", "exp": int(time.time()) + expires_in, **claims}
    if role is not None:
        payload["role"] = role
    return jwt.encode(payload, settings.auth.jwt_secret, algorithm="HS256")


@pytest.fixture(autouse=True)
def _fresh_rate_limiters():
    reset_rate_limiters()
    yield
    reset_rate_limiters()


@pytest.fixture
def app():
    application = create_app()
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def store(app) -> InMemoryCRMStore:
    memory_store = InMemoryCRMStore()
    app.dependency_overrides[get_store] = lambda: memory_store
    return memory_store


@pytest.fixture
def csrf_token() -> str:
    return generate_csrf_token()


@pytest.fixture
def client(app, csrf_token) -> TestClient:
    """Client carrying the CSRF cookie, as a browser would after first contact."""
    test_client = TestClient(app)
    test_client.cookies.set(CSRF_COOKIE_NAME, csrf_token)
    return test_client


@pytest.fixture
def token_factory():
    return make_token


@pytest.fixture
def auth_headers(csrf_token) -> dict[str, str]:
    """Bearer token for a staff user plus the matching CSRF header."""
    return {
        "Authorization": f"Bearer {make_token()}",
        CSRF_HEADER_NAME: csrf_token,
    }
