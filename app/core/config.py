"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file

Every third-party provider is optional. Routes backed by a provider that is
not configured answer 503 instead of failing at startup.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log destination: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
    )
    backup_count: int = Field(5, description="Number of rotated log files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to accept and echo the request correlation id",
    )

    model_config = SettingsConfigDict(env_prefix="LOG_", case_sensitive=False)


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(False, description="Enable debug mode with verbose logging")
    demo_mode: bool = Field(
        False,
        description="Bypass authentication with a demo admin user (development only)",
    )
    frontend_url: str = Field(
        "http://localhost:5173",
        description="Origin of the single-page app allowed by CORS",
    )
    cors_allow_all: bool = Field(False, description="Allow any origin (no credentials)")
    email_domain: str = Field(
        "grace-crm.com",
        description="Domain used for the default noreply sender address",
    )

    csrf_enabled: bool = Field(True, description="Enforce the CSRF double-submit check")
    csrf_cookie_secure: bool | None = Field(
        None,
        description="Force the Secure flag on the CSRF cookie (defaults to APP_ENV=production)",
    )

    rate_limit_enabled: bool = Field(True, description="Enable per-client rate limiting")
    rate_limit_window_seconds: int = Field(
        60,
        description="Rate limit window size in seconds",
        ge=1,
    )
    rate_limit_sweep_interval_seconds: int = Field(
        300,
        description="How often expired limiter entries are swept",
        ge=1,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers",
    )
    rate_limit_default_requests: int = Field(60, ge=1)
    rate_limit_payments_requests: int = Field(60, ge=1)
    rate_limit_messaging_requests: int = Field(30, ge=1)
    rate_limit_ai_requests: int = Field(20, ge=1)
    rate_limit_news_requests: int = Field(10, ge=1)
    rate_limit_public_requests: int = Field(10, ge=1)

    bulk_email_max: int = Field(100, description="Maximum emails per bulk request", ge=1)
    bulk_sms_max: int = Field(50, description="Maximum SMS per bulk request", ge=1)
    bulk_max_delay_ms: int = Field(1000, description="Upper bound on the per-send delay", ge=0)

    model_config = SettingsConfigDict(env_prefix="APP_", case_sensitive=False)


class AuthSettings(BaseSettings):
    """Bearer token verification configuration."""

    jwt_secret: str | None = Field(None, description="Shared secret for HS* tokens")
    jwt_algorithms: str = Field("HS256", description="Comma-separated accepted algorithms")
    jwks_url: str | None = Field(
        None,
        description="JWKS endpoint for RS* tokens issued by an identity provider",
    )
    audience: str | None = Field(None, description="Expected aud claim")
    issuer: str | None = Field(None, description="Expected iss claim")
    leeway_seconds: int = Field(0, description="Clock skew tolerated on exp/nbf", ge=0)

    model_config = SettingsConfigDict(env_prefix="AUTH_", case_sensitive=False)


class StripeSettings(BaseSettings):
    """Stripe payments configuration."""

    secret_key: str | None = Field(None, description="Stripe secret API key")
    webhook_secret: str | None = Field(None, description="Webhook endpoint signing secret")
    webhook_tolerance_seconds: int = Field(
        300,
        description="Maximum age of a signed webhook timestamp",
        ge=1,
    )

    model_config = SettingsConfigDict(env_prefix="STRIPE_", case_sensitive=False)


class TwilioSettings(BaseSettings):
    """Twilio SMS configuration."""

    account_sid: str | None = Field(None)
    auth_token: str | None = Field(None)
    from_number: str | None = Field(None)
    base_url: str = Field("https://api.twilio.com/2010-04-01")
    validate_webhooks: bool = Field(
        True,
        description="Verify X-Twilio-Signature on inbound callbacks when a token is set",
    )
    timeout_seconds: float = Field(15.0)

    model_config = SettingsConfigDict(env_prefix="TWILIO_", case_sensitive=False)


class ResendSettings(BaseSettings):
    """Resend email configuration."""

    api_key: str | None = Field(None)
    base_url: str = Field("https://api.resend.com")
    from_address: str | None = Field(
        None,
        description="Default sender; falls back to 'Grace CRM <noreply@APP_EMAIL_DOMAIN>'",
    )
    timeout_seconds: float = Field(15.0)

    model_config = SettingsConfigDict(env_prefix="RESEND_", case_sensitive=False)


class LLMSettings(BaseSettings):
    """LLM provider configuration.

    Validation of provider-specific requirements happens in the factory.
    """

    provider: str = Field(
        "gemini",
        description="LLM provider name (gemini, openai)",
    )
    model: str = Field(
        "gemini-2.0-flash",
        description="Model name (e.g., gemini-2.0-flash, gpt-4o-mini)",
    )
    api_key: str | None = Field(
        None,
        description="API key for the provider",
    )
    base_url: str | None = Field(
        None,
        description="Custom API endpoint (OpenAI-compatible providers only)",
    )
    timeout_seconds: float = Field(
        45.0,
        description="Request timeout in seconds",
    )

    model_config = SettingsConfigDict(env_prefix="LLM_", case_sensitive=False)


class NewsSettings(BaseSettings):
    """NewsAPI headlines configuration."""

    api_key: str | None = Field(None)
    base_url: str = Field("https://newsapi.org/v2")
    country: str = Field("us")
    page_size: int = Field(10, ge=1, le=100)
    cache_ttl_seconds: int = Field(300, description="Headline cache lifetime (0 disables)", ge=0)
    timeout_seconds: float = Field(10.0)

    model_config = SettingsConfigDict(env_prefix="NEWS_", case_sensitive=False)


class SupabaseSettings(BaseSettings):
    """Supabase data store configuration."""

    url: str | None = Field(None)
    service_key: str | None = Field(None)

    model_config = SettingsConfigDict(env_prefix="SUPABASE_", case_sensitive=False)


class GivingSettings(BaseSettings):
    """Text-to-give defaults."""

    church_name: str = Field("Grace Church")
    page_url: str = Field("https://give.example.com")
    default_fund: str = Field("general")

    model_config = SettingsConfigDict(env_prefix="GIVING_", case_sensitive=False)


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if a value has the wrong type.
    """

    app_env: str = APP_ENV
    log: LogSettings = Field(default_factory=LogSettings)
    app: AppSettings = Field(default_factory=AppSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    stripe: StripeSettings = Field(default_factory=StripeSettings)
    twilio: TwilioSettings = Field(default_factory=TwilioSettings)
    resend: ResendSettings = Field(default_factory=ResendSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    news: NewsSettings = Field(default_factory=NewsSettings)
    supabase: SupabaseSettings = Field(default_factory=SupabaseSettings)
    giving: GivingSettings = Field(default_factory=GivingSettings)

    model_config = SettingsConfigDict(case_sensitive=False)

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
