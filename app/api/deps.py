"""Service providers for route dependencies.

Each provider builds its service from settings on demand and raises
ServiceNotConfiguredAppError (503) when the backing provider has no
credentials, so an unconfigured integration never prevents startup. Tests
swap any of these through ``app.dependency_overrides``.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from app.adapters.llm.factory import create_llm_client
from app.adapters.messaging.resend_client import ResendClient
from app.adapters.messaging.twilio_client import TwilioSMSClient
from app.adapters.news.newsapi_client import NewsAPIClient
from app.adapters.payments.stripe_gateway import StripeGateway
from app.adapters.store.base import AbstractCRMStore
from app.adapters.store.factory import create_store
from app.core.config import settings
from app.core.errors import ServiceNotConfiguredAppError
from app.services.ai_service import AIService
from app.services.calendar_service import CalendarService
from app.services.connect_card_service import ConnectCardService
from app.services.messaging_service import EmailService, SMSService
from app.services.news_service import NewsService
from app.services.payment_service import PaymentService
from app.services.text_to_give import TextToGiveService
from app.services.webhook_service import StripeWebhookService
from app.utils.simple_cache import SimpleTTLCache


def _not_configured(service: str, hint: str) -> ServiceNotConfiguredAppError:
    return ServiceNotConfiguredAppError(
        code=f"{service.lower()}_not_configured",
        message=f"{service} service not configured",
        details={"hint": hint},
    )


def is_payments_configured() -> bool:
    return bool(settings.stripe.secret_key)


def is_email_configured() -> bool:
    return bool(settings.resend.api_key)


def is_sms_configured() -> bool:
    tw = settings.twilio
    return bool(tw.account_sid and tw.auth_token and tw.from_number)


def is_news_configured() -> bool:
    return bool(settings.news.api_key)


def is_store_configured() -> bool:
    return bool(settings.supabase.url and settings.supabase.service_key)


@lru_cache(maxsize=1)
def get_store() -> AbstractCRMStore:
    """Process-wide store, so the in-memory fallback keeps its data."""
    return create_store()


def get_optional_stripe_gateway() -> StripeGateway | None:
    if not is_payments_configured():
        return None
    return StripeGateway(settings.stripe.secret_key)


def get_stripe_gateway() -> StripeGateway:
    if not is_payments_configured():
        raise _not_configured("Payment", "Set STRIPE_SECRET_KEY")
    return StripeGateway(settings.stripe.secret_key)


def get_payment_service(gateway: Annotated[StripeGateway, Depends(get_stripe_gateway)]) -> PaymentService:
    return PaymentService(gateway)


def get_webhook_service(
    store: Annotated[AbstractCRMStore, Depends(get_store)],
    gateway: Annotated[StripeGateway | None, Depends(get_optional_stripe_gateway)],
) -> StripeWebhookService:
    return StripeWebhookService(
        store,
        webhook_secret=settings.stripe.webhook_secret,
        gateway=gateway,
        tolerance_seconds=settings.stripe.webhook_tolerance_seconds,
    )


def get_email_service() -> EmailService:
    if not is_email_configured():
        raise _not_configured("Email", "Set RESEND_API_KEY")
    client = ResendClient(
        settings.resend.api_key,
        base_url=settings.resend.base_url,
        timeout_seconds=settings.resend.timeout_seconds,
    )
    return EmailService(
        client,
        default_from=settings.resend.from_address or f"Grace CRM <noreply@{settings.app.email_domain}>",
        max_batch=settings.app.bulk_email_max,
        max_delay_ms=settings.app.bulk_max_delay_ms,
    )


def _twilio_client() -> TwilioSMSClient:
    tw = settings.twilio
    return TwilioSMSClient(
        tw.account_sid,
        tw.auth_token,
        tw.from_number,
        base_url=tw.base_url,
        timeout_seconds=tw.timeout_seconds,
    )


def get_sms_service() -> SMSService:
    if not is_sms_configured():
        raise _not_configured("SMS", "Set TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN and TWILIO_FROM_NUMBER")
    return SMSService(
        _twilio_client(),
        max_batch=settings.app.bulk_sms_max,
        max_delay_ms=settings.app.bulk_max_delay_ms,
    )


def get_sms_status_service() -> SMSService:
    """Status lookups need credentials but no sender number."""
    if not (settings.twilio.account_sid and settings.twilio.auth_token):
        raise _not_configured("SMS", "Set TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN")
    return SMSService(_twilio_client())


def get_ai_service() -> AIService:
    return AIService(create_llm_client())


@lru_cache(maxsize=1)
def get_news_cache() -> SimpleTTLCache | None:
    if settings.news.cache_ttl_seconds <= 0:
        return None
    return SimpleTTLCache(ttl_seconds=settings.news.cache_ttl_seconds, max_entries=32)


def get_news_service(cache: Annotated[SimpleTTLCache | None, Depends(get_news_cache)]) -> NewsService:
    if not is_news_configured():
        raise _not_configured("News", "Set NEWS_API_KEY")
    client = NewsAPIClient(
        settings.news.api_key,
        base_url=settings.news.base_url,
        country=settings.news.country,
        page_size=settings.news.page_size,
        timeout_seconds=settings.news.timeout_seconds,
    )
    return NewsService(client, cache)


def get_calendar_service(store: Annotated[AbstractCRMStore, Depends(get_store)]) -> CalendarService:
    return CalendarService(store)


def get_connect_card_service(store: Annotated[AbstractCRMStore, Depends(get_store)]) -> ConnectCardService:
    return ConnectCardService(store)


def get_text_to_give_service() -> TextToGiveService:
    return TextToGiveService(
        church_name=settings.giving.church_name,
        giving_page_url=settings.giving.page_url,
        default_fund=settings.giving.default_fund,
    )
