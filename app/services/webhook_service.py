"""Stripe webhook verification and dispatch.

Events are verified with the ``stripe`` library and then handled as plain
JSON, so the handlers do not depend on the SDK's object model. Each handled
type maps onto an idempotent upsert:

- ``payment_intent.succeeded`` → ``giving`` row keyed by the payment intent id
- ``invoice.paid`` (subscription invoices) → recurring ``giving`` row keyed by
  the payment intent that paid the invoice, so it and the matching
  ``payment_intent.succeeded`` record one gift
- ``customer.subscription.*`` → ``recurring_giving`` row keyed by subscription id

An event id is recorded as processed only after its handler succeeds, so a
failed write surfaces as a 5xx and Stripe redelivers the event.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Callable

import stripe

from app.adapters.payments.stripe_gateway import StripeGateway
from app.adapters.store.base import AbstractCRMStore, Row
from app.core.errors import ServiceNotConfiguredAppError, WebhookSignatureAppError

logger = logging.getLogger(__name__)

DEFAULT_FUND = "tithe"
SUBSCRIPTION_EVENTS = (
    "customer.subscription.created",
    "customer.subscription.updated",
    "customer.subscription.deleted",
)


@dataclass(frozen=True)
class WebhookResult:
    """Outcome of dispatching one webhook event."""

    event_id: str
    event_type: str
    handled: bool
    duplicate: bool = False


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


def _ref_id(value: Any) -> str | None:
    """Return the id of a Stripe reference that may or may not be expanded."""
    if isinstance(value, dict):
        return value.get("id")
    return value or None


def _metadata(obj: dict[str, Any]) -> dict[str, Any]:
    return obj.get("metadata") or {}


def _first_item(subscription: dict[str, Any]) -> dict[str, Any]:
    items = (subscription.get("items") or {}).get("data") or []
    return items[0] if items else {}


def _timestamp_to_date(value: Any) -> str | None:
    if not value:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc).date().isoformat()


def subscription_status(stripe_status: str | None) -> str:
    """Collapse Stripe subscription statuses onto the CRM's three states."""
    if stripe_status == "active":
        return "active"
    if stripe_status == "canceled":
        return "cancelled"
    return "paused"


def invoice_subscription_id(invoice: dict[str, Any]) -> str | None:
    """Subscription id of an invoice, across Stripe API versions."""
    direct = _ref_id(invoice.get("subscription"))
    if direct:
        return direct
    details = (invoice.get("parent") or {}).get("subscription_details") or {}
    return _ref_id(details.get("subscription"))


def invoice_payment_intent_id(invoice: dict[str, Any]) -> str | None:
    """Payment intent that paid an invoice, if the payload carries it.

    Older API versions put it on ``payment_intent``; newer ones list it under
    ``payments.data[].payment.payment_intent``.
    """
    direct = _ref_id(invoice.get("payment_intent"))
    if direct:
        return direct
    for invoice_payment in (invoice.get("payments") or {}).get("data") or []:
        payment_intent = _ref_id((invoice_payment.get("payment") or {}).get("payment_intent"))
        if payment_intent:
            return payment_intent
    return None


def build_giving_row(payment_intent: dict[str, Any], today: date) -> Row:
    md = _metadata(payment_intent)
    return {
        "church_id": md.get("church_id"),
        "person_id": md.get("person_id") or None,
        "amount": payment_intent.get("amount", 0) / 100,
        "fund": md.get("fund") or DEFAULT_FUND,
        "date": today.isoformat(),
        "method": "online",
        "is_recurring": md.get("is_recurring") == "true",
        "stripe_payment_id": payment_intent["id"],
        "note": payment_intent.get("description") or None,
    }


def build_invoice_giving_row(
    invoice: dict[str, Any],
    subscription: dict[str, Any],
    today: date,
    payment_intent_id: str | None = None,
) -> Row:
    """Giving row for a paid subscription invoice.

    Keyed by the payment intent when one is known, so the matching
    ``payment_intent.succeeded`` event updates the same row.
    """
    md = _metadata(subscription)
    return {
        "church_id": md.get("church_id"),
        "person_id": md.get("person_id") or None,
        "amount": invoice.get("amount_paid", 0) / 100,
        "fund": md.get("fund") or DEFAULT_FUND,
        "date": today.isoformat(),
        "method": "online",
        "is_recurring": True,
        "stripe_payment_id": payment_intent_id or invoice_payment_intent_id(invoice) or invoice["id"],
        "note": "Recurring giving",
    }


def build_recurring_row(subscription: dict[str, Any]) -> Row:
    md = _metadata(subscription)
    item = _first_item(subscription)
    price = item.get("price") or {}
    unit_amount = price.get("unit_amount")
    period_end = subscription.get("current_period_end") or item.get("current_period_end")
    return {
        "stripe_subscription_id": subscription["id"],
        "church_id": md.get("church_id"),
        "person_id": md.get("person_id") or None,
        "amount": unit_amount / 100 if unit_amount else 0,
        "frequency": (price.get("recurring") or {}).get("interval") or "month",
        "fund": md.get("fund") or DEFAULT_FUND,
        "next_date": _timestamp_to_date(period_end),
        "status": subscription_status(subscription.get("status")),
    }


class StripeWebhookService:
    """Verifies Stripe webhook payloads and applies them to the CRM store."""

    def __init__(
        self,
        store: AbstractCRMStore,
        *,
        webhook_secret: str | None,
        gateway: StripeGateway | None = None,
        tolerance_seconds: int = 300,
        today: Callable[[], date] = _utc_today,
    ) -> None:
        self.store = store
        self.webhook_secret = webhook_secret
        self.gateway = gateway
        self.tolerance_seconds = tolerance_seconds
        self._today = today
        self._handlers: dict[str, Callable[[dict[str, Any]], None]] = {
            "payment_intent.succeeded": self._on_payment_intent_succeeded,
            "invoice.paid": self._on_invoice_paid,
            **{event_type: self._on_subscription_changed for event_type in SUBSCRIPTION_EVENTS},
        }

    def verify_event(self, payload: bytes, signature: str | None) -> dict[str, Any]:
        """Check the ``Stripe-Signature`` header and decode the event.

        Raises:
            ServiceNotConfiguredAppError: No webhook secret (rendered as 500).
            WebhookSignatureAppError: Bad signature, stale timestamp or payload.
        """
        if not self.webhook_secret:
            logger.error("webhook.not_configured")
            raise ServiceNotConfiguredAppError(
                code="webhook_not_configured",
                message="Webhook not configured",
                details={"http_status": 500},
            )

        if not signature:
            logger.warning("webhook.invalid_signature", extra={"reason": "missing_header"})
            raise WebhookSignatureAppError(code="invalid_signature", message="Invalid signature")

        try:
            text = payload.decode("utf-8")
            stripe.WebhookSignature.verify_header(
                text, signature, self.webhook_secret, self.tolerance_seconds
            )
            event = json.loads(text)
        except (stripe.SignatureVerificationError, ValueError) as exc:
            logger.warning(
                "webhook.invalid_signature",
                extra={"reason": type(exc).__name__},
            )
            raise WebhookSignatureAppError(code="invalid_signature", message="Invalid signature") from exc

        if not isinstance(event, dict) or not event.get("id") or not event.get("type"):
            logger.warning("webhook.invalid_signature", extra={"reason": "malformed_event"})
            raise WebhookSignatureAppError(code="invalid_signature", message="Invalid signature")

        return event

    def dispatch(self, event: dict[str, Any]) -> WebhookResult:
        """Apply a verified event to the store, skipping already processed ids."""
        event_id = str(event["id"])
        event_type = str(event["type"])
        obj = (event.get("data") or {}).get("object") or {}
        object_id = obj.get("id") if isinstance(obj, dict) else None

        logger.info(
            "webhook.received",
            extra={"event_id": event_id, "event_type": event_type, "object_id": object_id},
        )

        if self.store.is_event_processed(event_id):
            logger.info("webhook.duplicate", extra={"event_id": event_id, "event_type": event_type})
            return WebhookResult(event_id=event_id, event_type=event_type, handled=False, duplicate=True)

        handler = self._handlers.get(event_type)
        if handler is None:
            logger.info("webhook.unhandled_event", extra={"event_id": event_id, "event_type": event_type})
        else:
            handler(obj)

        self.store.mark_event_processed(event_id, event_type, object_id=object_id)
        logger.info(
            "webhook.processed",
            extra={"event_id": event_id, "event_type": event_type, "handled": handler is not None},
        )
        return WebhookResult(event_id=event_id, event_type=event_type, handled=handler is not None)

    def process(self, payload: bytes, signature: str | None) -> WebhookResult:
        return self.dispatch(self.verify_event(payload, signature))

    def _on_payment_intent_succeeded(self, payment_intent: dict[str, Any]) -> None:
        self.store.upsert_giving(build_giving_row(payment_intent, self._today()))

    def _on_invoice_paid(self, invoice: dict[str, Any]) -> None:
        subscription_id = invoice_subscription_id(invoice)
        if not subscription_id:
            logger.info("webhook.invoice_without_subscription", extra={"object_id": invoice.get("id")})
            return

        if self.gateway is None:
            raise ServiceNotConfiguredAppError(
                code="payments_not_configured",
                message="Payment service not configured",
            )

        payment_intent_id = invoice_payment_intent_id(invoice)
        if payment_intent_id is None:
            payment_intent_id = self.gateway.find_invoice_payment_intent(invoice["id"])
        subscription = self.gateway.retrieve_subscription(subscription_id)
        self.store.upsert_giving(
            build_invoice_giving_row(invoice, subscription, self._today(), payment_intent_id)
        )

    def _on_subscription_changed(self, subscription: dict[str, Any]) -> None:
        self.store.upsert_recurring_giving(build_recurring_row(subscription))
