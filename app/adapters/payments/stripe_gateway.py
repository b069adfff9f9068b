"""Stripe adapter.

Thin wrapper over the ``stripe`` resource classes. Every call passes the API
key explicitly instead of mutating ``stripe.api_key``, and every result is
converted to plain dicts so services never depend on StripeObject behaviour.
"""

from __future__ import annotations

import logging
from typing import Any

import stripe

from app.core.errors import UpstreamServiceAppError

logger = logging.getLogger(__name__)

RECURRING_PRODUCT_NAME = "Recurring Giving"
RECURRING_PRODUCT_DESCRIPTION = "Recurring donation to the church"


def _plain(obj: Any) -> dict[str, Any]:
    if obj is None:
        return {}
    if isinstance(obj, dict) and not isinstance(obj, stripe.StripeObject):
        return obj
    return obj.to_dict()


def _drop_none(params: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in params.items() if v is not None}


class StripeGateway:
    """Synchronous Stripe client used by the payments routes and webhooks."""

    def __init__(self, api_key: str) -> None:
        self.api_key = api_key

    def _call(self, operation: str, fn, *args: Any, **params: Any) -> Any:
        try:
            return fn(*args, api_key=self.api_key, **params)
        except stripe.StripeError as exc:
            status = getattr(exc, "http_status", None) or 502
            message = getattr(exc, "user_message", None) or str(exc) or "Payment provider error"
            logger.warning(
                "stripe.request_failed",
                extra={
                    "operation": operation,
                    "http_status": status,
                    "error_type": type(exc).__name__,
                    "stripe_code": getattr(exc, "code", None),
                },
            )
            raise UpstreamServiceAppError(
                code="stripe_error",
                message=message,
                details={"http_status": int(status), "provider": "stripe"},
            ) from exc

    def _list(self, operation: str, fn, **params: Any) -> list[dict[str, Any]]:
        result = self._call(operation, fn, **params)
        return [_plain(item) for item in result.data]

    # Customers

    def find_customer_by_email(self, email: str) -> dict[str, Any] | None:
        customers = self._list("customers.list", stripe.Customer.list, email=email, limit=1)
        return customers[0] if customers else None

    def create_customer(
        self,
        email: str,
        *,
        name: str | None = None,
        phone: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        params = _drop_none({"email": email, "name": name, "phone": phone, "metadata": metadata})
        return _plain(self._call("customers.create", stripe.Customer.create, **params))

    def update_customer(self, customer_id: str, **fields: Any) -> dict[str, Any]:
        return _plain(self._call("customers.update", stripe.Customer.modify, customer_id, **_drop_none(fields)))

    def list_payment_methods(self, customer_id: str, method_type: str) -> list[dict[str, Any]]:
        return self._list(
            "payment_methods.list",
            stripe.PaymentMethod.list,
            customer=customer_id,
            type=method_type,
        )

    # Payment intents

    def list_payment_intents(
        self,
        customer_id: str,
        *,
        limit: int = 50,
        created_gte: int | None = None,
        created_lte: int | None = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"customer": customer_id, "limit": limit}
        if created_gte is not None or created_lte is not None:
            params["created"] = _drop_none({"gte": created_gte, "lte": created_lte})
        return self._list("payment_intents.list", stripe.PaymentIntent.list, **params)

    def create_payment_intent(
        self,
        amount: int,
        *,
        currency: str = "usd",
        description: str | None = None,
        metadata: dict[str, str] | None = None,
        customer: str | None = None,
        payment_method: str | None = None,
    ) -> dict[str, Any]:
        params = _drop_none(
            {
                "amount": amount,
                "currency": currency,
                "description": description,
                "metadata": metadata,
                "customer": customer,
                "payment_method": payment_method,
            }
        )
        params["automatic_payment_methods"] = {"enabled": True}
        return _plain(self._call("payment_intents.create", stripe.PaymentIntent.create, **params))

    def confirm_payment_intent(self, payment_intent_id: str, *, payment_method: str | None = None) -> dict[str, Any]:
        params = _drop_none({"payment_method": payment_method})
        return _plain(
            self._call("payment_intents.confirm", stripe.PaymentIntent.confirm, payment_intent_id, **params)
        )

    # Subscriptions

    def list_subscriptions(self, customer_id: str) -> list[dict[str, Any]]:
        return self._list("subscriptions.list", stripe.Subscription.list, customer=customer_id, status="all")

    def retrieve_subscription(self, subscription_id: str) -> dict[str, Any]:
        return _plain(self._call("subscriptions.retrieve", stripe.Subscription.retrieve, subscription_id))

    def create_subscription(
        self,
        customer_id: str,
        price_id: str,
        *,
        metadata: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        params = _drop_none(
            {
                "customer": customer_id,
                "items": [{"price": price_id}],
                "metadata": metadata,
                "payment_behavior": "default_incomplete",
                "expand": ["latest_invoice.confirmation_secret"],
            }
        )
        return _plain(self._call("subscriptions.create", stripe.Subscription.create, **params))

    def cancel_subscription(self, subscription_id: str) -> dict[str, Any]:
        return _plain(self._call("subscriptions.cancel", stripe.Subscription.cancel, subscription_id))

    def pause_subscription(self, subscription_id: str) -> dict[str, Any]:
        return _plain(
            self._call(
                "subscriptions.update",
                stripe.Subscription.modify,
                subscription_id,
                pause_collection={"behavior": "void"},
            )
        )

    def resume_subscription(self, subscription_id: str) -> dict[str, Any]:
        # An empty string unsets pause_collection
        return _plain(
            self._call(
                "subscriptions.update",
                stripe.Subscription.modify,
                subscription_id,
                pause_collection="",
            )
        )

    # Invoices

    def find_invoice_payment_intent(self, invoice_id: str) -> str | None:
        """Payment intent that settled an invoice, from its InvoicePayment records."""
        payments = self._list("invoice_payments.list", stripe.InvoicePayment.list, invoice=invoice_id, limit=10)
        for invoice_payment in payments:
            payment_intent = (invoice_payment.get("payment") or {}).get("payment_intent")
            if isinstance(payment_intent, dict):
                payment_intent = payment_intent.get("id")
            if payment_intent:
                return payment_intent
        return None

    # Products and prices

    def get_or_create_recurring_product(self) -> dict[str, Any]:
        products = self._list("products.list", stripe.Product.list, active=True, limit=100)
        for product in products:
            if product.get("name") == RECURRING_PRODUCT_NAME:
                return product
        return _plain(
            self._call(
                "products.create",
                stripe.Product.create,
                name=RECURRING_PRODUCT_NAME,
                description=RECURRING_PRODUCT_DESCRIPTION,
            )
        )

    def create_recurring_price(
        self,
        product_id: str,
        unit_amount: int,
        interval: str,
        *,
        fund: str | None = None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {
            "product": product_id,
            "unit_amount": unit_amount,
            "currency": "usd",
            "recurring": {"interval": interval},
        }
        if fund:
            params["metadata"] = {"fund": fund}
        return _plain(self._call("prices.create", stripe.Price.create, **params))
