"""Payments business logic on top of the Stripe gateway.

Validates request values, calls the gateway and reshapes Stripe objects into
the camelCase payloads the web client consumes. Amounts from Stripe are in
cents; everything returned here is in dollars.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timezone
from typing import Any

from app.adapters.payments.stripe_gateway import StripeGateway
from app.core.errors import ValidationAppError

MIN_PAYMENT_CENTS = 50
PRICE_INTERVALS = ("week", "month", "year")
DEFAULT_FUND = "other"
MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def to_iso(timestamp: int | None) -> str | None:
    """Unix seconds → ISO-8601 UTC string with a ``Z`` suffix."""
    if timestamp is None:
        return None
    return datetime.fromtimestamp(int(timestamp), tz=timezone.utc).isoformat().replace("+00:00", "Z")


def year_bounds(year: int) -> tuple[int, int]:
    """First and last second of a UTC calendar year as Unix timestamps."""
    start = datetime(year, 1, 1, tzinfo=timezone.utc)
    end = datetime(year, 12, 31, 23, 59, 59, tzinfo=timezone.utc)
    return int(start.timestamp()), int(end.timestamp())


def format_payment_method(pm: dict[str, Any]) -> dict[str, Any]:
    method: dict[str, Any] = {"id": pm["id"], "type": pm.get("type")}
    card = pm.get("card")
    if card:
        method["card"] = {
            "brand": card.get("brand"),
            "last4": card.get("last4"),
            "expMonth": card.get("exp_month"),
            "expYear": card.get("exp_year"),
        }
    bank = pm.get("us_bank_account")
    if bank:
        method["bankAccount"] = {"bankName": bank.get("bank_name"), "last4": bank.get("last4")}
    return method


def format_payment(pi: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": pi["id"],
        "amount": pi.get("amount", 0) / 100,
        "fund": (pi.get("metadata") or {}).get("fund") or DEFAULT_FUND,
        "date": to_iso(pi.get("created")),
        "status": pi.get("status"),
    }


def format_subscription(sub: dict[str, Any]) -> dict[str, Any]:
    items = (sub.get("items") or {}).get("data") or []
    item = items[0] if items else {}
    price = item.get("price") or {}
    unit_amount = price.get("unit_amount")
    period_end = sub.get("current_period_end") or item.get("current_period_end")
    return {
        "id": sub["id"],
        "status": sub.get("status"),
        "currentPeriodEnd": to_iso(period_end),
        "amount": unit_amount / 100 if unit_amount else 0,
        "interval": (price.get("recurring") or {}).get("interval"),
        "fund": (sub.get("metadata") or {}).get("fund"),
    }


def summarize_giving(payment_intents: list[dict[str, Any]]) -> dict[str, Any]:
    """Total, per-fund and per-month sums over succeeded payment intents."""
    total_cents = 0
    by_fund: dict[str, int] = defaultdict(int)
    by_month: dict[str, int] = defaultdict(int)

    for pi in payment_intents:
        if pi.get("status") != "succeeded":
            continue
        amount = pi.get("amount", 0)
        fund = (pi.get("metadata") or {}).get("fund") or DEFAULT_FUND
        month = datetime.fromtimestamp(int(pi["created"]), tz=timezone.utc).month
        total_cents += amount
        by_fund[fund] += amount
        by_month[MONTH_ABBREVIATIONS[month - 1]] += amount

    return {
        "total": total_cents / 100,
        "byFund": {fund: cents / 100 for fund, cents in by_fund.items()},
        "byMonth": {month: cents / 100 for month, cents in by_month.items()},
    }


def subscription_client_secret(subscription: dict[str, Any]) -> str | None:
    """Client secret of a new subscription's first invoice, if expanded."""
    invoice = subscription.get("latest_invoice")
    if not isinstance(invoice, dict):
        return None
    confirmation = invoice.get("confirmation_secret")
    if isinstance(confirmation, dict) and confirmation.get("client_secret"):
        return confirmation["client_secret"]
    payment_intent = invoice.get("payment_intent")
    if isinstance(payment_intent, dict):
        return payment_intent.get("client_secret")
    return None


class PaymentService:
    """Customer, payment intent, subscription and price operations."""

    def __init__(self, gateway: StripeGateway) -> None:
        self.gateway = gateway

    def upsert_customer(
        self,
        email: str | None,
        *,
        name: str | None = None,
        phone: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        if not email:
            raise ValidationAppError(code="email_required", message="Email is required", details={"field": "email"})

        customer = self.gateway.find_customer_by_email(email)
        if customer is None:
            customer = self.gateway.create_customer(email, name=name, phone=phone, metadata=metadata)
        elif name or phone:
            customer = self.gateway.update_customer(customer["id"], name=name, phone=phone, metadata=metadata)

        return {"customerId": customer["id"], "email": customer.get("email")}

    def list_payment_methods(self, customer_id: str) -> dict[str, Any]:
        methods = self.gateway.list_payment_methods(customer_id, "card")
        methods += self.gateway.list_payment_methods(customer_id, "us_bank_account")
        return {"paymentMethods": [format_payment_method(pm) for pm in methods]}

    def list_payments(self, customer_id: str, limit: int = 50) -> dict[str, Any]:
        intents = self.gateway.list_payment_intents(customer_id, limit=limit)
        return {"payments": [format_payment(pi) for pi in intents if pi.get("status") == "succeeded"]}

    def giving_summary(self, customer_id: str, year: int | None = None) -> dict[str, Any]:
        target_year = year or datetime.now(timezone.utc).year
        start, end = year_bounds(target_year)
        intents = self.gateway.list_payment_intents(
            customer_id, limit=100, created_gte=start, created_lte=end
        )
        return {"summary": summarize_giving(intents)}

    def list_subscriptions(self, customer_id: str) -> dict[str, Any]:
        subscriptions = self.gateway.list_subscriptions(customer_id)
        return {"subscriptions": [format_subscription(sub) for sub in subscriptions]}

    def create_payment_intent(
        self,
        amount: float | None,
        *,
        currency: str = "usd",
        description: str | None = None,
        metadata: dict[str, str] | None = None,
        customer: str | None = None,
        payment_method: str | None = None,
    ) -> dict[str, Any]:
        if not amount or amount < MIN_PAYMENT_CENTS:
            raise ValidationAppError(
                code="amount_too_small",
                message="Amount must be at least $0.50",
                details={"field": "amount", "min_value": MIN_PAYMENT_CENTS},
            )

        intent = self.gateway.create_payment_intent(
            round(amount),
            currency=currency,
            description=description,
            metadata=metadata,
            customer=customer,
            payment_method=payment_method,
        )
        return {
            "paymentIntentId": intent["id"],
            "clientSecret": intent.get("client_secret"),
            "status": intent.get("status"),
        }

    def confirm_payment(self, payment_intent_id: str, payment_method: str | None = None) -> dict[str, Any]:
        intent = self.gateway.confirm_payment_intent(payment_intent_id, payment_method=payment_method)
        return {
            "success": intent.get("status") == "succeeded",
            "status": intent.get("status"),
            "paymentIntentId": intent["id"],
        }

    def create_subscription(
        self,
        customer_id: str | None,
        price_id: str | None,
        metadata: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        if not customer_id or not price_id:
            raise ValidationAppError(
                code="subscription_fields_required",
                message="Customer ID and Price ID are required",
            )

        subscription = self.gateway.create_subscription(customer_id, price_id, metadata=metadata)
        return {
            "subscriptionId": subscription["id"],
            "status": subscription.get("status"),
            "clientSecret": subscription_client_secret(subscription),
        }

    def cancel_subscription(self, subscription_id: str) -> dict[str, Any]:
        subscription = self.gateway.cancel_subscription(subscription_id)
        return {"subscriptionId": subscription["id"], "status": "canceled"}

    def pause_subscription(self, subscription_id: str) -> dict[str, Any]:
        subscription = self.gateway.pause_subscription(subscription_id)
        return {"subscriptionId": subscription["id"], "status": "paused"}

    def resume_subscription(self, subscription_id: str) -> dict[str, Any]:
        subscription = self.gateway.resume_subscription(subscription_id)
        return {"subscriptionId": subscription["id"], "status": subscription.get("status")}

    def create_price(self, amount: float | None, interval: str | None, fund: str | None = None) -> dict[str, Any]:
        if not amount or not interval:
            raise ValidationAppError(
                code="price_fields_required",
                message="Amount and interval are required",
            )
        if interval not in PRICE_INTERVALS:
            raise ValidationAppError(
                code="invalid_interval",
                message="Interval must be one of: week, month, year",
                details={"field": "interval"},
            )

        product = self.gateway.get_or_create_recurring_product()
        price = self.gateway.create_recurring_price(
            product["id"], round(amount * 100), interval, fund=fund
        )
        unit_amount = price.get("unit_amount")
        return {
            "priceId": price["id"],
            "amount": unit_amount / 100 if unit_amount else 0,
            "interval": (price.get("recurring") or {}).get("interval"),
        }
