from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_payment_service
from app.core.auth import require_auth, require_role
from app.core.csrf import csrf_protect
from app.core.rate_limit import rate_limit
from app.schemas.payments import (
    ConfirmPaymentRequest,
    CreateCustomerRequest,
    CreatePaymentIntentRequest,
    CreatePriceRequest,
    CreateSubscriptionRequest,
    CustomerResponse,
    PaymentIntentResponse,
    PriceResponse,
    SubscriptionActionResponse,
)
from app.services.payment_service import PaymentService

# Stripe calls are blocking, so handlers are plain ``def`` and run in the threadpool
router = APIRouter(
    prefix="/api/payments",
    tags=["Payments"],
    dependencies=[Depends(require_auth), Depends(csrf_protect), Depends(rate_limit("payments"))],
)

Service = Annotated[PaymentService, Depends(get_payment_service)]


@router.post("/customers", response_model=CustomerResponse)
def create_or_update_customer(body: CreateCustomerRequest, service: Service) -> dict[str, Any]:
    """Find a Stripe customer by email or create one."""
    return service.upsert_customer(body.email, name=body.name, phone=body.phone, metadata=body.metadata)


@router.get("/customers/{customer_id}/payment-methods")
def list_payment_methods(customer_id: str, service: Service) -> dict[str, Any]:
    """Saved cards and US bank accounts."""
    return service.list_payment_methods(customer_id)


@router.get("/customers/{customer_id}/payments")
def list_payments(
    customer_id: str,
    service: Service,
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
) -> dict[str, Any]:
    """Succeeded payments, newest first."""
    return service.list_payments(customer_id, limit)


@router.get("/customers/{customer_id}/summary")
def giving_summary(
    customer_id: str,
    service: Service,
    year: Annotated[int | None, Query(ge=2000, le=2100)] = None,
) -> dict[str, Any]:
    """Yearly giving totals by fund and month (defaults to the current year)."""
    return service.giving_summary(customer_id, year)


@router.get("/customers/{customer_id}/subscriptions")
def list_subscriptions(customer_id: str, service: Service) -> dict[str, Any]:
    return service.list_subscriptions(customer_id)


@router.post("/create-payment-intent", response_model=PaymentIntentResponse)
def create_payment_intent(body: CreatePaymentIntentRequest, service: Service) -> dict[str, Any]:
    """Start a one-time gift. ``amount`` is in cents."""
    return service.create_payment_intent(
        body.amount,
        currency=body.currency,
        description=body.description,
        metadata=body.metadata,
        customer=body.customer,
        payment_method=body.payment_method,
    )


@router.post("/confirm-payment/{payment_intent_id}")
def confirm_payment(
    payment_intent_id: str,
    service: Service,
    body: ConfirmPaymentRequest | None = None,
) -> dict[str, Any]:
    return service.confirm_payment(payment_intent_id, body.payment_method if body else None)


@router.post("/subscriptions", response_model=SubscriptionActionResponse, response_model_exclude_none=True)
def create_subscription(body: CreateSubscriptionRequest, service: Service) -> dict[str, Any]:
    """Create an incomplete subscription; the client confirms the first invoice."""
    return service.create_subscription(body.customer_id, body.price_id, body.metadata)


@router.delete("/subscriptions/{subscription_id}", response_model=SubscriptionActionResponse, response_model_exclude_none=True)
def cancel_subscription(subscription_id: str, service: Service) -> dict[str, Any]:
    return service.cancel_subscription(subscription_id)


@router.post("/subscriptions/{subscription_id}/pause", response_model=SubscriptionActionResponse, response_model_exclude_none=True)
def pause_subscription(subscription_id: str, service: Service) -> dict[str, Any]:
    return service.pause_subscription(subscription_id)


@router.post("/subscriptions/{subscription_id}/resume", response_model=SubscriptionActionResponse, response_model_exclude_none=True)
def resume_subscription(subscription_id: str, service: Service) -> dict[str, Any]:
    return service.resume_subscription(subscription_id)


@router.post(
    "/prices",
    response_model=PriceResponse,
    dependencies=[Depends(require_role("staff"))],
)
def create_price(body: CreatePriceRequest, service: Service) -> dict[str, Any]:
    """Create a recurring price under the shared "Recurring Giving" product."""
    return service.create_price(body.amount, body.interval, body.fund)
