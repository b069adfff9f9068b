"""Pydantic schemas for the Stripe payment routes.

Required fields are validated in PaymentService so that error messages stay
stable for the web client; the models only describe the accepted shapes.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CreateCustomerRequest(BaseModel):
    email: str | None = Field(default=None, description="Customer email (lookup key).")
    name: str | None = None
    phone: str | None = None
    metadata: dict[str, str] | None = None


class CreatePaymentIntentRequest(BaseModel):
    amount: float | None = Field(default=None, description="Amount in cents (minimum 50).")
    currency: str = "usd"
    description: str | None = None
    metadata: dict[str, str] | None = Field(
        default=None,
        description="Copied onto the gift record: church_id, person_id, fund, is_recurring.",
    )
    customer: str | None = None
    payment_method: str | None = None


class ConfirmPaymentRequest(BaseModel):
    payment_method: str | None = None


class CreateSubscriptionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    customer_id: str | None = Field(default=None, alias="customerId")
    price_id: str | None = Field(default=None, alias="priceId")
    metadata: dict[str, str] | None = None


class CreatePriceRequest(BaseModel):
    amount: float | None = Field(default=None, description="Amount in dollars.")
    interval: str | None = Field(default=None, description="week, month or year.")
    fund: str | None = None


class CustomerResponse(BaseModel):
    customerId: str
    email: str | None = None


class PaymentIntentResponse(BaseModel):
    paymentIntentId: str
    clientSecret: str | None = None
    status: str | None = None


class SubscriptionActionResponse(BaseModel):
    subscriptionId: str
    status: str | None = None
    clientSecret: str | None = None


class PriceResponse(BaseModel):
    priceId: str
    amount: float
    interval: str | None = None

