"""Payment provider adapters."""

from app.adapters.payments.stripe_gateway import StripeGateway

__all__ = ["StripeGateway"]
