"""Email and SMS provider adapters."""

from app.adapters.messaging.resend_client import ResendClient
from app.adapters.messaging.twilio_client import TwilioSMSClient

__all__ = ["ResendClient", "TwilioSMSClient"]
