"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep backward compatibility while encouraging
    consistent shapes across the codebase.
    """

    code: str
    message: str
    hint: str
    min_value: int
    max_value: int
    actual_value: int
    http_status: int
    retry_after: float
    provider: str
    model: str
    field: str
    event_type: str
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class WebhookSignatureAppError(ValidationAppError):
    """Raised when an inbound webhook fails signature verification."""


class AuthenticationAppError(AppError):
    """Raised when the caller cannot be identified."""


class AuthorizationAppError(AppError):
    """Raised when an identified caller is not allowed to act."""


class ServiceNotConfiguredAppError(AppError):
    """Raised when a route needs a provider whose credentials are missing."""


class UpstreamServiceAppError(AppError):
    """Raised when a third-party API call fails.

    ``details["http_status"]`` carries the provider's status when it should
    be passed through to the client.
    """


class LLMAppError(AppError):
    """Raised when LLM provider/client operations fail."""


class StoreAppError(AppError):
    """Raised when the CRM data store rejects a read or write."""
