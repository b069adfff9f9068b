"""Global exception handlers for consistent error responses.

This module provides FastAPI exception handlers that intercept all errors
(domain, HTTP and unexpected) and return consistent JSON responses with
proper HTTP status codes and traceability.

Design:
- AppError subclasses → appropriate HTTP status (400, 401, 403, 5xx)
- HTTPException raised by dependencies → same envelope, headers preserved
- Unexpected Exception → generic 500 (safety net)
- All responses include request_id for distributed tracing
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.errors import (
    AppError,
    AuthenticationAppError,
    AuthorizationAppError,
    LLMAppError,
    ServiceNotConfiguredAppError,
    StoreAppError,
    UpstreamServiceAppError,
)
from app.core.logging import get_request_id

logger = logging.getLogger(__name__)


def resolve_status_code(exc: AppError) -> int:
    """Map a domain error onto an HTTP status code.

    Provider-facing errors may carry ``details["http_status"]`` so that an
    upstream 4xx (e.g. a Stripe card error) reaches the client unchanged.
    """
    override = (exc.details or {}).get("http_status")

    if isinstance(exc, AuthenticationAppError):
        return 401
    if isinstance(exc, AuthorizationAppError):
        return 403
    if isinstance(exc, ServiceNotConfiguredAppError):
        return int(override) if override else 503
    if isinstance(exc, UpstreamServiceAppError):
        return int(override) if override else 502
    if isinstance(exc, LLMAppError):
        return int(override) if override else 500
    if isinstance(exc, StoreAppError):
        return 500
    return 400


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    All responses include:
    - error.code: Machine-readable error code
    - error.message: Human-readable message
    - error.request_id: For distributed tracing
    - error.details: Optional structured context

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with appropriate status code and error details.
    """
    status_code = resolve_status_code(exc)

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )

    error_content = {
        "code": exc.code,
        "message": exc.message,
        "request_id": get_request_id(),
    }

    if exc.details:
        error_content["details"] = exc.details

    headers = None
    retry_after = (exc.details or {}).get("retry_after")
    if retry_after is not None:
        headers = {"Retry-After": str(int(retry_after))}

    return JSONResponse(
        status_code=status_code,
        content={"error": error_content},
        headers=headers,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTPException (auth, CSRF, rate limit, 404) in the error envelope."""
    content = {
        "code": f"http_{exc.status_code}",
        "message": exc.detail if isinstance(exc.detail, str) else "Request failed",
        "request_id": get_request_id(),
    }
    if not isinstance(exc.detail, str) and exc.detail is not None:
        content["details"] = exc.detail

    headers = getattr(exc, "headers", None)
    if headers and "Retry-After" in headers:
        content["details"] = {"retry_after": int(headers["Retry-After"])}

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": content},
        headers=headers,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs detailed information for debugging while returning a generic message.
    No stack traces or exception text are sent to the client.
    """
    request_id = get_request_id() or getattr(request.state, "request_id", None)
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": request_id,
        },
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
                "request_id": request_id,
            }
        },
        headers={settings.log.request_id_header: request_id} if request_id else None,
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with FastAPI app.

    Must be called during app initialization, before route registration.

    Example:
        >>> from fastapi import FastAPI
        >>> from app.core.exception_handlers import setup_exception_handlers
        >>> app = FastAPI()
        >>> setup_exception_handlers(app)
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)
