"""Rate limiting dependency for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Strategy:
- One limiter per scope (payments, messaging, ai, news, public), each with
  its own budget from settings.
- Clients are identified by the first X-Forwarded-For hop (the app runs
  behind a proxy in production), else the socket peer address.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

from fastapi import HTTPException, Request, Response, status

from app.adapters.rate_limit.base import AbstractRateLimiter
from app.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter
from app.core.config import settings
from app.core.logging import hash_identifier

logger = logging.getLogger(__name__)

SCOPES = ("default", "payments", "messaging", "ai", "news", "public")

_limiters: dict[str, tuple[tuple[int, int, int], AbstractRateLimiter]] = {}
_limiters_lock = threading.Lock()


def _scope_limit(scope: str) -> int:
    return getattr(settings.app, f"rate_limit_{scope}_requests", settings.app.rate_limit_default_requests)


def get_rate_limiter(scope: str) -> AbstractRateLimiter:
    """Return the process-wide limiter for ``scope``.

    The instance is cached in-module to preserve state across requests.
    If its configuration changes (primarily in tests), it is rebuilt.
    """

    config = (
        _scope_limit(scope),
        settings.app.rate_limit_window_seconds,
        settings.app.rate_limit_sweep_interval_seconds,
    )

    with _limiters_lock:
        cached = _limiters.get(scope)
        if cached is None or cached[0] != config:
            limiter = InMemorySlidingWindowRateLimiter(
                limit=config[0],
                window_seconds=config[1],
                sweep_interval_seconds=config[2],
            )
            _limiters[scope] = (config, limiter)
            return limiter
        return cached[1]


def reset_rate_limiters() -> None:
    """Forget all limiter state."""
    with _limiters_lock:
        _limiters.clear()


def get_client_key(request: Request) -> str:
    """Identify the client behind a request.

    Examples:
        X-Forwarded-For: "203.0.113.7, 10.0.0.2" -> "203.0.113.7"
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def rate_limit(scope: str = "default") -> Callable[..., Any]:
    """Build a dependency that consumes one unit of ``scope``'s budget.

    Usage:
        router = APIRouter(dependencies=[Depends(rate_limit("ai"))])

    Raises:
        HTTPException: 429 Too Many Requests when the budget is exhausted.
    """
    if scope not in SCOPES:
        raise ValueError(f"Unknown rate limit scope: {scope!r}")

    async def _enforce(request: Request, response: Response) -> None:
        if not settings.app.rate_limit_enabled:
            return

        client = get_client_key(request)
        limiter = get_rate_limiter(scope)
        result = limiter.consume(f"{client}:{scope}")

        if result.allowed:
            if settings.app.rate_limit_include_headers:
                response.headers["X-RateLimit-Limit"] = str(result.limit)
                response.headers["X-RateLimit-Remaining"] = str(result.remaining)
            return

        retry_after = result.retry_after_seconds or 0
        logger.warning(
            "rate_limit.exceeded",
            extra={
                "scope": scope,
                "client_hash": hash_identifier(client),
                "limit": result.limit,
                "window_s": settings.app.rate_limit_window_seconds,
                "retry_after_s": retry_after,
            },
        )

        headers: dict[str, str] = {"Retry-After": str(retry_after)}
        if settings.app.rate_limit_include_headers:
            headers["X-RateLimit-Limit"] = str(result.limit)
            headers["X-RateLimit-Remaining"] = "0"
            headers["X-RateLimit-Reset"] = str(result.reset_at)

        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests. Please try again later.",
            headers=headers,
        )

    _enforce.__name__ = f"rate_limit_{scope}"
    return _enforce
