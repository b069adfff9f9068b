"""CSRF protection using the double-submit cookie pattern.

- The server sets a random token in a JS-readable cookie on first contact
- The SPA reads the cookie and echoes it in the X-CSRF-Token header
- State-changing requests are accepted only when header and cookie match

A cross-site attacker can make the browser send the cookie but cannot read
it, so it cannot forge the matching header.
"""

from __future__ import annotations

import logging
import re
import secrets
from typing import Annotated

from fastapi import Cookie, Header, HTTPException, Request, Response, status

from app.core.config import settings
from app.core.errors import AuthorizationAppError
from app.core.logging import hash_identifier

logger = logging.getLogger(__name__)

CSRF_COOKIE_NAME = "grace-csrf"
CSRF_HEADER_NAME = "X-CSRF-Token"
TOKEN_LENGTH = 64
SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})

_TOKEN_RE = re.compile(r"^[0-9a-fA-F]+$")


def generate_csrf_token() -> str:
    """Return 32 random bytes as 64 hex characters."""
    return secrets.token_hex(TOKEN_LENGTH // 2)


def is_well_formed_token(token: str | None) -> bool:
    return bool(token) and len(token) == TOKEN_LENGTH and bool(_TOKEN_RE.match(token))


def validate_csrf_tokens(method: str, header_token: str | None, cookie_token: str | None) -> None:
    """Check a request's CSRF header against its cookie.

    Args:
        method: HTTP method of the request.
        header_token: Value of the X-CSRF-Token header.
        cookie_token: Value of the grace-csrf cookie.

    Raises:
        AuthorizationAppError: If a state-changing request lacks a valid,
            matching token pair.
    """
    if method.upper() in SAFE_METHODS:
        return

    if not is_well_formed_token(header_token):
        reason = "header_missing" if not header_token else "header_malformed"
    elif not cookie_token:
        reason = "cookie_missing"
    elif not secrets.compare_digest(header_token.lower(), cookie_token.lower()):
        reason = "mismatch"
    else:
        return

    logger.warning(
        "csrf.rejected",
        extra={
            "reason": reason,
            "method": method,
            "header_hash": hash_identifier(header_token) if header_token else None,
        },
    )
    raise AuthorizationAppError(
        code="csrf_invalid",
        message="Invalid or missing CSRF token",
        details={"hint": f"Echo the {CSRF_COOKIE_NAME} cookie in the {CSRF_HEADER_NAME} header"},
    )


async def csrf_protect(
    request: Request,
    x_csrf_token: Annotated[str | None, Header(alias=CSRF_HEADER_NAME)] = None,
    grace_csrf: Annotated[str | None, Cookie(alias=CSRF_COOKIE_NAME)] = None,
) -> None:
    """FastAPI dependency enforcing the double-submit check.

    Usage:
        router = APIRouter(dependencies=[Depends(csrf_protect)])

    Raises:
        HTTPException: 403 Forbidden when the token pair is missing or differs.
    """
    if not settings.app.csrf_enabled:
        return

    try:
        validate_csrf_tokens(request.method, x_csrf_token, grace_csrf)
    except AuthorizationAppError as exc:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=exc.message,
        ) from exc


def _cookie_secure() -> bool:
    if settings.app.csrf_cookie_secure is not None:
        return settings.app.csrf_cookie_secure
    return settings.is_production


def set_csrf_cookie(response: Response, token: str) -> None:
    """Attach the CSRF cookie; it must stay readable by client JS."""
    response.set_cookie(
        CSRF_COOKIE_NAME,
        token,
        httponly=False,
        samesite="strict",
        secure=_cookie_secure(),
        path="/",
    )


async def csrf_cookie_middleware(request: Request, call_next) -> Response:
    """Issue a CSRF cookie to any client that does not have one yet."""
    response: Response = await call_next(request)
    if not request.cookies.get(CSRF_COOKIE_NAME):
        set_csrf_cookie(response, generate_csrf_token())
    return response
