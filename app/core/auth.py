"""Bearer token authentication and role checks.

Staff sign in through the identity provider used by the SPA, which issues a
JWT; API routes verify it here. Two verification modes are supported:

- shared secret (``AUTH_JWT_SECRET``) for HS* tokens
- JWKS endpoint (``AUTH_JWKS_URL``) for RS*/ES* tokens

Demo mode (``APP_DEMO_MODE=true``) skips verification entirely and acts as a
demo admin, so the SPA can be explored without an identity provider.

Pure verification logic lives in ``decode_bearer_token``; the FastAPI
dependencies translate its errors into HTTP responses.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Annotated, Any, Callable

import jwt
from fastapi import Depends, Header, HTTPException, Request, status

from app.core.config import settings
from app.core.errors import (
    AuthenticationAppError,
    AuthorizationAppError,
    ServiceNotConfiguredAppError,
)
from app.core.logging import hash_identifier

logger = logging.getLogger(__name__)

DEFAULT_ROLE = "member"
ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class AuthContext:
    """Identity attached to an authenticated request."""

    user_id: str
    session_id: str
    role: str | None = None

    @property
    def effective_role(self) -> str:
        return self.role or DEFAULT_ROLE


DEMO_CONTEXT = AuthContext(user_id="demo-user", session_id="demo-session", role=ADMIN_ROLE)


def is_auth_configured() -> bool:
    return bool(settings.auth.jwt_secret or settings.auth.jwks_url)


def get_auth_status() -> dict[str, bool]:
    """Report auth configuration for health checks."""
    return {
        "configured": is_auth_configured(),
        "demo_mode": settings.app.demo_mode,
    }


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the token from an ``Authorization: Bearer <token>`` header.

    Examples:
        >>> extract_bearer_token("Bearer abc.def.ghi")
        'abc.def.ghi'
        >>> extract_bearer_token("Basic dXNlcjpwYXNz") is None
        True
    """
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization[len("Bearer "):].strip()
    return token or None


@lru_cache(maxsize=4)
def _jwks_client(url: str) -> jwt.PyJWKClient:
    return jwt.PyJWKClient(url)


def _parse_algorithms(raw: str) -> list[str]:
    return [alg.strip() for alg in raw.split(",") if alg.strip()]


def decode_bearer_token(token: str) -> AuthContext:
    """Verify a JWT and build the caller's AuthContext.

    Args:
        token: Encoded JWT taken from the Authorization header.

    Returns:
        AuthContext built from the ``sub``, ``sid`` and ``role`` claims.

    Raises:
        ServiceNotConfiguredAppError: If no verification key is configured.
        AuthenticationAppError: If the token is invalid, expired, or has no subject.
    """
    cfg = settings.auth
    if not (cfg.jwt_secret or cfg.jwks_url):
        logger.error("auth.not_configured")
        raise ServiceNotConfiguredAppError(
            code="auth_not_configured",
            message="Authentication service not configured",
            details={"hint": "Set AUTH_JWT_SECRET or AUTH_JWKS_URL, or enable APP_DEMO_MODE"},
        )

    options: dict[str, Any] = {"require": ["exp", "sub"]}
    decode_kwargs: dict[str, Any] = {
        "leeway": cfg.leeway_seconds,
        "options": options,
    }
    if cfg.audience:
        decode_kwargs["audience"] = cfg.audience
    if cfg.issuer:
        decode_kwargs["issuer"] = cfg.issuer

    try:
        if cfg.jwks_url:
            signing_key = _jwks_client(cfg.jwks_url).get_signing_key_from_jwt(token).key
            algorithms = _parse_algorithms(cfg.jwt_algorithms)
            if not any(alg.startswith(("RS", "ES", "PS")) for alg in algorithms):
                algorithms = ["RS256"]
        else:
            signing_key = cfg.jwt_secret
            algorithms = _parse_algorithms(cfg.jwt_algorithms) or ["HS256"]
        payload = jwt.decode(token, signing_key, algorithms=algorithms, **decode_kwargs)
    except jwt.PyJWTError as exc:
        logger.warning(
            "auth.invalid_token",
            extra={
                "error_type": type(exc).__name__,
                "token_hash": hash_identifier(token),
            },
        )
        raise AuthenticationAppError(
            code="invalid_token",
            message="Invalid or expired token",
        ) from exc

    role = payload.get("role")
    return AuthContext(
        user_id=str(payload["sub"]),
        session_id=str(payload.get("sid") or ""),
        role=str(role) if role else None,
    )


async def require_auth(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> AuthContext:
    """FastAPI dependency requiring an authenticated caller.

    Usage:
        @router.post("/protected")
        async def protected(auth: AuthContext = Depends(require_auth)): ...

    Raises:
        HTTPException: 401 for missing/invalid tokens, 503 when auth is not configured.
    """
    if settings.app.demo_mode:
        request.state.auth = DEMO_CONTEXT
        return DEMO_CONTEXT

    token = extract_bearer_token(authorization)
    if token is None:
        logger.warning("auth.missing_token", extra={"route": request.url.path})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        context = decode_bearer_token(token)
    except ServiceNotConfiguredAppError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=exc.message,
        ) from exc
    except AuthenticationAppError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=exc.message,
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc

    logger.debug(
        "auth.success",
        extra={"user_hash": hash_identifier(context.user_id), "role": context.effective_role},
    )
    request.state.auth = context
    return context


async def optional_auth(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> AuthContext | None:
    """Attach the caller's identity when a valid token is present; never reject."""
    if settings.app.demo_mode:
        request.state.auth = DEMO_CONTEXT
        return DEMO_CONTEXT

    token = extract_bearer_token(authorization)
    if token is None or not is_auth_configured():
        return None

    try:
        context = decode_bearer_token(token)
    except (AuthenticationAppError, ServiceNotConfiguredAppError):
        return None

    request.state.auth = context
    return context


def check_role(context: AuthContext | None, allowed_roles: tuple[str, ...]) -> None:
    """Raise unless the context's role is admin or one of ``allowed_roles``."""
    if context is None:
        raise AuthenticationAppError(code="auth_required", message="Authentication required")

    role = context.effective_role
    if role == ADMIN_ROLE or role in allowed_roles:
        return

    logger.warning(
        "auth.insufficient_role",
        extra={"role": role, "allowed_roles": list(allowed_roles)},
    )
    raise AuthorizationAppError(code="insufficient_permissions", message="Insufficient permissions")


def require_role(*allowed_roles: str) -> Callable[..., Any]:
    """Build a dependency that admits admins and the given roles.

    Usage:
        @router.post("/send-bulk", dependencies=[Depends(require_role("staff"))])
    """

    async def _dependency(
        context: Annotated[AuthContext, Depends(require_auth)],
    ) -> AuthContext:
        if settings.app.demo_mode:
            return context
        try:
            check_role(context, allowed_roles)
        except AuthenticationAppError as exc:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=exc.message) from exc
        except AuthorizationAppError as exc:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=exc.message) from exc
        return context

    return _dependency
