"""
Authentication and authorization utilities.
Handles JWT access tokens for staff.

Token claims:
    sub   - user id as string
    role  - one of shared.config.constants.Role
    name  - display name (used for logs and UI)
"""

from __future__ import annotations

import time
import uuid
from typing import Any, Iterable

import jwt
from fastapi import Depends, Header
from sqlalchemy.orm import Session

from shared.config.settings import JWT_SECRET, JWT_ISSUER, JWT_AUDIENCE, settings
from shared.config.constants import ALL_ROLES, ErrorMessages
from shared.config.logging import get_logger
from shared.infrastructure.db import get_db
from shared.utils.exceptions import AuthenticationError, InsufficientRoleError

logger = get_logger(__name__)


def sign_jwt(payload: dict[str, Any], ttl_seconds: int | None = None) -> str:
    """
    Sign an access token with the given payload.

    Args:
        payload: Claims to include in the token (sub, role, name).
        ttl_seconds: Token lifetime in seconds. Defaults to the configured expiry.

    Returns:
        Signed JWT token string.
    """
    if ttl_seconds is None:
        ttl_seconds = settings.jwt_access_token_expire_minutes * 60

    now = int(time.time())
    data = {
        **payload,
        "iss": JWT_ISSUER,
        "aud": JWT_AUDIENCE,
        "iat": now,
        "exp": now + ttl_seconds,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(data, JWT_SECRET, algorithm="HS256")


def verify_jwt(token: str) -> dict[str, Any]:
    """
    Verify and decode an access token.

    Raises:
        AuthenticationError: If the token is invalid, expired or malformed.
    """
    try:
        payload = jwt.decode(
            token,
            JWT_SECRET,
            algorithms=["HS256"],
            audience=JWT_AUDIENCE,
            issuer=JWT_ISSUER,
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError(ErrorMessages.TOKEN_EXPIRED)
    except jwt.InvalidTokenError as e:
        # Keep the library message out of the response
        logger.warning("JWT validation failed", error=str(e))
        raise AuthenticationError(ErrorMessages.INVALID_TOKEN)

    try:
        int(payload["sub"])
    except (KeyError, ValueError, TypeError):
        raise AuthenticationError("Token inválido: subject ausente o mal formado")

    if payload.get("role") not in ALL_ROLES:
        raise AuthenticationError("Token inválido: rol desconocido")

    return payload


def get_bearer_token(authorization: str | None) -> str:
    """
    Extract bearer token from Authorization header.

    Raises:
        AuthenticationError: If header is missing or malformed.
    """
    if not authorization:
        raise AuthenticationError(ErrorMessages.NOT_AUTHENTICATED)
    if not authorization.startswith("Bearer "):
        raise AuthenticationError("Formato de Authorization inválido. Se espera: Bearer <token>")
    return authorization.split(" ", 1)[1].strip()


def current_user_context(
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    """
    FastAPI dependency to get the current user context from the JWT.

    The token's subject must still be an active user: deactivating an
    account revokes its tokens, and role changes apply on the next request.

    Usage:
        @router.get("/protected")
        def protected_endpoint(ctx = Depends(current_user_context)):
            user_id = int(ctx["sub"])
            ...
    """
    from taqueria_api.models import User

    token = get_bearer_token(authorization)
    payload = verify_jwt(token)

    user = db.get(User, int(payload["sub"]))
    if user is None or not user.is_active:
        logger.warning("Token rejected for missing or inactive user", user_id=payload["sub"])
        raise AuthenticationError(ErrorMessages.INACTIVE_USER)

    return {**payload, "role": user.role, "name": user.name}


def require_roles(ctx: dict[str, Any], allowed: Iterable[str]) -> None:
    """
    Verify that the user has one of the allowed roles.

    Raises:
        InsufficientRoleError: If the user's role is not allowed.
    """
    allowed_set = {getattr(r, "value", r) for r in allowed}
    if ctx.get("role") not in allowed_set:
        raise InsufficientRoleError(list(allowed_set), user_id=ctx.get("sub"))


def actor_id(ctx: dict[str, Any]) -> int:
    """User id of the authenticated caller."""
    return int(ctx["sub"])
