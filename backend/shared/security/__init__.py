"""
Security module: Authentication and password hashing.
"""

from shared.security.auth import (
    sign_jwt,
    verify_jwt,
    get_bearer_token,
    current_user_context,
    require_roles,
    actor_id,
)
from shared.security.password import hash_password, verify_password

__all__ = [
    # auth
    "sign_jwt",
    "verify_jwt",
    "get_bearer_token",
    "current_user_context",
    "require_roles",
    "actor_id",
    # password
    "hash_password",
    "verify_password",
]
