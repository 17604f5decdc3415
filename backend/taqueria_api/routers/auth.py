"""
Authentication router.
Handles staff login and the current-user lookup.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shared.infrastructure.db import get_db
from shared.security.auth import actor_id, current_user_context, sign_jwt
from shared.utils.schemas import LoginRequest, LoginResponse, UserInfo
from taqueria_api.services.domain import UserService


router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
def login(body: LoginRequest, db: Session = Depends(get_db)) -> LoginResponse:
    """
    Authenticate a staff member and return an access token.

    The token contains:
    - sub: user ID
    - role: the user's role
    - name: display name
    """
    user = UserService(db).authenticate(body.username, body.password)
    token = sign_jwt({"sub": str(user.id), "role": user.role, "name": user.name})
    return LoginResponse(
        access_token=token,
        user=UserInfo(id=user.id, name=user.name, username=user.username, role=user.role),
    )


@router.get("/me", response_model=UserInfo)
def me(
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> UserInfo:
    """Return the authenticated user."""
    user = UserService(db).get_user(actor_id(ctx))
    return UserInfo(id=user.id, name=user.name, username=user.username, role=user.role)
