"""
Users router (usuarios). Admin only.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from shared.config.constants import MANAGEMENT_ROLES
from shared.infrastructure.db import get_db
from shared.security.auth import actor_id, current_user_context, require_roles
from shared.utils.schemas import UserCreate, UserOutput, UserUpdate
from taqueria_api.services.domain import UserService


router = APIRouter(prefix="/api/usuarios", tags=["usuarios"])


@router.get("", response_model=list[UserOutput])
def list_users(
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> list[UserOutput]:
    require_roles(ctx, MANAGEMENT_ROLES)
    return UserService(db).list_users()


@router.post("", response_model=UserOutput, status_code=status.HTTP_201_CREATED)
def create_user(
    body: UserCreate,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> UserOutput:
    require_roles(ctx, MANAGEMENT_ROLES)
    return UserService(db).create_user(body, actor_id(ctx))


@router.put("/{user_id}", response_model=UserOutput)
def update_user(
    user_id: int,
    body: UserUpdate,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> UserOutput:
    require_roles(ctx, MANAGEMENT_ROLES)
    return UserService(db).update_user(user_id, body, actor_id(ctx))


@router.put("/{user_id}/toggle-active", response_model=UserOutput)
def toggle_active(
    user_id: int,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> UserOutput:
    """Activate or deactivate a user. Users are never deleted."""
    require_roles(ctx, MANAGEMENT_ROLES)
    return UserService(db).toggle_active(user_id, actor_id(ctx))
