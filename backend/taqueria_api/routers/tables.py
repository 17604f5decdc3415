"""
Tables router (mesas).
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from shared.config.constants import ALL_ROLES, FLOOR_ROLES, MANAGEMENT_ROLES
from shared.infrastructure.db import get_db
from shared.security.auth import actor_id, current_user_context, require_roles
from shared.utils.schemas import (
    AssignWaiterRequest,
    TableCreate,
    TableOutput,
    UpdateTableStatusRequest,
)
from taqueria_api.services.domain import TableService


router = APIRouter(prefix="/api/mesas", tags=["mesas"])


@router.get("", response_model=list[TableOutput])
def list_tables(
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> list[TableOutput]:
    require_roles(ctx, ALL_ROLES)
    return TableService(db).list_tables()


@router.get("/{table_id}", response_model=TableOutput)
def get_table(
    table_id: int,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> TableOutput:
    require_roles(ctx, ALL_ROLES)
    return TableService(db).get_table(table_id)


@router.post("", response_model=TableOutput, status_code=status.HTTP_201_CREATED)
def create_table(
    body: TableCreate,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> TableOutput:
    require_roles(ctx, MANAGEMENT_ROLES)
    return TableService(db).create_table(body, actor_id(ctx))


@router.put("/{table_id}/mesero", response_model=TableOutput)
def assign_waiter(
    table_id: int,
    body: AssignWaiterRequest,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> TableOutput:
    """Assign a waiter. The table status is left unchanged."""
    require_roles(ctx, FLOOR_ROLES)
    return TableService(db).assign_waiter(table_id, body.waiter_id, actor_id(ctx))


@router.put("/{table_id}/estado", response_model=TableOutput)
def update_status(
    table_id: int,
    body: UpdateTableStatusRequest,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> TableOutput:
    """Change the table status. Freeing a table clears its waiter."""
    require_roles(ctx, FLOOR_ROLES)
    return TableService(db).update_status(table_id, body.status, actor_id(ctx))
