"""
Orders router (ordenes).
Order lifecycle: creation, line items, payment and cancellation.
"""

from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from shared.config.constants import ALL_ROLES, CHECKOUT_ROLES, FLOOR_ROLES, Role
from shared.infrastructure.db import get_db
from shared.security.auth import actor_id, current_user_context, require_roles
from shared.utils.schemas import (
    AddItemsRequest,
    CancelOrderRequest,
    CreateOrderRequest,
    OrderListOutput,
    OrderOutput,
    PayOrderRequest,
    UpdateItemStatusRequest,
)
from taqueria_api.services.domain import OrderService


router = APIRouter(prefix="/api/ordenes", tags=["ordenes"])

# Cooks move lines through the kitchen, waiters mark them delivered
ITEM_STATUS_ROLES = [Role.ADMIN, Role.COCINERO, Role.MESERO]


@router.get("", response_model=OrderListOutput)
def list_orders(
    status_filter: str | None = Query(default=None, alias="status"),
    search: str | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> OrderListOutput:
    """List orders split into active and history."""
    require_roles(ctx, ALL_ROLES)
    return OrderService(db).list_orders(
        status=status_filter,
        search=search,
        date_from=date_from,
        date_to=date_to,
    )


@router.post("", response_model=OrderOutput, status_code=status.HTTP_201_CREATED)
def create_order(
    body: CreateOrderRequest,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> OrderOutput:
    """Open an order on a table."""
    require_roles(ctx, FLOOR_ROLES)
    return OrderService(db).create_order(body, actor_id(ctx))


@router.get("/{order_id}", response_model=OrderOutput)
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> OrderOutput:
    require_roles(ctx, ALL_ROLES)
    return OrderService(db).get_order(order_id)


@router.post("/{order_id}/items", response_model=OrderOutput)
def add_items(
    order_id: int,
    body: AddItemsRequest,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> OrderOutput:
    require_roles(ctx, FLOOR_ROLES)
    return OrderService(db).add_items(order_id, body, actor_id(ctx))


@router.post("/{order_id}/pagar", response_model=OrderOutput)
def pay_order(
    order_id: int,
    body: PayOrderRequest,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> OrderOutput:
    """Pay an order with one method or split between diners."""
    require_roles(ctx, CHECKOUT_ROLES)
    return OrderService(db).pay_order(order_id, body, actor_id(ctx))


@router.post("/{order_id}/cancelar", response_model=OrderOutput)
def cancel_order(
    order_id: int,
    body: CancelOrderRequest | None = None,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> OrderOutput:
    """Cancel an order and give its stock back."""
    require_roles(ctx, FLOOR_ROLES)
    return OrderService(db).cancel_order(order_id, body or CancelOrderRequest(), actor_id(ctx))


@router.post("/{order_id}/items/{item_id}/cancelar", response_model=OrderOutput)
def cancel_item(
    order_id: int,
    item_id: int,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> OrderOutput:
    require_roles(ctx, FLOOR_ROLES)
    return OrderService(db).cancel_item(order_id, item_id, actor_id(ctx))


@router.patch("/{order_id}/items/{item_id}/estado", response_model=OrderOutput)
def update_item_status(
    order_id: int,
    item_id: int,
    body: UpdateItemStatusRequest,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> OrderOutput:
    require_roles(ctx, ITEM_STATUS_ROLES)
    return OrderService(db).update_item_status(order_id, item_id, body.status, actor_id(ctx))
