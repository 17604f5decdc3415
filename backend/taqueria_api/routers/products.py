"""
Products router (productos).
Catalog reads for every role, catalog and stock writes for admins.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from shared.config.constants import ALL_ROLES, MANAGEMENT_ROLES
from shared.infrastructure.db import get_db
from shared.security.auth import actor_id, current_user_context, require_roles
from shared.utils.schemas import (
    InventoryMovementOutput,
    ProductCreate,
    ProductOutput,
    ProductUpdate,
    StockAdjustRequest,
)
from taqueria_api.services.domain import ProductService


router = APIRouter(prefix="/api/productos", tags=["productos"])


@router.get("", response_model=list[ProductOutput])
def list_products(
    is_available: bool | None = None,
    category: str | None = None,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> list[ProductOutput]:
    require_roles(ctx, ALL_ROLES)
    return ProductService(db).list_products(is_available=is_available, category=category)


@router.get("/categorias", response_model=list[str])
def list_categories(
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> list[str]:
    require_roles(ctx, ALL_ROLES)
    return ProductService(db).list_categories()


@router.get("/stock-bajo", response_model=list[ProductOutput])
def list_low_stock(
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> list[ProductOutput]:
    """Products at or below their stock minimum."""
    require_roles(ctx, MANAGEMENT_ROLES)
    return ProductService(db).list_low_stock()


@router.get("/movimientos", response_model=list[InventoryMovementOutput])
def list_movements(
    product_id: int | None = None,
    order_id: int | None = None,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> list[InventoryMovementOutput]:
    """Inventory ledger, newest first."""
    require_roles(ctx, MANAGEMENT_ROLES)
    return ProductService(db).list_movements(product_id=product_id, order_id=order_id)


@router.get("/{product_id}", response_model=ProductOutput)
def get_product(
    product_id: int,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> ProductOutput:
    require_roles(ctx, ALL_ROLES)
    return ProductService(db).get_product(product_id)


@router.post("", response_model=ProductOutput, status_code=status.HTTP_201_CREATED)
def create_product(
    body: ProductCreate,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> ProductOutput:
    require_roles(ctx, MANAGEMENT_ROLES)
    return ProductService(db).create_product(body, actor_id(ctx))


@router.put("/{product_id}", response_model=ProductOutput)
def update_product(
    product_id: int,
    body: ProductUpdate,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> ProductOutput:
    require_roles(ctx, MANAGEMENT_ROLES)
    return ProductService(db).update_product(product_id, body, actor_id(ctx))


@router.post("/{product_id}/stock", response_model=ProductOutput)
def adjust_stock(
    product_id: int,
    body: StockAdjustRequest,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> ProductOutput:
    """Apply a signed stock change with a reason."""
    require_roles(ctx, MANAGEMENT_ROLES)
    return ProductService(db).adjust_stock(product_id, body, actor_id(ctx))


@router.patch("/{product_id}/disponibilidad", response_model=ProductOutput)
def toggle_availability(
    product_id: int,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> ProductOutput:
    require_roles(ctx, MANAGEMENT_ROLES)
    return ProductService(db).toggle_availability(product_id, actor_id(ctx))
