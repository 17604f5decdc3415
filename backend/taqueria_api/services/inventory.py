"""
Stock mutation helper.

``apply_stock_change`` is the only code path that writes ``Product.stock``.
Each call writes exactly one inventory movement documenting the change, in
the caller's transaction.
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from shared.config.constants import MovementType
from shared.config.logging import inventory_logger as logger
from shared.utils.exceptions import InsufficientStockError, ValidationError
from taqueria_api.models import InventoryMovement, Product


def apply_stock_change(
    db: Session,
    product: Product,
    delta: int,
    *,
    reason: str,
    user_id: int | None,
    order_id: int | None = None,
    movement_type: str | None = None,
) -> InventoryMovement:
    """
    Change a product's stock by ``delta`` and record the movement.

    The movement type follows the sign of ``delta`` (entrada / salida)
    unless ``movement_type`` is given.

    Raises:
        ValidationError: If delta is zero or the movement type is unknown.
        InsufficientStockError: If the resulting stock would be negative.
            Nothing is changed in that case.
    """
    if delta == 0:
        raise ValidationError("El ajuste de stock no puede ser cero", field="delta")

    if movement_type is None:
        movement_type = MovementType.ENTRADA.value if delta > 0 else MovementType.SALIDA.value
    elif movement_type not in {m.value for m in MovementType}:
        raise ValidationError(
            f"Tipo de movimiento inválido: {movement_type}", field="movement_type"
        )

    new_stock = product.stock + delta
    if new_stock < 0:
        raise InsufficientStockError(product.id, product.stock, -delta)

    product.stock = new_stock

    movement = InventoryMovement(
        product_id=product.id,
        movement_type=movement_type,
        qty=abs(delta),
        delta=delta,
        stock_after=new_stock,
        reason=reason,
        order_id=order_id,
        user_id=user_id,
    )
    db.add(movement)

    logger.debug(
        "Stock changed",
        product_id=product.id,
        delta=delta,
        stock_after=new_stock,
        movement_type=movement_type,
        order_id=order_id,
    )
    return movement
