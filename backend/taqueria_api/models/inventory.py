"""
Inventory Model: InventoryMovement (append-only stock ledger).
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, utcnow

if TYPE_CHECKING:
    from .catalog import Product


class InventoryMovement(Base):
    """
    One documented change of a product's stock.
    Rows are only ever inserted.

    ``qty`` is the magnitude of the change; the direction comes from
    ``movement_type`` (entrada adds, salida removes, ajuste is a manual
    correction in either direction recorded with ``delta``).
    """

    __tablename__ = "inventory_movement"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("product.id"), nullable=False, index=True
    )
    movement_type: Mapped[str] = mapped_column(Text, nullable=False)  # entrada, salida, ajuste
    qty: Mapped[int] = mapped_column(Integer, nullable=False)
    delta: Mapped[int] = mapped_column(Integer, nullable=False)
    stock_after: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    order_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("orders.id"), index=True
    )
    user_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("app_user.id"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False, index=True
    )

    __table_args__ = (
        CheckConstraint(
            "movement_type IN ('entrada', 'salida', 'ajuste')", name="chk_movement_type"
        ),
        CheckConstraint("qty > 0", name="chk_movement_qty_positive"),
    )

    product: Mapped["Product"] = relationship()
