"""
Order Models: Order, OrderItem, OrderPayment.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.config.constants import ItemStatus, OrderStatus
from .base import AuditMixin, Base

if TYPE_CHECKING:
    from .catalog import Product
    from .table import Table
    from .user import User


class Order(AuditMixin, Base):
    """
    A dining party's order on one table.

    State machine: activa -> {pagada, cancelada}; both targets are terminal.
    ``total_cents`` always equals the sum of qty * unit price over the
    non-cancelled items.
    """

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    table_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("restaurant_table.id"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("app_user.id"), nullable=False, index=True
    )
    diner_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    total_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(
        Text, nullable=False, default=OrderStatus.ACTIVA.value, index=True
    )  # activa, pagada, cancelada
    # NULL while active, and when the order was paid with a split
    payment_method: Mapped[Optional[str]] = mapped_column(Text)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    closed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        CheckConstraint("diner_count >= 1", name="chk_order_diner_count_positive"),
        CheckConstraint("total_cents >= 0", name="chk_order_total_non_negative"),
        CheckConstraint(
            "status IN ('activa', 'pagada', 'cancelada')", name="chk_order_status"
        ),
        CheckConstraint(
            "payment_method IS NULL OR payment_method IN ('efectivo', 'tarjeta', 'transferencia')",
            name="chk_order_payment_method",
        ),
        Index("ix_orders_created_at", "created_at"),
    )

    table: Mapped["Table"] = relationship("Table", foreign_keys=[table_id])
    user: Mapped["User"] = relationship("User", foreign_keys=[user_id])
    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order", order_by="OrderItem.id"
    )
    payments: Mapped[list["OrderPayment"]] = relationship(
        back_populates="order", order_by="OrderPayment.diner_number"
    )

    def __repr__(self) -> str:
        return f"<Order(id={self.id}, table_id={self.table_id}, status='{self.status}', total_cents={self.total_cents})>"


class OrderItem(AuditMixin, Base):
    """
    A single line of an order.
    Stores the price at the time of order; later product price edits never
    reach it.
    """

    __tablename__ = "order_item"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("orders.id"), nullable=False, index=True
    )
    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("product.id"), nullable=False, index=True
    )
    qty: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        Text, nullable=False, default=ItemStatus.PENDIENTE.value, index=True
    )  # pendiente, en_preparacion, listo, entregado
    notes: Mapped[Optional[str]] = mapped_column(Text)
    is_cancelled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        CheckConstraint("qty > 0", name="chk_order_item_qty_positive"),
        CheckConstraint("unit_price_cents >= 0", name="chk_order_item_price_non_negative"),
    )

    order: Mapped["Order"] = relationship(back_populates="items")
    product: Mapped["Product"] = relationship()

    @property
    def subtotal_cents(self) -> int:
        return self.qty * self.unit_price_cents


class OrderPayment(Base):
    """One diner's share of a split payment (pago dividido)."""

    __tablename__ = "order_payment"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("orders.id"), nullable=False, index=True
    )
    diner_number: Mapped[int] = mapped_column(Integer, nullable=False)
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    payment_method: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        CheckConstraint("diner_number >= 1", name="chk_order_payment_diner_positive"),
        CheckConstraint("amount_cents > 0", name="chk_order_payment_amount_positive"),
    )

    order: Mapped["Order"] = relationship(back_populates="payments")
