"""
Table (mesa) Model.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.config.constants import TableStatus
from .base import AuditMixin, Base

if TYPE_CHECKING:
    from .user import User


class Table(AuditMixin, Base):
    """
    Physical table in the restaurant.

    Invariants:
    - at most one active order is referenced through ``current_order_id``
    - a table moved to ``disponible`` has no assigned waiter
    """

    # "table" is a reserved SQL keyword
    __tablename__ = "restaurant_table"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    number: Mapped[int] = mapped_column(Integer, nullable=False, unique=True, index=True)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=4)
    status: Mapped[str] = mapped_column(
        Text, nullable=False, default=TableStatus.DISPONIBLE.value, index=True
    )  # disponible, ocupada, en_servicio, mantenimiento
    location: Mapped[Optional[str]] = mapped_column(Text)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    waiter_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("app_user.id"), index=True
    )
    # Plain id: orders already reference tables, a second FK would make the schema cyclic
    current_order_id: Mapped[Optional[int]] = mapped_column(Integer, index=True)

    __table_args__ = (
        CheckConstraint("capacity > 0", name="chk_table_capacity_positive"),
        CheckConstraint(
            "status IN ('disponible', 'ocupada', 'en_servicio', 'mantenimiento')",
            name="chk_table_status",
        ),
    )

    waiter: Mapped[Optional["User"]] = relationship("User", foreign_keys=[waiter_id])

    def __repr__(self) -> str:
        return f"<Table(id={self.id}, number={self.number}, status='{self.status}')>"
