"""
User Model.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from shared.config.constants import UserStatus
from .base import AuditMixin, Base


class User(AuditMixin, Base):
    """
    Staff member (admin, mesero, cocinero, cajero).
    Users are never hard-deleted: deactivation flips ``status``.
    """

    __tablename__ = "app_user"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    username: Mapped[str] = mapped_column(Text, nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    role: Mapped[str] = mapped_column(Text, nullable=False)  # admin, mesero, cocinero, cajero
    status: Mapped[str] = mapped_column(Text, nullable=False, default=UserStatus.ACTIVO.value)
    last_login_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        CheckConstraint(
            "role IN ('admin', 'mesero', 'cocinero', 'cajero')", name="chk_user_role"
        ),
        CheckConstraint("status IN ('activo', 'inactivo')", name="chk_user_status"),
    )

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVO.value

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}', role='{self.role}')>"
