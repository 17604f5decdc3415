"""
Audit Service.

Read side of the audit log written by ``taqueria_api.services.audit``.
"""

from __future__ import annotations

import json
from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from shared.config.constants import AuditAction, Limits
from shared.utils.exceptions import ValidationError
from shared.utils.schemas import AuditLogOutput
from taqueria_api.models import AuditLog, User, start_of_day


AUDIT_ACTIONS = frozenset({AuditAction.CREATE, AuditAction.UPDATE})


class AuditService:
    def __init__(self, db: Session):
        self._db = db

    def list_logs(
        self,
        *,
        table_name: str | None = None,
        action: str | None = None,
        user_id: int | None = None,
        record_id: int | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        limit: int = Limits.DEFAULT_AUDIT_PAGE,
        offset: int = 0,
    ) -> list[AuditLogOutput]:
        """
        Audit entries, newest first, with the name of the user who acted.

        Filters combine. ``date_from``/``date_to`` are inclusive UTC days.
        """
        if action is not None:
            action = action.upper()
            if action not in AUDIT_ACTIONS:
                raise ValidationError(f"Acción de auditoría inválida: {action}", field="action")
        if date_from and date_to and date_from > date_to:
            raise ValidationError("La fecha inicial es posterior a la final", field="date_from")
        if limit < 1 or limit > Limits.MAX_AUDIT_PAGE:
            raise ValidationError(
                f"El límite debe estar entre 1 y {Limits.MAX_AUDIT_PAGE}", field="limit"
            )
        if offset < 0:
            raise ValidationError("El desplazamiento no puede ser negativo", field="offset")

        stmt = select(AuditLog, User.name).outerjoin(User, AuditLog.user_id == User.id)

        if table_name:
            stmt = stmt.where(AuditLog.table_name == table_name)
        if action:
            stmt = stmt.where(AuditLog.action == action)
        if user_id is not None:
            stmt = stmt.where(AuditLog.user_id == user_id)
        if record_id is not None:
            stmt = stmt.where(AuditLog.record_id == record_id)
        if date_from is not None:
            stmt = stmt.where(AuditLog.created_at >= start_of_day(date_from))
        if date_to is not None:
            stmt = stmt.where(AuditLog.created_at < start_of_day(date_to + timedelta(days=1)))

        rows = self._db.execute(
            stmt.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).offset(offset).limit(limit)
        ).all()

        return [
            AuditLogOutput(
                id=entry.id,
                table_name=entry.table_name,
                action=entry.action,
                record_id=entry.record_id,
                user_id=entry.user_id,
                user_name=user_name,
                old_values=_decode(entry.old_values),
                new_values=_decode(entry.new_values),
                created_at=entry.created_at,
            )
            for entry, user_name in rows
        ]


def _decode(snapshot: str | None) -> dict | None:
    return json.loads(snapshot) if snapshot else None
