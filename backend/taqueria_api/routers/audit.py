"""
Audit log router (auditoria). Admin only.
"""

from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shared.config.constants import MANAGEMENT_ROLES, Limits
from shared.infrastructure.db import get_db
from shared.security.auth import current_user_context, require_roles
from shared.utils.schemas import AuditLogOutput
from taqueria_api.services.domain import AuditService


router = APIRouter(prefix="/api/auditoria", tags=["auditoria"])


@router.get("", response_model=list[AuditLogOutput])
def list_audit_logs(
    table_name: str | None = None,
    action: str | None = None,
    user_id: int | None = None,
    record_id: int | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    limit: int = Limits.DEFAULT_AUDIT_PAGE,
    offset: int = 0,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> list[AuditLogOutput]:
    """
    Audit entries, newest first.

    Filters:
    - table_name: audited table (restaurant_table, product, orders, app_user)
    - action: CREATE or UPDATE
    - user_id: user who made the change
    - record_id: id of the audited row
    - date_from / date_to: inclusive UTC days
    """
    require_roles(ctx, MANAGEMENT_ROLES)
    return AuditService(db).list_logs(
        table_name=table_name,
        action=action,
        user_id=user_id,
        record_id=record_id,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
        offset=offset,
    )
