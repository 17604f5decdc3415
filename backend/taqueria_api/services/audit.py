"""
Audit logging service.
Records every mutation of an audited entity (tables, products, orders, users).
"""

import json
from datetime import datetime
from typing import Any, Optional

from sqlalchemy.orm import Session

from shared.config.constants import AuditAction
from taqueria_api.models import AuditLog

# Columns never written to an audit snapshot
ALWAYS_EXCLUDED = frozenset({"password_hash"})


def log_change(
    db: Session,
    *,
    table_name: str,
    action: str,
    record_id: int,
    user_id: Optional[int],
    old_values: Optional[dict] = None,
    new_values: Optional[dict] = None,
) -> AuditLog:
    """
    Log a change to an entity.

    Args:
        db: Database session
        table_name: Table of the audited entity (e.g., "restaurant_table")
        action: Action performed (CREATE, UPDATE)
        record_id: ID of the entity
        user_id: User who made the change
        old_values: Previous state of the entity (for UPDATE)
        new_values: New state of the entity

    Returns:
        Created AuditLog entry
    """
    audit_entry = AuditLog(
        table_name=table_name,
        action=action,
        record_id=record_id,
        user_id=user_id,
        old_values=json.dumps(old_values, default=str) if old_values else None,
        new_values=json.dumps(new_values, default=str) if new_values else None,
    )

    db.add(audit_entry)
    # Don't commit here - let the caller handle the transaction
    return audit_entry


def serialize_model(obj: Any, exclude: list[str] | None = None) -> dict:
    """
    Serialize a SQLAlchemy model to a dictionary for audit logging.

    Args:
        obj: SQLAlchemy model instance
        exclude: Fields to exclude from serialization

    Returns:
        Dictionary representation of the model
    """
    skipped = ALWAYS_EXCLUDED.union(exclude or [])

    result = {}
    for column in obj.__table__.columns:
        if column.name in skipped:
            continue
        value = getattr(obj, column.name)
        if isinstance(value, datetime):
            value = value.isoformat()
        result[column.name] = value

    return result


# Convenience functions for common operations


def log_create(db: Session, user_id: Optional[int], entity: Any) -> AuditLog:
    """Log entity creation. The entity must already have its id (flush first)."""
    return log_change(
        db,
        table_name=entity.__tablename__,
        action=AuditAction.CREATE,
        record_id=entity.id,
        user_id=user_id,
        new_values=serialize_model(entity),
    )


def log_update(
    db: Session,
    user_id: Optional[int],
    entity: Any,
    old_values: dict,
) -> AuditLog:
    """Log entity update with the snapshot taken before the change."""
    return log_change(
        db,
        table_name=entity.__tablename__,
        action=AuditAction.UPDATE,
        record_id=entity.id,
        user_id=user_id,
        old_values=old_values,
        new_values=serialize_model(entity),
    )
