"""
Table Service.

Tables (mesas) carry a status, an optional assigned waiter and a reference
to the order currently open on them. Orders set and clear that reference;
this service handles the floor operations.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from shared.config.constants import OrderStatus, Role, TableStatus, validate_enum_value
from shared.config.logging import get_logger
from shared.infrastructure.db import transaction
from shared.utils.exceptions import (
    DuplicateEntityError,
    NotFoundError,
    ValidationError,
)
from shared.utils.schemas import TableCreate, TableOutput
from taqueria_api.models import Order, Table, User
from taqueria_api.services.audit import log_create, log_update, serialize_model

logger = get_logger(__name__)


class TableService:
    """Service for table management."""

    def __init__(self, db: Session):
        self._db = db

    def list_tables(self) -> list[TableOutput]:
        """All tables by number, with waiter name and active order id."""
        tables = self._db.scalars(
            select(Table).options(joinedload(Table.waiter)).order_by(Table.number)
        ).all()
        active = self._active_orders_by_table()
        return [self.to_output(t, active.get(t.id)) for t in tables]

    def get_table(self, table_id: int) -> TableOutput:
        table = self._get(table_id)
        return self.to_output(table, self._active_orders_by_table(table.id).get(table.id))

    def create_table(self, data: TableCreate, user_id: int | None) -> TableOutput:
        if data.number < 1:
            raise ValidationError("El número de mesa debe ser positivo", field="number")
        if data.capacity < 1:
            raise ValidationError("La capacidad debe ser al menos 1", field="capacity")
        self._ensure_number_free(data.number)

        with transaction(
            self._db, "crear mesa", on_duplicate=lambda: DuplicateEntityError("Mesa", str(data.number))
        ):
            table = Table(
                number=data.number,
                capacity=data.capacity,
                status=TableStatus.DISPONIBLE.value,
                location=(data.location or "").strip() or None,
                notes=(data.notes or "").strip() or None,
            )
            table.set_created_by(user_id)
            self._db.add(table)
            self._db.flush()
            log_create(self._db, user_id, table)

        logger.info("Table created", table_id=table.id, number=table.number)
        return self.to_output(table, None)

    def assign_waiter(self, table_id: int, waiter_id: int, user_id: int | None) -> TableOutput:
        """
        Assign a waiter to a table. The table status does not change.

        Raises:
            NotFoundError: Table or user does not exist.
            ValidationError: User is inactive or not a mesero.
        """
        table = self._get(table_id)
        waiter = self._db.get(User, waiter_id)
        if not waiter:
            raise NotFoundError("Usuario", waiter_id)
        if waiter.role != Role.MESERO.value:
            raise ValidationError(
                f"El usuario {waiter.username} no es mesero", field="waiter_id"
            )
        if not waiter.is_active:
            raise ValidationError(
                f"El usuario {waiter.username} está inactivo", field="waiter_id"
            )

        with transaction(self._db, "asignar mesero"):
            before = serialize_model(table)
            table.waiter_id = waiter.id
            table.set_updated_by(user_id)
            log_update(self._db, user_id, table, before)

        logger.info("Waiter assigned", table_id=table.id, waiter_id=waiter.id)
        return self.get_table(table.id)

    def update_status(self, table_id: int, status: str, user_id: int | None) -> TableOutput:
        """
        Change a table's status.

        Moving to ``disponible`` always clears the assigned waiter; any other
        status leaves it. The order open on the table, if any, is not touched.
        """
        if not validate_enum_value(TableStatus, status):
            raise ValidationError(f"Estado de mesa inválido: {status}", field="status")

        table = self._get(table_id)

        with transaction(self._db, "actualizar estado de mesa"):
            before = serialize_model(table)
            table.status = status
            if status == TableStatus.DISPONIBLE.value:
                table.waiter_id = None
            table.set_updated_by(user_id)
            log_update(self._db, user_id, table, before)

        logger.info("Table status updated", table_id=table.id, status=status)
        return self.get_table(table.id)

    # =========================================================================
    # Helpers
    # =========================================================================

    def to_output(self, table: Table, current_order_id: int | None) -> TableOutput:
        return TableOutput(
            id=table.id,
            number=table.number,
            capacity=table.capacity,
            status=table.status,
            location=table.location,
            notes=table.notes,
            waiter_id=table.waiter_id,
            waiter_name=table.waiter.name if table.waiter else None,
            current_order_id=current_order_id,
        )

    def _get(self, table_id: int) -> Table:
        table = self._db.get(Table, table_id)
        if not table:
            raise NotFoundError("Mesa", table_id)
        return table

    def _ensure_number_free(self, number: int) -> None:
        if self._db.scalar(select(Table.id).where(Table.number == number)) is not None:
            raise DuplicateEntityError("Mesa", str(number))

    def _active_orders_by_table(self, table_id: int | None = None) -> dict[int, int]:
        """Map table id -> id of its active order."""
        stmt = select(Order.table_id, Order.id).where(Order.status == OrderStatus.ACTIVA.value)
        if table_id is not None:
            stmt = stmt.where(Order.table_id == table_id)
        return {row.table_id: row.id for row in self._db.execute(stmt)}
