"""
Order Domain Service.

Handles the order lifecycle: creation against a table, line items, payment
(single method or split between diners), cancellation with stock
restoration, and the kitchen flow of each line.

State machine: activa -> {pagada, cancelada}. Both targets are terminal and
every mutating operation starts with a guard that rejects terminal orders.
Every multi-step mutation runs inside one ``transaction()``.
"""

from __future__ import annotations

from collections import Counter
from datetime import date, timedelta

from sqlalchemy import String, cast, func, or_, select
from sqlalchemy.orm import Session, joinedload, selectinload

from shared.config.constants import (
    ITEM_STATUS_ORDER,
    ErrorMessages,
    ItemStatus,
    Limits,
    MovementReason,
    OrderStatus,
    PaymentMethod,
    TableStatus,
    validate_enum_value,
)
from shared.config.logging import orders_logger as logger
from shared.config.settings import settings
from shared.infrastructure.db import transaction
from shared.utils.exceptions import (
    InsufficientStockError,
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
    PaymentAmountError,
    ValidationError,
)
from shared.utils.schemas import (
    AddItemsRequest,
    CancelOrderRequest,
    CreateOrderRequest,
    OrderItemInput,
    OrderItemOutput,
    OrderListOutput,
    OrderOutput,
    OrderPaymentOutput,
    PayOrderRequest,
    SplitPaymentInput,
)
from taqueria_api.models import (
    Order,
    OrderItem,
    OrderPayment,
    Product,
    Table,
    User,
    start_of_day,
    utcnow,
)
from taqueria_api.services.audit import log_create, log_update, serialize_model
from taqueria_api.services.inventory import apply_stock_change


class OrderService:
    """
    Domain service for Order operations.

    ``stock_control`` defaults to the ``stock_control_enabled`` setting.
    When on, order lines take stock on creation and give it back on
    cancellation; when off, stock is never checked nor touched by orders.
    """

    def __init__(self, db: Session, *, stock_control: bool | None = None):
        self._db = db
        self._stock_control = (
            settings.stock_control_enabled if stock_control is None else stock_control
        )

    # =========================================================================
    # Reads
    # =========================================================================

    def get_order(self, order_id: int) -> OrderOutput:
        """Get one order with its lines and payments. Raises NotFoundError."""
        return self.to_output(self._get_order(order_id))

    def list_orders(
        self,
        *,
        status: str | None = None,
        search: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> OrderListOutput:
        """
        List orders, newest first, split into active and history.

        Filters combine. ``search`` matches (case-insensitive substring) the
        order id, the table number or the name of the user who opened it.
        ``date_from``/``date_to`` are inclusive calendar days (UTC).
        """
        stmt = (
            select(Order)
            .join(Table, Order.table_id == Table.id)
            .join(User, Order.user_id == User.id)
            .options(*self._detail_options())
        )

        if status:
            if not validate_enum_value(OrderStatus, status):
                raise ValidationError(f"Estado de orden inválido: {status}", field="status")
            stmt = stmt.where(Order.status == status)

        if search and search.strip():
            pattern = _contains_pattern(search.strip()[: Limits.MAX_SEARCH_TERM_LENGTH].lower())
            stmt = stmt.where(
                or_(
                    cast(Order.id, String).like(pattern, escape="\\"),
                    cast(Table.number, String).like(pattern, escape="\\"),
                    func.lower(User.name).like(pattern, escape="\\"),
                )
            )

        if date_from is not None:
            stmt = stmt.where(Order.created_at >= start_of_day(date_from))
        if date_to is not None:
            stmt = stmt.where(Order.created_at < start_of_day(date_to + timedelta(days=1)))

        orders = self._db.scalars(stmt.order_by(Order.created_at.desc(), Order.id.desc())).unique().all()

        active = [self.to_output(o) for o in orders if o.status == OrderStatus.ACTIVA.value]
        history = [self.to_output(o) for o in orders if o.status != OrderStatus.ACTIVA.value]
        return OrderListOutput(active=active, history=history)

    # =========================================================================
    # Creation
    # =========================================================================

    def create_order(self, request: CreateOrderRequest, user_id: int) -> OrderOutput:
        """
        Open a new order on a table.

        All checks run before any write; the order, its lines, the stock
        decrements and the table update are committed together or not at all.

        Raises:
            ValidationError: Bad diner count, empty order, non-positive quantity.
            NotFoundError: Table or product does not exist.
            InvalidStateError: Table in maintenance or already busy, product unavailable.
            InsufficientStockError: Not enough stock for a product.
        """
        if request.diner_count < 1 or request.diner_count > Limits.MAX_DINER_COUNT:
            raise ValidationError(
                f"El número de personas debe estar entre 1 y {Limits.MAX_DINER_COUNT}",
                field="diner_count",
            )
        _validate_note(request.notes, "notes")
        self._validate_items(request.items)

        table = self._db.get(Table, request.table_id)
        if not table:
            raise NotFoundError("Mesa", request.table_id)
        if table.status == TableStatus.MANTENIMIENTO.value:
            raise InvalidStateError(
                "Mesa",
                table.status,
                detail=f"La mesa {table.number} está en mantenimiento",
                table_id=table.id,
            )
        active_id = self._active_order_id(table.id)
        if active_id is not None:
            raise InvalidStateError(
                "Mesa",
                table.status,
                detail=ErrorMessages.TABLE_HAS_ACTIVE_ORDER,
                table_id=table.id,
                order_id=active_id,
            )

        products = self._load_products(request.items)

        with transaction(self._db, "crear orden"):
            order = Order(
                table_id=table.id,
                user_id=user_id,
                diner_count=request.diner_count,
                total_cents=0,
                status=OrderStatus.ACTIVA.value,
                notes=_clean_note(request.notes),
            )
            order.set_created_by(user_id)
            self._db.add(order)
            self._db.flush()

            self._insert_items(order, request.items, products, user_id)
            self._recompute_total(order)

            table_before = serialize_model(table)
            table.current_order_id = order.id
            table.status = TableStatus.OCUPADA.value
            table.set_updated_by(user_id)

            log_create(self._db, user_id, order)
            log_update(self._db, user_id, table, table_before)

        logger.info(
            "Order created",
            order_id=order.id,
            table_id=table.id,
            items=len(request.items),
            total_cents=order.total_cents,
            user_id=user_id,
        )
        return self.get_order(order.id)

    def add_items(self, order_id: int, request: AddItemsRequest, user_id: int) -> OrderOutput:
        """Add lines to an active order with the same rules as creation."""
        order = self._get_order(order_id)
        self._ensure_active(order)
        self._validate_items(request.items)
        products = self._load_products(request.items)

        with transaction(self._db, "agregar productos a la orden"):
            before = serialize_model(order)
            self._insert_items(order, request.items, products, user_id)
            self._recompute_total(order)
            order.set_updated_by(user_id)
            log_update(self._db, user_id, order, before)

        logger.info(
            "Items added to order",
            order_id=order.id,
            items=len(request.items),
            total_cents=order.total_cents,
            user_id=user_id,
        )
        return self.get_order(order.id)

    # =========================================================================
    # Closing: payment and cancellation
    # =========================================================================

    def pay_order(self, order_id: int, request: PayOrderRequest, user_id: int) -> OrderOutput:
        """
        Close an active order as paid.

        Takes either a single ``payment_method`` or a ``split_payments``
        breakdown whose amounts add up exactly to the order total. A split
        payment leaves ``Order.payment_method`` empty and stores one
        ``OrderPayment`` row per diner.
        """
        order = self._get_order(order_id)
        self._ensure_active(order)
        _validate_note(request.notes, "notes")

        has_method = request.payment_method is not None
        has_split = request.split_payments is not None
        if has_method == has_split:
            raise ValidationError(
                "Indique un método de pago o una división de pagos (solo uno de los dos)",
                field="payment_method",
            )
        if has_method:
            _validate_payment_method(request.payment_method, "payment_method")
        else:
            self._validate_split(order, request.split_payments)

        with transaction(self._db, "pagar orden"):
            before = serialize_model(order)
            order.status = OrderStatus.PAGADA.value
            order.closed_at = utcnow()
            order.payment_method = request.payment_method if has_method else None
            if has_split:
                for split in request.split_payments:
                    self._db.add(
                        OrderPayment(
                            order_id=order.id,
                            diner_number=split.diner_number,
                            amount_cents=split.amount_cents,
                            payment_method=split.payment_method,
                        )
                    )
            order.notes = _append_note(order.notes, request.notes)
            order.set_updated_by(user_id)
            log_update(self._db, user_id, order, before)
            self._release_table(order, user_id)

        logger.info(
            "Order paid",
            order_id=order.id,
            total_cents=order.total_cents,
            payment_method=order.payment_method or "dividido",
            splits=len(request.split_payments or []),
            user_id=user_id,
        )
        return self.get_order(order.id)

    def cancel_order(self, order_id: int, request: CancelOrderRequest, user_id: int) -> OrderOutput:
        """
        Cancel an active order.

        Every non-cancelled line gives its quantity back to the product with
        one ``entrada`` movement per line. Stock is restored entirely or not
        at all.
        """
        order = self._get_order(order_id)
        self._ensure_active(order)
        _validate_note(request.notes, "notes")

        with transaction(self._db, "cancelar orden"):
            before = serialize_model(order)
            restored = 0
            if self._stock_control:
                for item in order.items:
                    if item.is_cancelled:
                        continue
                    apply_stock_change(
                        self._db,
                        item.product,
                        item.qty,
                        reason=MovementReason.CANCELACION,
                        user_id=user_id,
                        order_id=order.id,
                    )
                    restored += 1

            order.status = OrderStatus.CANCELADA.value
            order.closed_at = utcnow()
            note = _clean_note(request.notes)
            if note:
                order.notes = _append_note(order.notes, f"Cancelación: {note}")
            order.set_updated_by(user_id)
            log_update(self._db, user_id, order, before)
            self._release_table(order, user_id)

        logger.info(
            "Order cancelled",
            order_id=order.id,
            lines_restored=restored,
            user_id=user_id,
        )
        return self.get_order(order.id)

    # =========================================================================
    # Line items
    # =========================================================================

    def cancel_item(self, order_id: int, item_id: int, user_id: int) -> OrderOutput:
        """Cancel one line of an active order, restoring its stock."""
        order = self._get_order(order_id)
        self._ensure_active(order)
        item = self._get_item(order, item_id)
        if item.is_cancelled:
            raise InvalidStateError(
                "Detalle de orden",
                "cancelado",
                detail=f"El detalle {item.id} ya está cancelado",
                order_id=order.id,
            )

        with transaction(self._db, "cancelar detalle de orden"):
            before = serialize_model(order)
            item.is_cancelled = True
            item.set_updated_by(user_id)
            if self._stock_control:
                apply_stock_change(
                    self._db,
                    item.product,
                    item.qty,
                    reason=MovementReason.CANCELACION_DETALLE,
                    user_id=user_id,
                    order_id=order.id,
                )
            self._db.flush()
            self._recompute_total(order)
            order.set_updated_by(user_id)
            log_update(self._db, user_id, order, before)

        logger.info(
            "Order item cancelled",
            order_id=order.id,
            item_id=item.id,
            total_cents=order.total_cents,
            user_id=user_id,
        )
        return self.get_order(order.id)

    def update_item_status(
        self, order_id: int, item_id: int, status: str, user_id: int
    ) -> OrderOutput:
        """
        Move a line forward in the kitchen flow:
        pendiente -> en_preparacion -> listo -> entregado.
        """
        if not validate_enum_value(ItemStatus, status):
            raise ValidationError(f"Estado de detalle inválido: {status}", field="status")

        order = self._get_order(order_id)
        self._ensure_active(order)
        item = self._get_item(order, item_id)
        if item.is_cancelled:
            raise InvalidStateError(
                "Detalle de orden",
                "cancelado",
                detail=f"El detalle {item.id} está cancelado",
                order_id=order.id,
            )
        if ITEM_STATUS_ORDER.index(status) <= ITEM_STATUS_ORDER.index(item.status):
            raise InvalidTransitionError("Detalle de orden", item.status, status, item_id=item.id)

        with transaction(self._db, "actualizar estado de detalle"):
            item.status = status
            item.set_updated_by(user_id)

        logger.info(
            "Order item status updated",
            order_id=order.id,
            item_id=item.id,
            status=status,
            user_id=user_id,
        )
        return self.get_order(order.id)

    # =========================================================================
    # Output
    # =========================================================================

    def to_output(self, order: Order) -> OrderOutput:
        """Build the detailed output of a loaded order."""
        return OrderOutput(
            id=order.id,
            table_id=order.table_id,
            table_number=order.table.number,
            user_id=order.user_id,
            waiter_name=order.user.name if order.user else None,
            diner_count=order.diner_count,
            total_cents=order.total_cents,
            status=order.status,
            payment_method=order.payment_method,
            notes=order.notes,
            created_at=order.created_at,
            closed_at=order.closed_at,
            items=[
                OrderItemOutput(
                    id=item.id,
                    product_id=item.product_id,
                    product_name=item.product.name,
                    qty=item.qty,
                    unit_price_cents=item.unit_price_cents,
                    subtotal_cents=item.subtotal_cents,
                    status=item.status,
                    notes=item.notes,
                    is_cancelled=item.is_cancelled,
                )
                for item in order.items
            ],
            payments=[
                OrderPaymentOutput(
                    diner_number=p.diner_number,
                    amount_cents=p.amount_cents,
                    payment_method=p.payment_method,
                )
                for p in order.payments
            ],
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _detail_options() -> list:
        return [
            joinedload(Order.table),
            joinedload(Order.user),
            selectinload(Order.items).joinedload(OrderItem.product),
            selectinload(Order.payments),
        ]

    def _get_order(self, order_id: int) -> Order:
        order = self._db.scalar(
            select(Order).options(*self._detail_options()).where(Order.id == order_id)
        )
        if not order:
            raise NotFoundError("Orden", order_id)
        return order

    @staticmethod
    def _get_item(order: Order, item_id: int) -> OrderItem:
        for item in order.items:
            if item.id == item_id:
                return item
        raise NotFoundError("Detalle de orden", item_id, order_id=order.id)

    @staticmethod
    def _ensure_active(order: Order) -> None:
        if order.status != OrderStatus.ACTIVA.value:
            raise InvalidStateError(
                "Orden",
                order.status,
                [OrderStatus.ACTIVA.value],
                order_id=order.id,
            )

    def _active_order_id(self, table_id: int) -> int | None:
        return self._db.scalar(
            select(Order.id).where(
                Order.table_id == table_id,
                Order.status == OrderStatus.ACTIVA.value,
            )
        )

    @staticmethod
    def _validate_items(items: list[OrderItemInput]) -> None:
        if not items:
            raise ValidationError(ErrorMessages.EMPTY_ORDER, field="items")
        for index, item in enumerate(items):
            if item.qty < Limits.MIN_QUANTITY:
                raise ValidationError(
                    ErrorMessages.INVALID_QUANTITY, field=f"items[{index}].qty"
                )
            if item.qty > Limits.MAX_QUANTITY:
                raise ValidationError(
                    f"La cantidad no puede superar {Limits.MAX_QUANTITY}",
                    field=f"items[{index}].qty",
                )
            _validate_note(item.notes, f"items[{index}].notes")

    def _load_products(self, items: list[OrderItemInput]) -> dict[int, Product]:
        """
        Load and check every requested product.

        With stock control on, the requested quantities are summed per
        product before comparing against stock, so two lines of the same
        product cannot jointly overdraw it.
        """
        ids = {item.product_id for item in items}
        products = {
            p.id: p for p in self._db.scalars(select(Product).where(Product.id.in_(ids))).all()
        }

        for item in items:
            product = products.get(item.product_id)
            if product is None:
                raise NotFoundError("Producto", item.product_id)
            if not product.is_available:
                raise InvalidStateError(
                    "Producto",
                    "no disponible",
                    detail=f"El producto '{product.name}' no está disponible",
                    product_id=product.id,
                )

        if self._stock_control:
            requested = Counter()
            for item in items:
                requested[item.product_id] += item.qty
            for product_id, qty in requested.items():
                product = products[product_id]
                if qty > product.stock:
                    raise InsufficientStockError(product_id, product.stock, qty)

        return products

    def _insert_items(
        self,
        order: Order,
        items: list[OrderItemInput],
        products: dict[int, Product],
        user_id: int,
    ) -> None:
        for item in items:
            product = products[item.product_id]
            line = OrderItem(
                order_id=order.id,
                product_id=product.id,
                qty=item.qty,
                # Snapshot: later price edits never reach this line
                unit_price_cents=product.price_cents,
                status=ItemStatus.PENDIENTE.value,
                notes=_clean_note(item.notes),
                is_cancelled=False,
            )
            line.set_created_by(user_id)
            self._db.add(line)

            if self._stock_control:
                apply_stock_change(
                    self._db,
                    product,
                    -item.qty,
                    reason=MovementReason.ORDEN,
                    user_id=user_id,
                    order_id=order.id,
                )
        self._db.flush()

    def _recompute_total(self, order: Order) -> None:
        """Set the total from the persisted non-cancelled lines (flush first)."""
        order.total_cents = self._db.scalar(
            select(
                func.coalesce(func.sum(OrderItem.qty * OrderItem.unit_price_cents), 0)
            ).where(
                OrderItem.order_id == order.id,
                OrderItem.is_cancelled.is_(False),
            )
        )

    def _release_table(self, order: Order, user_id: int) -> None:
        """Detach a closing order from its table. The table status is left as is."""
        table = order.table
        if table.current_order_id != order.id:
            return
        before = serialize_model(table)
        table.current_order_id = None
        table.set_updated_by(user_id)
        log_update(self._db, user_id, table, before)

    def _validate_split(self, order: Order, splits: list[SplitPaymentInput]) -> None:
        if not splits:
            raise ValidationError("La división de pagos está vacía", field="split_payments")

        seen: set[int] = set()
        for split in splits:
            if split.diner_number < 1 or split.diner_number > order.diner_count:
                raise ValidationError(
                    f"Número de cliente inválido: {split.diner_number} "
                    f"(la orden tiene {order.diner_count} personas)",
                    field="split_payments",
                )
            if split.diner_number in seen:
                raise ValidationError(
                    f"El cliente {split.diner_number} aparece más de una vez",
                    field="split_payments",
                )
            seen.add(split.diner_number)
            if split.amount_cents <= 0:
                raise PaymentAmountError(split.amount_cents, "debe ser mayor a cero")
            if split.payment_method is not None:
                _validate_payment_method(split.payment_method, "split_payments")

        paid = sum(split.amount_cents for split in splits)
        if paid != order.total_cents:
            raise PaymentAmountError(
                paid, f"la suma debe ser igual al total de la orden ({order.total_cents})"
            )


def _contains_pattern(term: str) -> str:
    """LIKE pattern matching ``term`` literally, for use with ``escape="\\"``."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _validate_payment_method(method: str, field: str) -> None:
    if not validate_enum_value(PaymentMethod, method):
        raise ValidationError(f"Método de pago inválido: {method}", field=field)


def _validate_note(note: str | None, field: str) -> None:
    if note and len(note) > Limits.MAX_NOTES_LENGTH:
        raise ValidationError(
            f"Las notas no pueden superar {Limits.MAX_NOTES_LENGTH} caracteres", field=field
        )


def _clean_note(note: str | None) -> str | None:
    if note is None:
        return None
    return note.strip() or None


def _append_note(existing: str | None, note: str | None) -> str | None:
    """Notes are only ever appended, one per line."""
    note = _clean_note(note)
    if not note:
        return existing
    return f"{existing}\n{note}" if existing else note
