"""
Shared Pydantic schemas used across the application.

Request bodies only carry type-level checks; domain rules (positive
quantities, known enum values, payment sums) are enforced by the services
so that failures name the offending field and use the shared error types.
"""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field


# =============================================================================
# Common Types
# =============================================================================

Role = Literal["admin", "mesero", "cocinero", "cajero"]
UserStatus = Literal["activo", "inactivo"]
TableStatus = Literal["disponible", "ocupada", "en_servicio", "mantenimiento"]
OrderStatus = Literal["activa", "pagada", "cancelada"]
ItemStatus = Literal["pendiente", "en_preparacion", "listo", "entregado"]
PaymentMethod = Literal["efectivo", "tarjeta", "transferencia"]
MovementType = Literal["entrada", "salida", "ajuste"]


# =============================================================================
# Authentication Schemas
# =============================================================================


class LoginRequest(BaseModel):
    """Login request body."""

    username: str
    password: str


class UserInfo(BaseModel):
    """Authenticated user information."""

    id: int
    name: str
    username: str
    role: Role


class LoginResponse(BaseModel):
    """Login response with JWT token."""

    access_token: str
    token_type: str = "bearer"
    user: UserInfo


# =============================================================================
# User Schemas
# =============================================================================


class UserCreate(BaseModel):
    name: str
    username: str
    password: str
    role: str


class UserUpdate(BaseModel):
    """Partial update. A missing password keeps the current one."""

    name: str | None = None
    username: str | None = None
    password: str | None = None
    role: str | None = None


class UserOutput(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    name: str
    username: str
    role: Role
    status: UserStatus
    last_login_at: datetime | None = None
    created_at: datetime


# =============================================================================
# Table Schemas
# =============================================================================


class TableCreate(BaseModel):
    number: int
    capacity: int = 4
    location: str | None = None
    notes: str | None = None


class AssignWaiterRequest(BaseModel):
    waiter_id: int


class UpdateTableStatusRequest(BaseModel):
    status: str


class TableOutput(BaseModel):
    """Table with its assigned waiter and current active order."""

    id: int
    number: int
    capacity: int
    status: TableStatus
    location: str | None = None
    notes: str | None = None
    waiter_id: int | None = None
    waiter_name: str | None = None
    current_order_id: int | None = None


# =============================================================================
# Product / Inventory Schemas
# =============================================================================


class ProductCreate(BaseModel):
    """
    New product. ``stock`` and ``stock_minimum`` fall back to the configured
    defaults when omitted.
    """

    code: str | None = None
    name: str
    description: str | None = None
    price_cents: int
    category: str
    prep_time_minutes: int | None = None
    image: str | None = None
    is_available: bool = True
    stock: int | None = None
    stock_minimum: int | None = None


class ProductUpdate(BaseModel):
    """Partial product update. Stock is changed through stock adjustments only."""

    code: str | None = None
    name: str | None = None
    description: str | None = None
    price_cents: int | None = None
    category: str | None = None
    prep_time_minutes: int | None = None
    image: str | None = None
    is_available: bool | None = None
    stock_minimum: int | None = None


class StockAdjustRequest(BaseModel):
    """
    Signed stock change. Positive deltas are recorded as ``entrada``,
    negative ones as ``salida``; pass ``movement_type="ajuste"`` to record
    a manual correction instead.
    """

    delta: int
    reason: str = Field(default="ajuste manual")
    movement_type: str | None = None


class ProductOutput(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    code: str | None = None
    name: str
    description: str | None = None
    price_cents: int
    category: str
    prep_time_minutes: int | None = None
    image: str | None = None
    is_available: bool
    stock: int
    stock_minimum: int
    is_low_stock: bool


class InventoryMovementOutput(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    product_id: int
    movement_type: MovementType
    qty: int
    delta: int
    stock_after: int
    reason: str
    order_id: int | None = None
    user_id: int | None = None
    created_at: datetime


# =============================================================================
# Order Schemas
# =============================================================================


class OrderItemInput(BaseModel):
    """Input for a single line of an order."""

    product_id: int
    qty: int
    notes: str | None = None


class CreateOrderRequest(BaseModel):
    table_id: int
    diner_count: int = 1
    items: list[OrderItemInput]
    notes: str | None = None


class AddItemsRequest(BaseModel):
    items: list[OrderItemInput]


class SplitPaymentInput(BaseModel):
    """One diner's share of a split payment."""

    diner_number: int
    amount_cents: int
    payment_method: str | None = None


class PayOrderRequest(BaseModel):
    """Exactly one of ``payment_method`` or ``split_payments`` must be given."""

    payment_method: str | None = None
    split_payments: list[SplitPaymentInput] | None = None
    notes: str | None = None


class CancelOrderRequest(BaseModel):
    notes: str | None = None


class UpdateItemStatusRequest(BaseModel):
    status: str


class OrderItemOutput(BaseModel):
    id: int
    product_id: int
    product_name: str
    qty: int
    unit_price_cents: int
    subtotal_cents: int
    status: ItemStatus
    notes: str | None = None
    is_cancelled: bool


class OrderPaymentOutput(BaseModel):
    diner_number: int
    amount_cents: int
    payment_method: PaymentMethod | None = None


class OrderOutput(BaseModel):
    """Order with table, waiter and line-item detail."""

    id: int
    table_id: int
    table_number: int
    user_id: int
    waiter_name: str | None = None
    diner_count: int
    total_cents: int
    status: OrderStatus
    payment_method: PaymentMethod | None = None
    notes: str | None = None
    created_at: datetime
    closed_at: datetime | None = None
    items: list[OrderItemOutput]
    payments: list[OrderPaymentOutput] = []


class OrderListOutput(BaseModel):
    """Orders partitioned into in-progress and closed ones."""

    active: list[OrderOutput]
    history: list[OrderOutput]


# =============================================================================
# Dashboard Schemas
# =============================================================================


class TodaySummary(BaseModel):
    orders_total: int
    active: int
    paid: int
    cancelled: int
    revenue_cents: int


class TopProductOutput(BaseModel):
    product_id: int
    name: str
    qty_sold: int
    revenue_cents: int


class DailyRevenueOutput(BaseModel):
    day: date
    orders: int
    revenue_cents: int


class ActiveOrderSummary(BaseModel):
    id: int
    table_number: int
    waiter_name: str | None = None
    total_cents: int
    item_count: int
    created_at: datetime


class DashboardOutput(BaseModel):
    today: TodaySummary
    tables_by_status: dict[str, int]
    top_products: list[TopProductOutput]
    revenue_last_days: list[DailyRevenueOutput]
    active_orders: list[ActiveOrderSummary]


# =============================================================================
# Audit Schemas
# =============================================================================


class AuditLogOutput(BaseModel):
    """Audit log entry with the acting user's name and decoded snapshots."""

    id: int
    table_name: str
    action: str
    record_id: int
    user_id: int | None = None
    user_name: str | None = None
    old_values: dict | None = None
    new_values: dict | None = None
    created_at: datetime


# =============================================================================
# Health Schemas
# =============================================================================


class HealthOutput(BaseModel):
    status: Literal["ok", "degraded"]
    database: Literal["ok", "error"]
    environment: str
