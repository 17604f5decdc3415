"""
SQLAlchemy ORM Models Package.

- base: Base class and AuditMixin
- user: User
- table: Table (mesa)
- catalog: Product
- order: Order, OrderItem, OrderPayment
- inventory: InventoryMovement
- audit: AuditLog
"""

from .base import Base, AuditMixin, start_of_day, utcnow
from .user import User
from .table import Table
from .catalog import Product
from .order import Order, OrderItem, OrderPayment
from .inventory import InventoryMovement
from .audit import AuditLog

__all__ = [
    "Base",
    "AuditMixin",
    "start_of_day",
    "utcnow",
    "User",
    "Table",
    "Product",
    "Order",
    "OrderItem",
    "OrderPayment",
    "InventoryMovement",
    "AuditLog",
]
