"""
Domain services: business logic behind the routers.

Each service takes the request's Session and raises the shared typed
exceptions; routers only parse, authorize and delegate.
"""

from .order_service import OrderService
from .product_service import ProductService
from .table_service import TableService
from .user_service import UserService
from .dashboard_service import DashboardService
from .audit_service import AuditService

__all__ = [
    "OrderService",
    "ProductService",
    "TableService",
    "UserService",
    "DashboardService",
    "AuditService",
]
