"""
API routers. Each module exposes ``router``.
"""

from .auth import router as auth_router
from .orders import router as orders_router
from .products import router as products_router
from .tables import router as tables_router
from .users import router as users_router
from .dashboard import router as dashboard_router
from .audit import router as audit_router

__all__ = [
    "auth_router",
    "orders_router",
    "products_router",
    "tables_router",
    "users_router",
    "dashboard_router",
    "audit_router",
]
