"""
Centralized constants for the backend application.

Every closed value set (roles, table/order/line states, payment methods,
inventory movement types) is a ``str`` enum so values persist as plain text
and compare equal to their stored strings.

Usage:
    from shared.config.constants import OrderStatus, TERMINAL_ORDER_STATUSES

    if order.status in TERMINAL_ORDER_STATUSES:
        ...
"""

from enum import Enum
from typing import Final


# =============================================================================
# User Roles
# =============================================================================


class Role(str, Enum):
    """Staff roles."""

    ADMIN = "admin"
    MESERO = "mesero"
    COCINERO = "cocinero"
    CAJERO = "cajero"


class UserStatus(str, Enum):
    """User account status. Users are never hard-deleted."""

    ACTIVO = "activo"
    INACTIVO = "inactivo"


# Role groups for common access patterns
MANAGEMENT_ROLES: Final[frozenset[str]] = frozenset({Role.ADMIN.value})
FLOOR_ROLES: Final[frozenset[str]] = frozenset({Role.ADMIN.value, Role.MESERO.value})
CHECKOUT_ROLES: Final[frozenset[str]] = frozenset(
    {Role.ADMIN.value, Role.MESERO.value, Role.CAJERO.value}
)
KITCHEN_ROLES: Final[frozenset[str]] = frozenset({Role.ADMIN.value, Role.COCINERO.value})
REPORTING_ROLES: Final[frozenset[str]] = frozenset({Role.ADMIN.value, Role.CAJERO.value})
ALL_ROLES: Final[frozenset[str]] = frozenset(r.value for r in Role)


# =============================================================================
# Entity Status Constants
# =============================================================================


class TableStatus(str, Enum):
    """Mesa status."""

    DISPONIBLE = "disponible"
    OCUPADA = "ocupada"
    EN_SERVICIO = "en_servicio"
    MANTENIMIENTO = "mantenimiento"


class OrderStatus(str, Enum):
    """Order status. ``activa`` is the only non-terminal state."""

    ACTIVA = "activa"
    PAGADA = "pagada"
    CANCELADA = "cancelada"


TERMINAL_ORDER_STATUSES: Final[frozenset[str]] = frozenset(
    {OrderStatus.PAGADA.value, OrderStatus.CANCELADA.value}
)


class ItemStatus(str, Enum):
    """Order line (detalle) preparation status."""

    PENDIENTE = "pendiente"
    EN_PREPARACION = "en_preparacion"
    LISTO = "listo"
    ENTREGADO = "entregado"


# Forward-only preparation flow
ITEM_STATUS_ORDER: Final[list[str]] = [
    ItemStatus.PENDIENTE.value,
    ItemStatus.EN_PREPARACION.value,
    ItemStatus.LISTO.value,
    ItemStatus.ENTREGADO.value,
]


class PaymentMethod(str, Enum):
    """Accepted payment methods."""

    EFECTIVO = "efectivo"
    TARJETA = "tarjeta"
    TRANSFERENCIA = "transferencia"


# =============================================================================
# Inventory
# =============================================================================


class MovementType(str, Enum):
    """Inventory movement classification."""

    ENTRADA = "entrada"
    SALIDA = "salida"
    AJUSTE = "ajuste"


class MovementReason:
    """Standard reasons written to the inventory ledger."""

    ORDEN: Final[str] = "orden"
    CANCELACION: Final[str] = "cancelacion"
    CANCELACION_DETALLE: Final[str] = "cancelacion de detalle"
    STOCK_INICIAL: Final[str] = "stock inicial"


# =============================================================================
# Audit
# =============================================================================


class AuditAction:
    """Audit log actions."""

    CREATE: Final[str] = "CREATE"
    UPDATE: Final[str] = "UPDATE"


# =============================================================================
# Validation Constants
# =============================================================================


class Limits:
    """Validation limits."""

    # Quantity limits
    MIN_QUANTITY: Final[int] = 1
    MAX_QUANTITY: Final[int] = 99

    # Price limits (in cents)
    MIN_PRICE_CENTS: Final[int] = 0
    MAX_PRICE_CENTS: Final[int] = 100_000_00

    # String lengths
    MIN_USER_NAME_LENGTH: Final[int] = 3
    MAX_USER_NAME_LENGTH: Final[int] = 50
    MIN_PASSWORD_LENGTH: Final[int] = 6
    MAX_NAME_LENGTH: Final[int] = 200
    MAX_DESCRIPTION_LENGTH: Final[int] = 2000
    MAX_NOTES_LENGTH: Final[int] = 500
    MAX_SEARCH_TERM_LENGTH: Final[int] = 100

    # Diner limits
    DEFAULT_DINER_COUNT: Final[int] = 1
    MAX_DINER_COUNT: Final[int] = 30

    # Dashboard
    TOP_PRODUCTS: Final[int] = 5
    REVENUE_HISTORY_DAYS: Final[int] = 7

    # Audit log pages
    DEFAULT_AUDIT_PAGE: Final[int] = 100
    MAX_AUDIT_PAGE: Final[int] = 500


# =============================================================================
# Error Messages
# =============================================================================


class ErrorMessages:
    """Standardized error messages in Spanish."""

    # Auth errors
    NOT_AUTHENTICATED: Final[str] = "No autenticado"
    INVALID_TOKEN: Final[str] = "Token inválido"
    TOKEN_EXPIRED: Final[str] = "Token expirado"
    INVALID_CREDENTIALS: Final[str] = "Usuario o contraseña incorrectos"
    INACTIVE_USER: Final[str] = "El usuario está inactivo"

    # Validation errors
    INVALID_QUANTITY: Final[str] = "La cantidad debe ser mayor a cero"
    INVALID_PRICE: Final[str] = "El precio no puede ser negativo"
    EMPTY_ORDER: Final[str] = "La orden debe incluir al menos un producto"

    # State errors
    ORDER_CLOSED: Final[str] = "La orden ya está pagada o cancelada"
    TABLE_HAS_ACTIVE_ORDER: Final[str] = "La mesa ya tiene una orden activa"


def validate_enum_value(enum_cls: type[Enum], value: str) -> bool:
    """Check that ``value`` is one of the values of ``enum_cls``."""
    return value in {member.value for member in enum_cls}
