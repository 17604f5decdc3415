"""
Centralized HTTP exceptions for consistent error handling.

Services raise these directly; because they are ``HTTPException`` subclasses
FastAPI renders them with the right status code and no per-route handling.
Every exception logs itself once on construction.

Usage:
    from shared.utils.exceptions import NotFoundError, InvalidStateError, ValidationError

    raise NotFoundError("Orden", order_id)
    raise InvalidStateError("Orden", order.status, ["activa"])
    raise ValidationError("La cantidad debe ser mayor a cero", field="qty")
"""

from fastapi import HTTPException, status
from typing import Any

from shared.config.logging import get_logger

logger = get_logger(__name__)


class AppException(HTTPException):
    """
    Base exception with automatic logging.

    All custom exceptions should inherit from this class
    to ensure consistent logging and response format.
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        log_level: str = "warning",
        headers: dict[str, str] | None = None,
        **log_context: Any,
    ):
        log_fn = getattr(logger, log_level, logger.warning)
        log_fn(detail, status_code=status_code, **log_context)

        super().__init__(status_code=status_code, detail=detail, headers=headers)


# =============================================================================
# 401 / 403 Errors
# =============================================================================


class AuthenticationError(AppException):
    """Missing, invalid or expired credentials (401)."""

    def __init__(self, detail: str = "No autenticado", **log_context: Any):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            log_level="warning",
            headers={"WWW-Authenticate": "Bearer"},
            **log_context,
        )


class ForbiddenError(AppException):
    """
    Authorization/permission error (403).

    Usage:
        raise ForbiddenError("editar productos")
    """

    def __init__(self, action: str | None = None, **log_context: Any):
        if action:
            detail = f"No autorizado para {action}"
        else:
            detail = "Acceso denegado"

        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            log_level="warning",
            action=action,
            **log_context,
        )


class InsufficientRoleError(ForbiddenError):
    """User doesn't have the required role."""

    def __init__(self, required_roles: list[str], **log_context: Any):
        roles_str = ", ".join(sorted(required_roles))
        super().__init__(
            f"realizar esta acción (requiere rol: {roles_str})",
            required_roles=sorted(required_roles),
            **log_context,
        )


# =============================================================================
# 404 Not Found Errors
# =============================================================================


class NotFoundError(AppException):
    """
    Entity not found error (404).

    Usage:
        raise NotFoundError("Producto", 123)
    """

    def __init__(self, entity: str, entity_id: int | str | None = None, **log_context: Any):
        if entity_id is not None:
            detail = f"{entity} con ID {entity_id} no encontrado"
        else:
            detail = f"{entity} no encontrado"

        self.entity = entity
        self.entity_id = entity_id

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            log_level="warning",
            entity=entity,
            entity_id=entity_id,
            **log_context,
        )


# =============================================================================
# 400 Bad Request Errors
# =============================================================================


class ValidationError(AppException):
    """
    Input validation error (400).

    ``field`` names the offending input field and is returned to the caller
    alongside the message.

    Usage:
        raise ValidationError("El precio no puede ser negativo", field="price_cents")
    """

    def __init__(self, detail: str, field: str | None = None, **log_context: Any):
        self.field = field
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            log_level="warning",
            field=field,
            **log_context,
        )


class InvalidStateError(AppException):
    """
    Entity is in an invalid state for the operation (400).

    Callers should refresh the entity before retrying.
    """

    def __init__(
        self,
        entity: str,
        current_state: str,
        expected_states: list[str] | None = None,
        detail: str | None = None,
        **log_context: Any,
    ):
        if detail is None:
            if expected_states:
                states_str = ", ".join(expected_states)
                detail = f"{entity} está en estado '{current_state}', se esperaba: {states_str}"
            else:
                detail = f"{entity} no puede estar en estado '{current_state}' para esta operación"

        self.current_state = current_state

        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            log_level="warning",
            entity=entity,
            current_state=current_state,
            **log_context,
        )


class InvalidTransitionError(InvalidStateError):
    """Invalid status transition."""

    def __init__(self, entity: str, from_status: str, to_status: str, **log_context: Any):
        detail = f"Transición inválida de '{from_status}' a '{to_status}' para {entity}"
        super().__init__(entity, from_status, detail=detail, to_status=to_status, **log_context)


class PaymentAmountError(ValidationError):
    """Payment amount validation error."""

    def __init__(self, amount: int, reason: str, **log_context: Any):
        detail = f"Monto de pago inválido ({amount}): {reason}"
        super().__init__(detail, field="split_payments", amount=amount, **log_context)


# =============================================================================
# 409 Conflict Errors
# =============================================================================


class ConstraintViolationError(AppException):
    """
    The operation would break a data invariant (409).

    Usage:
        raise ConstraintViolationError("El stock no puede quedar negativo")
    """

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            log_level="warning",
            **log_context,
        )


class InsufficientStockError(ConstraintViolationError):
    """Stock would go below zero."""

    def __init__(self, product_id: int, available: int, requested: int, **log_context: Any):
        self.product_id = product_id
        self.available = available
        self.requested = requested
        detail = (
            f"Stock insuficiente para el producto {product_id}: "
            f"disponible {available}, solicitado {requested}"
        )
        super().__init__(
            detail,
            product_id=product_id,
            available=available,
            requested=requested,
            **log_context,
        )


class DuplicateEntityError(ConstraintViolationError):
    """Entity with the same unique identifier already exists."""

    def __init__(self, entity: str, identifier: str | None = None, **log_context: Any):
        if identifier:
            detail = f"{entity} con identificador '{identifier}' ya existe"
        else:
            detail = f"{entity} ya existe"

        super().__init__(detail, entity=entity, identifier=identifier, **log_context)


# =============================================================================
# 500 Internal Server Errors
# =============================================================================


class DatabaseError(AppException):
    """
    Store failure mid-transaction (500). Nothing was committed, so the whole
    operation is safe to retry.
    """

    def __init__(self, operation: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error de base de datos durante {operation}. Por favor intente de nuevo.",
            log_level="error",
            operation=operation,
            **log_context,
        )
