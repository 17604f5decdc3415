"""
Utilities module: Exceptions and schemas.
"""

from shared.utils.exceptions import (
    NotFoundError,
    ForbiddenError,
    ValidationError,
    InvalidStateError,
    ConstraintViolationError,
)

__all__ = [
    # exceptions
    "NotFoundError",
    "ForbiddenError",
    "ValidationError",
    "InvalidStateError",
    "ConstraintViolationError",
]
