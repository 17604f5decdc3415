"""
User Service.

Staff accounts and login. Users are never deleted, only toggled between
activo and inactivo.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from shared.config.constants import ErrorMessages, Limits, Role, UserStatus, validate_enum_value
from shared.config.logging import auth_logger, get_logger, mask_login
from shared.infrastructure.db import transaction
from shared.security.password import hash_password, verify_password
from shared.utils.exceptions import (
    AuthenticationError,
    DuplicateEntityError,
    NotFoundError,
    ValidationError,
)
from shared.utils.schemas import UserCreate, UserOutput, UserUpdate
from taqueria_api.models import User, utcnow
from taqueria_api.services.audit import log_create, log_update, serialize_model

logger = get_logger(__name__)


class UserService:
    """Service for staff user management."""

    def __init__(self, db: Session):
        self._db = db

    def list_users(self) -> list[UserOutput]:
        users = self._db.scalars(select(User).order_by(User.name)).all()
        return [UserOutput.model_validate(u) for u in users]

    def get_user(self, user_id: int) -> UserOutput:
        return UserOutput.model_validate(self._get(user_id))

    def create_user(self, data: UserCreate, user_id: int | None) -> UserOutput:
        name = _validate_name(data.name)
        username = _validate_username(data.username)
        _validate_password(data.password)
        _validate_role(data.role)
        self._ensure_username_free(username)

        with transaction(
            self._db, "crear usuario", on_duplicate=lambda: DuplicateEntityError("Usuario", username)
        ):
            user = User(
                name=name,
                username=username,
                password_hash=hash_password(data.password),
                role=data.role,
                status=UserStatus.ACTIVO.value,
            )
            user.set_created_by(user_id)
            self._db.add(user)
            self._db.flush()
            log_create(self._db, user_id, user)

        logger.info("User created", user_id=user.id, role=user.role, by=user_id)
        return UserOutput.model_validate(user)

    def update_user(self, target_id: int, data: UserUpdate, user_id: int | None) -> UserOutput:
        """Partial update. An empty or missing password keeps the current one."""
        user = self._get(target_id)

        changes: dict = {}
        if data.name is not None:
            changes["name"] = _validate_name(data.name)
        if data.username is not None:
            username = _validate_username(data.username)
            if username != user.username:
                self._ensure_username_free(username)
            changes["username"] = username
        if data.role is not None:
            _validate_role(data.role)
            changes["role"] = data.role
        if data.password:
            _validate_password(data.password)
            changes["password_hash"] = hash_password(data.password)

        with transaction(
            self._db,
            "actualizar usuario",
            on_duplicate=lambda: DuplicateEntityError("Usuario", changes.get("username")),
        ):
            before = serialize_model(user)
            for key, value in changes.items():
                setattr(user, key, value)
            user.set_updated_by(user_id)
            log_update(self._db, user_id, user, before)

        logger.info(
            "User updated",
            user_id=user.id,
            fields=sorted(k for k in changes if k != "password_hash"),
            password_changed="password_hash" in changes,
        )
        return UserOutput.model_validate(user)

    def toggle_active(self, target_id: int, user_id: int | None) -> UserOutput:
        """Flip a user between activo and inactivo. Users cannot deactivate themselves."""
        user = self._get(target_id)
        if user.id == user_id and user.is_active:
            raise ValidationError("No puede desactivar su propio usuario", field="id")

        with transaction(self._db, "cambiar estado de usuario"):
            before = serialize_model(user)
            user.status = (
                UserStatus.INACTIVO.value if user.is_active else UserStatus.ACTIVO.value
            )
            user.set_updated_by(user_id)
            log_update(self._db, user_id, user, before)

        logger.info("User status toggled", user_id=user.id, status=user.status)
        return UserOutput.model_validate(user)

    def authenticate(self, username: str, password: str) -> User:
        """
        Check credentials and stamp the last login time.

        Raises:
            AuthenticationError: Unknown user, wrong password or inactive account.
        """
        user = self._db.scalar(select(User).where(User.username == username.strip()))
        if not user or not verify_password(password, user.password_hash):
            auth_logger.warning("Login failed", username=mask_login(username))
            raise AuthenticationError(ErrorMessages.INVALID_CREDENTIALS)
        if not user.is_active:
            auth_logger.warning("Login rejected for inactive user", user_id=user.id)
            raise AuthenticationError(ErrorMessages.INACTIVE_USER)

        with transaction(self._db, "registrar acceso"):
            user.last_login_at = utcnow()

        auth_logger.info("Login", user_id=user.id, role=user.role)
        return user

    # =========================================================================
    # Helpers
    # =========================================================================

    def _get(self, user_id: int) -> User:
        user = self._db.get(User, user_id)
        if not user:
            raise NotFoundError("Usuario", user_id)
        return user

    def _ensure_username_free(self, username: str) -> None:
        if self._db.scalar(select(User.id).where(User.username == username)) is not None:
            raise DuplicateEntityError("Usuario", username)


def _validate_name(name: str) -> str:
    name = (name or "").strip()
    if len(name) < Limits.MIN_USER_NAME_LENGTH:
        raise ValidationError(
            f"El nombre debe tener al menos {Limits.MIN_USER_NAME_LENGTH} caracteres",
            field="name",
        )
    if len(name) > Limits.MAX_USER_NAME_LENGTH:
        raise ValidationError(
            f"El nombre no puede exceder {Limits.MAX_USER_NAME_LENGTH} caracteres",
            field="name",
        )
    return name


def _validate_username(username: str) -> str:
    username = (username or "").strip()
    if not username:
        raise ValidationError("El usuario es requerido", field="username")
    return username


def _validate_password(password: str) -> None:
    if not password or len(password) < Limits.MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"La contraseña debe tener al menos {Limits.MIN_PASSWORD_LENGTH} caracteres",
            field="password",
        )


def _validate_role(role: str) -> None:
    if not validate_enum_value(Role, role):
        raise ValidationError(f"Rol inválido: {role}", field="role")
