"""
Tests for UserService: staff accounts and authentication.
"""

import pytest

from shared.config.constants import UserStatus
from shared.security.password import verify_password
from shared.utils.exceptions import (
    AuthenticationError,
    DuplicateEntityError,
    NotFoundError,
    ValidationError,
)
from shared.utils.schemas import UserCreate, UserUpdate
from taqueria_api.models import User
from taqueria_api.services.domain import UserService


@pytest.fixture
def user_service(db_session):
    return UserService(db_session)


class TestCreateUser:
    def test_create_user_hashes_password(self, db_session, user_service, seed_admin_user):
        result = user_service.create_user(
            UserCreate(name="Ana Mesera", username="ana", password="ana12345", role="mesero"),
            seed_admin_user.id,
        )

        assert result.status == UserStatus.ACTIVO.value
        stored = db_session.get(User, result.id)
        assert stored.password_hash != "ana12345"
        assert verify_password("ana12345", stored.password_hash)

    def test_duplicate_username(self, user_service, seed_admin_user):
        with pytest.raises(DuplicateEntityError):
            user_service.create_user(
                UserCreate(name="Otro Admin", username="admin", password="secret123", role="admin"),
                seed_admin_user.id,
            )

    @pytest.mark.parametrize(
        "kwargs, field",
        [
            ({"name": "Al", "username": "al", "password": "secret123", "role": "mesero"}, "name"),
            ({"name": "Alicia", "username": " ", "password": "secret123", "role": "mesero"}, "username"),
            ({"name": "Alicia", "username": "alicia", "password": "123", "role": "mesero"}, "password"),
            ({"name": "Alicia", "username": "alicia", "password": "secret123", "role": "gerente"}, "role"),
        ],
    )
    def test_create_validation(self, user_service, seed_admin_user, kwargs, field):
        with pytest.raises(ValidationError) as exc_info:
            user_service.create_user(UserCreate(**kwargs), seed_admin_user.id)
        assert exc_info.value.field == field


class TestUpdateUser:
    def test_empty_password_keeps_hash(self, db_session, user_service, seed_admin_user, seed_waiter_user):
        old_hash = seed_waiter_user.password_hash

        result = user_service.update_user(
            seed_waiter_user.id, UserUpdate(name="Juan Pérez", password=""), seed_admin_user.id
        )

        assert result.name == "Juan Pérez"
        db_session.refresh(seed_waiter_user)
        assert seed_waiter_user.password_hash == old_hash

    def test_new_password_is_hashed(self, db_session, user_service, seed_admin_user, seed_waiter_user):
        user_service.update_user(seed_waiter_user.id, UserUpdate(password="nueva123"), seed_admin_user.id)

        db_session.refresh(seed_waiter_user)
        assert verify_password("nueva123", seed_waiter_user.password_hash)

    def test_rename_to_taken_username(self, user_service, seed_admin_user, seed_waiter_user):
        with pytest.raises(DuplicateEntityError):
            user_service.update_user(seed_waiter_user.id, UserUpdate(username="admin"), seed_admin_user.id)

    def test_concurrent_rename_is_conflict(
        self, monkeypatch, db_session, user_service, seed_admin_user, seed_waiter_user
    ):
        monkeypatch.setattr(UserService, "_ensure_username_free", lambda self, username: None)

        with pytest.raises(DuplicateEntityError) as exc_info:
            user_service.update_user(seed_waiter_user.id, UserUpdate(username="admin"), seed_admin_user.id)

        assert exc_info.value.status_code == 409
        db_session.refresh(seed_waiter_user)
        assert seed_waiter_user.username == "juan"

    def test_update_unknown_user(self, user_service, seed_admin_user):
        with pytest.raises(NotFoundError):
            user_service.update_user(404, UserUpdate(name="Nadie Aquí"), seed_admin_user.id)


class TestToggleActive:
    def test_toggle_round_trip(self, user_service, seed_admin_user, seed_waiter_user):
        assert user_service.toggle_active(seed_waiter_user.id, seed_admin_user.id).status == "inactivo"
        assert user_service.toggle_active(seed_waiter_user.id, seed_admin_user.id).status == "activo"

    def test_cannot_deactivate_self(self, user_service, seed_admin_user):
        with pytest.raises(ValidationError):
            user_service.toggle_active(seed_admin_user.id, seed_admin_user.id)


class TestAuthenticate:
    def test_authenticate_stamps_last_login(self, user_service, seed_waiter_user):
        assert seed_waiter_user.last_login_at is None

        user = user_service.authenticate("juan", "juan123")

        assert user.id == seed_waiter_user.id
        assert user.last_login_at is not None

    @pytest.mark.parametrize("username, password", [("juan", "wrong"), ("nadie", "juan123")])
    def test_bad_credentials(self, user_service, seed_waiter_user, username, password):
        with pytest.raises(AuthenticationError):
            user_service.authenticate(username, password)

    def test_inactive_user_rejected(self, db_session, user_service, seed_waiter_user):
        seed_waiter_user.status = UserStatus.INACTIVO.value
        db_session.commit()

        with pytest.raises(AuthenticationError):
            user_service.authenticate("juan", "juan123")
