"""
Pytest configuration and fixtures for backend tests.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from taqueria_api.main import app
from taqueria_api.models import Base, Product, Table, User
from taqueria_api.services.domain import OrderService
from shared.config.constants import Role, TableStatus, UserStatus
from shared.infrastructure.db import build_engine, get_db
from shared.security.auth import sign_jwt
from shared.security.password import hash_password


# SQLite in-memory database for testing, with the same pragmas as production
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = build_engine(SQLALCHEMY_DATABASE_URL, poolclass=StaticPool)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Low bcrypt cost keeps user fixtures fast
TEST_BCRYPT_ROUNDS = 4


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    Uses SQLite in-memory for isolation.
    """
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """
    Create a test client with database session override.
    The lifespan is not run: schema and data come from the fixtures.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    yield TestClient(app)

    app.dependency_overrides.clear()


# =============================================================================
# Users
# =============================================================================


def make_user(db_session, username: str, role: str, name: str | None = None,
              password: str = "secret123", status: str = UserStatus.ACTIVO.value) -> User:
    user = User(
        name=name or username.title(),
        username=username,
        password_hash=hash_password(password, rounds=TEST_BCRYPT_ROUNDS),
        role=role,
        status=status,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def headers_for(user: User) -> dict[str, str]:
    """Bearer headers for a user without going through the login endpoint."""
    token = sign_jwt({"sub": str(user.id), "role": user.role, "name": user.name})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def seed_admin_user(db_session):
    return make_user(db_session, "admin", Role.ADMIN.value, name="Administrador", password="admin123")


@pytest.fixture
def seed_waiter_user(db_session):
    return make_user(db_session, "juan", Role.MESERO.value, name="Juan Mesero", password="juan123")


@pytest.fixture
def seed_cook_user(db_session):
    return make_user(db_session, "pedro", Role.COCINERO.value, name="Pedro Cocinero")


@pytest.fixture
def seed_cashier_user(db_session):
    return make_user(db_session, "laura", Role.CAJERO.value, name="Laura Cajera")


@pytest.fixture
def auth_headers(seed_admin_user):
    return headers_for(seed_admin_user)


@pytest.fixture
def waiter_auth_headers(seed_waiter_user):
    return headers_for(seed_waiter_user)


@pytest.fixture
def cook_auth_headers(seed_cook_user):
    return headers_for(seed_cook_user)


@pytest.fixture
def cashier_auth_headers(seed_cashier_user):
    return headers_for(seed_cashier_user)


# =============================================================================
# Floor and menu
# =============================================================================


def make_table(db_session, number: int, capacity: int = 4,
               status: str = TableStatus.DISPONIBLE.value) -> Table:
    table = Table(number=number, capacity=capacity, status=status)
    db_session.add(table)
    db_session.commit()
    db_session.refresh(table)
    return table


def make_product(db_session, name: str, price_cents: int, stock: int = 100,
                 category: str = "tacos", is_available: bool = True,
                 stock_minimum: int = 20) -> Product:
    """Product inserted directly, so the ledger starts empty."""
    product = Product(
        name=name,
        price_cents=price_cents,
        category=category,
        stock=stock,
        stock_minimum=stock_minimum,
        is_available=is_available,
    )
    db_session.add(product)
    db_session.commit()
    db_session.refresh(product)
    return product


@pytest.fixture
def seed_table(db_session):
    return make_table(db_session, 1)


@pytest.fixture
def seed_second_table(db_session):
    return make_table(db_session, 2, capacity=6)


@pytest.fixture
def seed_taco(db_session):
    """Taco de Asada, $25.00, stock 100."""
    return make_product(db_session, "Taco de Asada", 2500, stock=100)


@pytest.fixture
def seed_drink(db_session):
    return make_product(db_session, "Agua de Horchata", 1500, stock=50, category="bebidas")


@pytest.fixture
def order_service(db_session):
    return OrderService(db_session, stock_control=True)
