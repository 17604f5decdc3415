"""
Tests for ProductService: catalog CRUD and stock adjustments.
"""

import pytest
from sqlalchemy import func, select

from shared.config.constants import MovementType
from shared.utils.exceptions import (
    DuplicateEntityError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from shared.utils.schemas import (
    CreateOrderRequest,
    OrderItemInput,
    ProductCreate,
    ProductUpdate,
    StockAdjustRequest,
)
from taqueria_api.models import InventoryMovement, Product
from taqueria_api.services.domain import OrderService, ProductService
from tests.conftest import make_product


@pytest.fixture
def product_service(db_session):
    return ProductService(db_session)


def _movements(db_session, product_id):
    return db_session.scalars(
        select(InventoryMovement)
        .where(InventoryMovement.product_id == product_id)
        .order_by(InventoryMovement.id)
    ).all()


class TestProductReads:
    """Tests for listing and lookups."""

    def test_list_filters(self, db_session, product_service, seed_taco, seed_drink):
        make_product(db_session, "Taco de Lengua", 3000, is_available=False)

        assert len(product_service.list_products()) == 3
        assert {p.name for p in product_service.list_products(category="bebidas")} == {"Agua de Horchata"}
        assert {p.name for p in product_service.list_products(is_available=False)} == {"Taco de Lengua"}

    def test_get_unknown_product(self, product_service):
        with pytest.raises(NotFoundError):
            product_service.get_product(404)

    def test_list_categories(self, product_service, seed_taco, seed_drink):
        assert product_service.list_categories() == ["bebidas", "tacos"]

    def test_low_stock(self, db_session, product_service, seed_taco):
        make_product(db_session, "Guacamole", 1500, stock=5, stock_minimum=10)
        make_product(db_session, "Frijoles", 1200, stock=10, stock_minimum=10)

        low = product_service.list_low_stock()

        assert [p.name for p in low] == ["Guacamole", "Frijoles"]
        assert all(p.is_low_stock for p in low)


class TestCreateProduct:
    """Tests for product creation."""

    def test_create_documents_initial_stock(self, db_session, product_service, seed_admin_user):
        product = product_service.create_product(
            ProductCreate(name="Taco de Pastor", price_cents=2000, category="tacos", stock=40),
            seed_admin_user.id,
        )

        assert product.stock == 40
        movements = _movements(db_session, product.id)
        assert len(movements) == 1
        assert movements[0].movement_type == MovementType.ENTRADA.value
        assert movements[0].qty == 40
        assert movements[0].reason == "stock inicial"

    def test_create_applies_default_stock(self, db_session, product_service, seed_admin_user):
        product = product_service.create_product(
            ProductCreate(name="Refresco", price_cents=2000, category="bebidas"),
            seed_admin_user.id,
        )

        assert product.stock == 100
        assert product.stock_minimum == 20

    def test_create_with_zero_stock_writes_no_movement(self, db_session, product_service, seed_admin_user):
        product = product_service.create_product(
            ProductCreate(name="Pozole", price_cents=8000, category="platos", stock=0),
            seed_admin_user.id,
        )

        assert product.stock == 0
        assert _movements(db_session, product.id) == []

    @pytest.mark.parametrize(
        "kwargs, field",
        [
            ({"name": "  ", "price_cents": 100, "category": "tacos"}, "name"),
            ({"name": "Taco", "price_cents": -1, "category": "tacos"}, "price_cents"),
            ({"name": "Taco", "price_cents": 100, "category": ""}, "category"),
            ({"name": "Taco", "price_cents": 100, "category": "tacos", "stock_minimum": -5}, "stock_minimum"),
            ({"name": "Taco", "price_cents": 100, "category": "tacos", "stock": -1}, "stock"),
        ],
    )
    def test_create_validation(self, db_session, product_service, seed_admin_user, kwargs, field):
        with pytest.raises(ValidationError) as exc_info:
            product_service.create_product(ProductCreate(**kwargs), seed_admin_user.id)

        assert exc_info.value.field == field
        assert product_service.list_products() == []

    def test_duplicate_code_rejected(self, product_service, seed_admin_user):
        product_service.create_product(
            ProductCreate(code="T-01", name="Taco", price_cents=100, category="tacos"),
            seed_admin_user.id,
        )

        with pytest.raises(DuplicateEntityError) as exc_info:
            product_service.create_product(
                ProductCreate(code="T-01", name="Otro taco", price_cents=100, category="tacos"),
                seed_admin_user.id,
            )
        assert exc_info.value.status_code == 409

    def test_concurrent_duplicate_code_is_conflict(
        self, monkeypatch, db_session, product_service, seed_admin_user
    ):
        """A request that passed the code check still gets 409 from the unique column."""
        first = product_service.create_product(
            ProductCreate(code="T-01", name="Taco", price_cents=100, category="tacos", stock=10),
            seed_admin_user.id,
        )
        monkeypatch.setattr(ProductService, "_ensure_code_free", lambda self, code: None)

        with pytest.raises(DuplicateEntityError) as exc_info:
            product_service.create_product(
                ProductCreate(code="T-01", name="Otro taco", price_cents=100, category="tacos", stock=10),
                seed_admin_user.id,
            )

        assert exc_info.value.status_code == 409
        assert db_session.scalar(select(func.count()).select_from(Product)) == 1
        assert db_session.scalar(select(func.count()).select_from(InventoryMovement)) == 1
        assert len(_movements(db_session, first.id)) == 1


class TestUpdateProduct:
    """Tests for product updates."""

    def test_update_preserves_id_stock_and_creation(self, db_session, product_service, seed_admin_user, seed_taco):
        created_at = seed_taco.created_at

        result = product_service.update_product(
            seed_taco.id,
            ProductUpdate(name="Taco de Arrachera", price_cents=3200),
            seed_admin_user.id,
        )

        assert result.id == seed_taco.id
        assert result.name == "Taco de Arrachera"
        assert result.price_cents == 3200
        assert result.stock == 100
        db_session.refresh(seed_taco)
        assert seed_taco.created_at == created_at
        assert seed_taco.updated_by_id == seed_admin_user.id

    def test_price_edit_keeps_order_lines(
        self, db_session, product_service, seed_admin_user, seed_waiter_user, seed_table, seed_taco
    ):
        order = OrderService(db_session, stock_control=True).create_order(
            CreateOrderRequest(table_id=seed_table.id, items=[OrderItemInput(product_id=seed_taco.id, qty=2)]),
            seed_waiter_user.id,
        )

        product_service.update_product(seed_taco.id, ProductUpdate(price_cents=100), seed_admin_user.id)

        reloaded = OrderService(db_session).get_order(order.id)
        assert reloaded.items[0].unit_price_cents == 2500
        assert reloaded.total_cents == 5000

    def test_update_validation(self, product_service, seed_admin_user, seed_taco):
        with pytest.raises(ValidationError):
            product_service.update_product(seed_taco.id, ProductUpdate(price_cents=-10), seed_admin_user.id)

    def test_update_unknown(self, product_service, seed_admin_user):
        with pytest.raises(NotFoundError):
            product_service.update_product(77, ProductUpdate(name="X"), seed_admin_user.id)


class TestAdjustStock:
    """Tests for stock adjustments."""

    def test_positive_delta_is_inflow(self, db_session, product_service, seed_admin_user, seed_taco):
        result = product_service.adjust_stock(
            seed_taco.id, StockAdjustRequest(delta=20, reason="compra"), seed_admin_user.id
        )

        assert result.stock == 120
        movements = _movements(db_session, seed_taco.id)
        assert len(movements) == 1
        assert movements[0].movement_type == MovementType.ENTRADA.value
        assert movements[0].qty == 20
        assert movements[0].stock_after == 120
        assert movements[0].reason == "compra"

    def test_negative_delta_is_outflow(self, db_session, product_service, seed_admin_user, seed_taco):
        result = product_service.adjust_stock(
            seed_taco.id, StockAdjustRequest(delta=-30, reason="merma"), seed_admin_user.id
        )

        assert result.stock == 70
        movements = _movements(db_session, seed_taco.id)
        assert movements[0].movement_type == MovementType.SALIDA.value
        assert movements[0].qty == 30
        assert movements[0].delta == -30

    def test_manual_correction(self, db_session, product_service, seed_admin_user, seed_taco):
        product_service.adjust_stock(
            seed_taco.id,
            StockAdjustRequest(delta=-3, reason="conteo físico", movement_type="ajuste"),
            seed_admin_user.id,
        )

        movements = _movements(db_session, seed_taco.id)
        assert movements[0].movement_type == MovementType.AJUSTE.value
        assert movements[0].qty == 3

    def test_cannot_go_negative(self, db_session, product_service, seed_admin_user, seed_taco):
        with pytest.raises(InsufficientStockError):
            product_service.adjust_stock(
                seed_taco.id, StockAdjustRequest(delta=-101, reason="merma"), seed_admin_user.id
            )

        db_session.refresh(seed_taco)
        assert seed_taco.stock == 100
        assert _movements(db_session, seed_taco.id) == []

    def test_down_to_zero_allowed(self, product_service, seed_admin_user, seed_taco):
        result = product_service.adjust_stock(
            seed_taco.id, StockAdjustRequest(delta=-100, reason="merma"), seed_admin_user.id
        )
        assert result.stock == 0

    @pytest.mark.parametrize(
        "body",
        [
            {"delta": 0, "reason": "nada"},
            {"delta": 5, "reason": "   "},
            {"delta": 5, "reason": "compra", "movement_type": "salida"},
        ],
    )
    def test_invalid_adjustments(self, db_session, product_service, seed_admin_user, seed_taco, body):
        with pytest.raises(ValidationError):
            product_service.adjust_stock(seed_taco.id, StockAdjustRequest(**body), seed_admin_user.id)

        assert _movements(db_session, seed_taco.id) == []

    def test_list_movements(self, product_service, seed_admin_user, seed_taco, seed_drink):
        product_service.adjust_stock(seed_taco.id, StockAdjustRequest(delta=1, reason="a"), seed_admin_user.id)
        product_service.adjust_stock(seed_drink.id, StockAdjustRequest(delta=2, reason="b"), seed_admin_user.id)
        product_service.adjust_stock(seed_taco.id, StockAdjustRequest(delta=-1, reason="c"), seed_admin_user.id)

        assert [m.reason for m in product_service.list_movements()] == ["c", "b", "a"]
        assert [m.reason for m in product_service.list_movements(product_id=seed_taco.id)] == ["c", "a"]


class TestToggleAvailability:
    """Tests for availability toggling."""

    def test_toggle_is_independent_of_stock(self, product_service, seed_admin_user, seed_taco):
        result = product_service.toggle_availability(seed_taco.id, seed_admin_user.id)
        assert result.is_available is False
        assert result.stock == 100

        result = product_service.toggle_availability(seed_taco.id, seed_admin_user.id)
        assert result.is_available is True

    def test_toggle_does_not_touch_ledger(self, db_session, product_service, seed_admin_user, seed_taco):
        product_service.toggle_availability(seed_taco.id, seed_admin_user.id)

        count = db_session.scalar(select(func.count()).select_from(InventoryMovement))
        assert count == 0
