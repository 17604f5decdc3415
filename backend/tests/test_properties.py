"""
Property-based tests with Hypothesis.

The database fixtures are function-scoped, so every example of a test shares
one database; each example works on its own table and products.
"""

from itertools import count

import pytest
from hypothesis import HealthCheck, assume, given, settings, strategies as st
from sqlalchemy import func, select

from shared.utils.exceptions import PaymentAmountError
from shared.utils.schemas import (
    CancelOrderRequest,
    CreateOrderRequest,
    OrderItemInput,
    PayOrderRequest,
    SplitPaymentInput,
)
from taqueria_api.models import InventoryMovement, Product
from tests.conftest import make_product, make_table

_numbers = count(1)

fixture_settings = settings(
    max_examples=25,
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
)

lines = st.lists(
    st.tuples(
        st.integers(min_value=1, max_value=20),  # qty
        st.integers(min_value=0, max_value=50_000),  # unit price
    ),
    min_size=1,
    max_size=5,
)


def _fresh_order(db_session, order_service, user, order_lines, diner_count=1):
    table = make_table(db_session, next(_numbers))
    products = [
        make_product(db_session, f"Producto {next(_numbers)}", price, stock=100)
        for _, price in order_lines
    ]
    order = order_service.create_order(
        CreateOrderRequest(
            table_id=table.id,
            diner_count=diner_count,
            items=[OrderItemInput(product_id=p.id, qty=q) for p, (q, _) in zip(products, order_lines)],
        ),
        user.id,
    )
    return order, products


def _ledger_sum(db_session, product_id):
    return db_session.scalar(
        select(func.coalesce(func.sum(InventoryMovement.delta), 0)).where(
            InventoryMovement.product_id == product_id
        )
    )


class TestOrderProperties:
    """Totals and stock stay consistent for arbitrary orders."""

    @given(order_lines=lines)
    @fixture_settings
    def test_total_is_sum_of_lines(self, db_session, order_service, seed_waiter_user, order_lines):
        order, _ = _fresh_order(db_session, order_service, seed_waiter_user, order_lines)

        assert order.total_cents == sum(q * price for q, price in order_lines)
        assert order.total_cents == sum(item.subtotal_cents for item in order.items)

    @given(order_lines=lines)
    @fixture_settings
    def test_stock_matches_ledger(self, db_session, order_service, seed_waiter_user, order_lines):
        _, products = _fresh_order(db_session, order_service, seed_waiter_user, order_lines)

        for product, (qty, _) in zip(products, order_lines):
            stored = db_session.get(Product, product.id)
            assert stored.stock == 100 - qty
            assert _ledger_sum(db_session, product.id) == -qty

    @given(order_lines=lines)
    @fixture_settings
    def test_cancel_restores_stock(self, db_session, order_service, seed_waiter_user, order_lines):
        order, products = _fresh_order(db_session, order_service, seed_waiter_user, order_lines)

        result = order_service.cancel_order(order.id, CancelOrderRequest(), seed_waiter_user.id)

        assert result.total_cents == order.total_cents
        for product in products:
            assert db_session.get(Product, product.id).stock == 100
            assert _ledger_sum(db_session, product.id) == 0


class TestSplitPaymentProperties:
    """A split is accepted exactly when it adds up to the total."""

    @given(
        order_lines=lines,
        cuts=st.lists(st.floats(min_value=0.0, max_value=1.0), min_size=0, max_size=3),
    )
    @fixture_settings
    def test_any_exact_partition_is_accepted(
        self, db_session, order_service, seed_waiter_user, order_lines, cuts
    ):
        total = sum(q * price for q, price in order_lines)
        points = sorted({int(total * c) for c in cuts} - {0, total})
        bounds = [0, *points, total]
        amounts = [b - a for a, b in zip(bounds, bounds[1:])]
        assume(all(a > 0 for a in amounts))

        order, _ = _fresh_order(
            db_session, order_service, seed_waiter_user, order_lines, diner_count=len(amounts)
        )
        result = order_service.pay_order(
            order.id,
            PayOrderRequest(
                split_payments=[
                    SplitPaymentInput(diner_number=i, amount_cents=amount)
                    for i, amount in enumerate(amounts, start=1)
                ]
            ),
            seed_waiter_user.id,
        )

        assert result.status == "pagada"
        assert sum(p.amount_cents for p in result.payments) == total

    @given(order_lines=lines, off_by=st.integers(min_value=1, max_value=500))
    @fixture_settings
    def test_overpayment_is_rejected(
        self, db_session, order_service, seed_waiter_user, order_lines, off_by
    ):
        order, _ = _fresh_order(db_session, order_service, seed_waiter_user, order_lines)

        with pytest.raises(PaymentAmountError):
            order_service.pay_order(
                order.id,
                PayOrderRequest(
                    split_payments=[
                        SplitPaymentInput(diner_number=1, amount_cents=order.total_cents + off_by)
                    ]
                ),
                seed_waiter_user.id,
            )

        assert order_service.get_order(order.id).status == "activa"
