"""
Tests for DashboardService statistics.
"""

from datetime import timedelta

import pytest

from shared.utils.schemas import (
    CancelOrderRequest,
    CreateOrderRequest,
    OrderItemInput,
    PayOrderRequest,
)
from taqueria_api.models import Order, utcnow
from taqueria_api.services.domain import DashboardService
from tests.conftest import make_table


@pytest.fixture
def dashboard(db_session):
    return DashboardService(db_session)


def _open(order_service, table, user, *items):
    return order_service.create_order(
        CreateOrderRequest(
            table_id=table.id,
            items=[OrderItemInput(product_id=p.id, qty=q) for p, q in items],
        ),
        user.id,
    )


class TestDashboardStats:
    def test_empty_restaurant(self, dashboard):
        stats = dashboard.get_stats()

        assert stats.today.orders_total == 0
        assert stats.today.revenue_cents == 0
        assert stats.top_products == []
        assert stats.active_orders == []
        assert len(stats.revenue_last_days) == 7
        assert all(day.revenue_cents == 0 for day in stats.revenue_last_days)
        assert stats.tables_by_status == {
            "disponible": 0,
            "ocupada": 0,
            "en_servicio": 0,
            "mantenimiento": 0,
        }

    def test_counts_today(
        self, db_session, dashboard, order_service, seed_waiter_user, seed_taco, seed_drink
    ):
        tables = [make_table(db_session, n) for n in (1, 2, 3)]
        paid = _open(order_service, tables[0], seed_waiter_user, (seed_taco, 4))
        order_service.pay_order(paid.id, PayOrderRequest(payment_method="efectivo"), seed_waiter_user.id)
        cancelled = _open(order_service, tables[1], seed_waiter_user, (seed_drink, 2))
        order_service.cancel_order(cancelled.id, CancelOrderRequest(), seed_waiter_user.id)
        active = _open(order_service, tables[2], seed_waiter_user, (seed_taco, 1), (seed_drink, 1))

        stats = dashboard.get_stats()

        assert stats.today.orders_total == 3
        assert stats.today.active == 1
        assert stats.today.paid == 1
        assert stats.today.cancelled == 1
        assert stats.today.revenue_cents == 10000
        assert stats.tables_by_status["ocupada"] == 3

        assert [(p.name, p.qty_sold, p.revenue_cents) for p in stats.top_products] == [
            ("Taco de Asada", 4, 10000)
        ]

        assert len(stats.active_orders) == 1
        summary = stats.active_orders[0]
        assert summary.id == active.id
        assert summary.table_number == 3
        assert summary.waiter_name == "Juan Mesero"
        assert summary.item_count == 2
        assert summary.total_cents == 4000

        assert stats.revenue_last_days[-1].day == utcnow().date()
        assert stats.revenue_last_days[-1].orders == 1
        assert stats.revenue_last_days[-1].revenue_cents == 10000

    def test_revenue_history_buckets_by_day(
        self, db_session, dashboard, order_service, seed_waiter_user, seed_taco
    ):
        table = make_table(db_session, 1)
        order = _open(order_service, table, seed_waiter_user, (seed_taco, 2))
        order_service.pay_order(order.id, PayOrderRequest(payment_method="tarjeta"), seed_waiter_user.id)

        stored = db_session.get(Order, order.id)
        stored.created_at = utcnow() - timedelta(days=2)
        db_session.commit()

        stats = dashboard.get_stats()

        assert stats.today.paid == 0
        assert stats.top_products == []
        days = [day.day for day in stats.revenue_last_days]
        assert days == sorted(days)
        two_days_ago = stats.revenue_last_days[-3]
        assert two_days_ago.day == utcnow().date() - timedelta(days=2)
        assert two_days_ago.revenue_cents == 5000

    def test_cancelled_lines_not_in_top_products(
        self, db_session, dashboard, order_service, seed_waiter_user, seed_taco, seed_drink
    ):
        table = make_table(db_session, 1)
        order = _open(order_service, table, seed_waiter_user, (seed_taco, 1), (seed_drink, 3))
        drink_line = order.items[1]
        order_service.cancel_item(order.id, drink_line.id, seed_waiter_user.id)
        order_service.pay_order(order.id, PayOrderRequest(payment_method="efectivo"), seed_waiter_user.id)

        stats = dashboard.get_stats()

        assert [p.name for p in stats.top_products] == ["Taco de Asada"]
        assert stats.today.revenue_cents == 2500
