"""
Dashboard Service.

Read-only projection over orders, tables and products. Days are UTC
calendar days.
"""

from __future__ import annotations

from datetime import date, timedelta

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from shared.config.constants import Limits, OrderStatus, TableStatus
from shared.utils.schemas import (
    ActiveOrderSummary,
    DailyRevenueOutput,
    DashboardOutput,
    TodaySummary,
    TopProductOutput,
)
from taqueria_api.models import Order, OrderItem, Product, Table, User, start_of_day, utcnow


class DashboardService:
    def __init__(self, db: Session):
        self._db = db

    def get_stats(self, today: date | None = None) -> DashboardOutput:
        today = today or utcnow().date()
        return DashboardOutput(
            today=self._today_summary(today),
            tables_by_status=self._tables_by_status(),
            top_products=self._top_products(today),
            revenue_last_days=self._revenue_history(today),
            active_orders=self._active_orders(),
        )

    def _today_summary(self, today: date) -> TodaySummary:
        rows = self._db.execute(
            select(Order.status, func.count(Order.id), func.coalesce(func.sum(Order.total_cents), 0))
            .where(
                Order.created_at >= start_of_day(today),
                Order.created_at < start_of_day(today + timedelta(days=1)),
            )
            .group_by(Order.status)
        ).all()
        counts = {status: (count, total) for status, count, total in rows}

        return TodaySummary(
            orders_total=sum(count for count, _ in counts.values()),
            active=counts.get(OrderStatus.ACTIVA.value, (0, 0))[0],
            paid=counts.get(OrderStatus.PAGADA.value, (0, 0))[0],
            cancelled=counts.get(OrderStatus.CANCELADA.value, (0, 0))[0],
            revenue_cents=counts.get(OrderStatus.PAGADA.value, (0, 0))[1],
        )

    def _tables_by_status(self) -> dict[str, int]:
        result = {status.value: 0 for status in TableStatus}
        for status, count in self._db.execute(
            select(Table.status, func.count(Table.id)).group_by(Table.status)
        ):
            result[status] = count
        return result

    def _top_products(self, today: date) -> list[TopProductOutput]:
        """Best sellers of the day, counting paid orders and live lines only."""
        qty = func.sum(OrderItem.qty).label("qty")
        revenue = func.sum(OrderItem.qty * OrderItem.unit_price_cents).label("revenue")
        rows = self._db.execute(
            select(Product.id, Product.name, qty, revenue)
            .join(OrderItem, OrderItem.product_id == Product.id)
            .join(Order, OrderItem.order_id == Order.id)
            .where(
                Order.status == OrderStatus.PAGADA.value,
                OrderItem.is_cancelled.is_(False),
                Order.created_at >= start_of_day(today),
                Order.created_at < start_of_day(today + timedelta(days=1)),
            )
            .group_by(Product.id, Product.name)
            .order_by(qty.desc(), Product.name)
            .limit(Limits.TOP_PRODUCTS)
        ).all()
        return [
            TopProductOutput(product_id=r.id, name=r.name, qty_sold=r.qty, revenue_cents=r.revenue)
            for r in rows
        ]

    def _revenue_history(self, today: date) -> list[DailyRevenueOutput]:
        """Paid revenue per day for the last days, oldest first, empty days included."""
        first_day = today - timedelta(days=Limits.REVENUE_HISTORY_DAYS - 1)
        days = {
            first_day + timedelta(days=i): [0, 0] for i in range(Limits.REVENUE_HISTORY_DAYS)
        }

        paid = self._db.execute(
            select(Order.created_at, Order.total_cents).where(
                Order.status == OrderStatus.PAGADA.value,
                Order.created_at >= start_of_day(first_day),
                Order.created_at < start_of_day(today + timedelta(days=1)),
            )
        )
        for created_at, total in paid:
            bucket = days.get(created_at.date())
            if bucket is not None:
                bucket[0] += 1
                bucket[1] += total

        return [
            DailyRevenueOutput(day=day, orders=orders, revenue_cents=revenue)
            for day, (orders, revenue) in sorted(days.items())
        ]

    def _active_orders(self) -> list[ActiveOrderSummary]:
        item_count = (
            select(func.count(OrderItem.id))
            .where(OrderItem.order_id == Order.id, OrderItem.is_cancelled.is_(False))
            .correlate(Order)
            .scalar_subquery()
        )
        rows = self._db.execute(
            select(
                Order.id,
                Table.number,
                User.name,
                Order.total_cents,
                item_count.label("item_count"),
                Order.created_at,
            )
            .join(Table, Order.table_id == Table.id)
            .join(User, Order.user_id == User.id)
            .where(Order.status == OrderStatus.ACTIVA.value)
            .order_by(Order.created_at.desc(), Order.id.desc())
        ).all()
        return [
            ActiveOrderSummary(
                id=r.id,
                table_number=r.number,
                waiter_name=r.name,
                total_cents=r.total_cents,
                item_count=r.item_count,
                created_at=r.created_at,
            )
            for r in rows
        ]
