"""Dashboard figures over completed orders in a reporting period."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Iterable

from cafe.models import Order, OrderStatus, PaymentMethod


@dataclass(frozen=True)
class SeriesPoint:
    label: str
    revenue: float
    profit: float


@dataclass(frozen=True)
class DashboardReport:
    start: date
    end: date
    order_count: int = 0
    revenue: float = 0.0
    cost: float = 0.0
    drinks_processed: int = 0
    average_processing_minutes: float = 0.0
    series: tuple[SeriesPoint, ...] = ()
    payment_methods: dict[str, int] = field(default_factory=dict)

    @property
    def profit(self) -> float:
        return self.revenue - self.cost

    @property
    def is_single_day(self) -> bool:
        return self.start == self.end


def orders_in_period(orders: Iterable[Order], start: date, end: date, tz: tzinfo = timezone.utc) -> list[Order]:
    """Completed orders whose creation time falls on a day from ``start`` to ``end`` inclusive."""
    if start > end:
        return []
    lower = datetime.combine(start, datetime.min.time(), tzinfo=tz)
    upper = datetime.combine(end + timedelta(days=1), datetime.min.time(), tzinfo=tz)
    return [
        order
        for order in orders
        if order.status is OrderStatus.COMPLETED and lower <= order.created_at < upper
    ]


def _average_processing_minutes(orders: list[Order]) -> float:
    finished = [order for order in orders if order.completed_at is not None]
    if not finished:
        return 0.0
    total = sum((order.completed_at - order.created_at).total_seconds() for order in finished)  # type: ignore[operator]
    return total / len(finished) / 60


def _hourly_series(orders: list[Order], tz: tzinfo) -> tuple[SeriesPoint, ...]:
    revenue = [0.0] * 24
    profit = [0.0] * 24
    for order in orders:
        hour = order.created_at.astimezone(tz).hour
        revenue[hour] += order.final_total
        profit[hour] += order.final_total - order.total_cost
    return tuple(SeriesPoint(f"{hour:02d}:00", revenue[hour], profit[hour]) for hour in range(24))


def _daily_series(orders: list[Order], tz: tzinfo) -> tuple[SeriesPoint, ...]:
    days: dict[date, list[float]] = {}
    for order in orders:
        day = order.created_at.astimezone(tz).date()
        bucket = days.setdefault(day, [0.0, 0.0])
        bucket[0] += order.final_total
        bucket[1] += order.final_total - order.total_cost
    return tuple(
        SeriesPoint(day.strftime("%b %d"), revenue, profit)
        for day, (revenue, profit) in sorted(days.items())
    )


def build_report(orders: Iterable[Order], start: date, end: date, tz: tzinfo = timezone.utc) -> DashboardReport:
    selected = orders_in_period(orders, start, end, tz)
    payment_methods: dict[str, int] = {}
    for order in selected:
        method = (order.payment_method or PaymentMethod.CARD).value
        payment_methods[method] = payment_methods.get(method, 0) + 1

    return DashboardReport(
        start=start,
        end=end,
        order_count=len(selected),
        revenue=sum(order.final_total for order in selected),
        cost=sum(order.total_cost for order in selected),
        drinks_processed=sum(order.unit_count for order in selected),
        average_processing_minutes=_average_processing_minutes(selected),
        series=_hourly_series(selected, tz) if start == end else _daily_series(selected, tz),
        payment_methods=payment_methods,
    )
