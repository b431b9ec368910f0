from __future__ import annotations

from datetime import date

import pytest

from cafe.models import OrderStatus, PaymentMethod
from cafe.reports import build_report, orders_in_period
from tests.conftest import NOW, make_item, make_order, minutes

DAY = NOW.date()


def _completed(order_id, latte, created_at, quantity=1, **changes):
    return make_order(
        order_id,
        (make_item(latte, quantity),),
        status=OrderStatus.COMPLETED,
        created_at=created_at,
        completed_at=created_at + minutes(6),
        total_cost=1.2 * quantity,
        **changes,
    )


def test_only_completed_orders_inside_the_period_count(latte):
    inside = _completed("a", latte, NOW)
    pending = make_order("b", (make_item(latte),))
    yesterday = _completed("c", latte, NOW - minutes(24 * 60))
    assert orders_in_period([inside, pending, yesterday], DAY, DAY) == [inside]
    assert orders_in_period([inside], date(2026, 3, 15), DAY) == []


def test_single_day_report(latte):
    orders = [
        _completed("a", latte, NOW, quantity=2),
        _completed("b", latte, NOW + minutes(60), payment_method=PaymentMethod.CASH),
    ]
    report = build_report(orders, DAY, DAY)

    assert report.is_single_day
    assert report.order_count == 2
    assert report.revenue == pytest.approx(12.0)
    assert report.cost == pytest.approx(3.6)
    assert report.profit == pytest.approx(8.4)
    assert report.drinks_processed == 3
    assert report.average_processing_minutes == pytest.approx(6.0)
    assert len(report.series) == 24
    assert report.series[9].label == "09:00"
    assert report.series[9].revenue == pytest.approx(8.0)
    assert report.series[10].revenue == pytest.approx(4.0)
    assert report.payment_methods == {"Credit/Debit Card": 1, "Cash": 1}


def test_multi_day_report_has_a_point_per_active_day(latte):
    orders = [_completed("a", latte, NOW), _completed("b", latte, NOW - minutes(2 * 24 * 60))]
    report = build_report(orders, date(2026, 3, 8), DAY)
    assert [point.label for point in report.series] == ["Mar 12", "Mar 14"]


def test_empty_period():
    report = build_report([], DAY, DAY)
    assert report.revenue == 0.0
    assert report.average_processing_minutes == 0.0
    assert report.payment_methods == {}
