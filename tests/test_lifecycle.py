from __future__ import annotations

import pytest

from cafe import lifecycle
from cafe.errors import NotFoundError, TransitionError
from cafe.models import OrderStatus
from tests.conftest import NOW, make_item, make_order, minutes


@pytest.fixture
def order(latte):
    items = (make_item(latte, item_id="line-1"), make_item(latte, quantity=2, item_id="line-2"))
    return make_order("order-1", items)


def test_allowed_transitions():
    assert lifecycle.can_transition(OrderStatus.PAYMENT_REQUIRED, OrderStatus.PENDING)
    assert lifecycle.can_transition(OrderStatus.COMPLETED, OrderStatus.PENDING)
    assert not lifecycle.can_transition(OrderStatus.PENDING, OrderStatus.SCHEDULED)
    assert not lifecycle.can_transition(OrderStatus.SCHEDULED, OrderStatus.COMPLETED)


def test_initial_status():
    assert lifecycle.initial_status(False, None, NOW) is OrderStatus.PAYMENT_REQUIRED
    assert lifecycle.initial_status(False, NOW + minutes(60), NOW) is OrderStatus.PAYMENT_REQUIRED
    assert lifecycle.initial_status(True, None, NOW) is OrderStatus.PENDING
    assert lifecycle.initial_status(True, NOW + minutes(60), NOW) is OrderStatus.SCHEDULED
    assert lifecycle.initial_status(True, NOW - minutes(1), NOW) is OrderStatus.PENDING


def test_verify_payment_resets_wait_timer(order):
    unpaid = order.with_updates({"status": OrderStatus.PAYMENT_REQUIRED, "created_at": NOW - minutes(20)})
    update = lifecycle.verify_payment(unpaid, NOW)
    assert update == {"status": OrderStatus.PENDING, "created_at": NOW}


def test_verify_payment_with_future_pickup_schedules(order):
    unpaid = order.with_updates({"status": OrderStatus.PAYMENT_REQUIRED, "pickup_time": NOW + minutes(45)})
    assert lifecycle.verify_payment(unpaid, NOW)["status"] is OrderStatus.SCHEDULED


def test_verify_payment_rejects_paid_order(order):
    with pytest.raises(TransitionError):
        lifecycle.verify_payment(order, NOW)


def test_activation_respects_lead_time(order):
    scheduled = order.with_updates({"status": OrderStatus.SCHEDULED, "pickup_time": NOW + minutes(30)})
    assert lifecycle.activate_scheduled(scheduled, NOW) is None
    assert lifecycle.activate_scheduled(scheduled, NOW + minutes(15)) == {"status": OrderStatus.PENDING}


def test_activation_is_a_noop_for_non_scheduled_orders(order):
    assert lifecycle.activate_scheduled(order, NOW) is None
    assert lifecycle.due_for_activation([order], NOW) == []


def test_complete_requires_every_item_done(order):
    with pytest.raises(TransitionError):
        lifecycle.complete_order(order, NOW)

    done = order.with_updates({"items": tuple(lifecycle.toggle_item(order, "line-1")["items"])})
    done = done.with_updates(lifecycle.toggle_item(done, "line-2"))
    assert done.all_items_completed
    assert lifecycle.complete_order(done, NOW) == {"status": OrderStatus.COMPLETED, "completed_at": NOW}


def test_requeue_clears_completion_and_keeps_item_progress(order):
    completed = order.with_updates({"status": OrderStatus.COMPLETED, "completed_at": NOW})
    update = lifecycle.requeue_order(completed)
    assert update == {"status": OrderStatus.PENDING, "completed_at": None}
    assert "items" not in update


def test_requeue_rejects_pending(order):
    with pytest.raises(TransitionError):
        lifecycle.requeue_order(order)


def test_toggle_item_flips_one_line_only(order):
    items = lifecycle.toggle_item(order, "line-2")["items"]
    assert [item.is_completed for item in items] == [False, True]
    assert order.items[1].is_completed is False


def test_toggle_unknown_item(order):
    with pytest.raises(NotFoundError):
        lifecycle.toggle_item(order, "missing")


def test_wait_clock_and_bands(order):
    assert lifecycle.wait_clock(order, NOW + minutes(7)) == "07:00"
    assert lifecycle.wait_minutes(order, NOW - minutes(1)) == 0
    assert lifecycle.wait_band(0) == "fresh"
    assert lifecycle.wait_band(5) == "warning"
    assert lifecycle.wait_band(7) == "late"
    assert lifecycle.wait_band(12) == "overdue"
