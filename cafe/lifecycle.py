"""Order lifecycle transitions.

Every transition is computed from the order as currently known and returns
only the fields that change. The caller writes that partial update to the
store; local state follows when the change feed echoes it back.

    payment-required --verify--> pending | scheduled
    scheduled --lead time reached--> pending
    pending --all items done + confirm--> completed
    completed --re-queue--> pending
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, Iterable

from cafe.config import (
    PREPARATION_LEAD_TIME,
    WAIT_LATE_MINUTES,
    WAIT_OVERDUE_MINUTES,
    WAIT_WARNING_MINUTES,
)
from cafe.errors import NotFoundError, TransitionError
from cafe.models import Order, OrderStatus

logger = logging.getLogger(__name__)

OrderUpdate = dict[str, Any]

ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PAYMENT_REQUIRED: frozenset({OrderStatus.PENDING, OrderStatus.SCHEDULED}),
    OrderStatus.SCHEDULED: frozenset({OrderStatus.PENDING}),
    OrderStatus.PENDING: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.COMPLETED: frozenset({OrderStatus.PENDING}),
}


def can_transition(source: OrderStatus, target: OrderStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(source, frozenset())


def _require(order: Order, target: OrderStatus) -> None:
    if not can_transition(order.status, target):
        raise TransitionError(f"Order {order.id} cannot move from {order.status.value} to {target.value}.")


def _is_future(pickup_time: datetime | None, now: datetime) -> bool:
    return pickup_time is not None and pickup_time > now


def initial_status(is_admin: bool, pickup_time: datetime | None, now: datetime) -> OrderStatus:
    """Administrators are trusted to have taken payment already; everyone else is verified first."""
    if not is_admin:
        return OrderStatus.PAYMENT_REQUIRED
    if _is_future(pickup_time, now):
        return OrderStatus.SCHEDULED
    return OrderStatus.PENDING


def verify_payment(order: Order, now: datetime) -> OrderUpdate:
    """Send a paid order to the kitchen, restarting its wait timer."""
    target = OrderStatus.SCHEDULED if _is_future(order.pickup_time, now) else OrderStatus.PENDING
    _require(order, target)
    logger.info("verify_payment order=%s -> %s", order.id, target.value)
    return {"status": target, "created_at": now}


def is_due(order: Order, now: datetime, lead_time: timedelta = PREPARATION_LEAD_TIME) -> bool:
    if order.status is not OrderStatus.SCHEDULED or order.pickup_time is None:
        return False
    return order.pickup_time - now <= lead_time


def activate_scheduled(order: Order, now: datetime, lead_time: timedelta = PREPARATION_LEAD_TIME) -> OrderUpdate | None:
    """Move a scheduled order into the kitchen queue once its lead window opens.

    Returns ``None`` for anything that is not a due scheduled order, so
    repeated scans converge without tracking what already fired.
    """
    if not is_due(order, now, lead_time):
        return None
    logger.info("activate_scheduled order=%s pickup=%s", order.id, order.pickup_time)
    return {"status": OrderStatus.PENDING}


def due_for_activation(orders: Iterable[Order], now: datetime, lead_time: timedelta = PREPARATION_LEAD_TIME) -> list[Order]:
    return [order for order in orders if is_due(order, now, lead_time)]


def complete_order(order: Order, now: datetime) -> OrderUpdate:
    _require(order, OrderStatus.COMPLETED)
    if not order.all_items_completed:
        raise TransitionError(f"Order {order.id} still has items in progress.")
    logger.info("complete_order order=%s", order.id)
    return {"status": OrderStatus.COMPLETED, "completed_at": now}


def requeue_order(order: Order) -> OrderUpdate:
    """Return a completed order to the queue. Item progress is left as it was."""
    if order.status is not OrderStatus.COMPLETED:
        raise TransitionError(f"Order {order.id} is {order.status.value}, only completed orders can be re-queued.")
    logger.info("requeue_order order=%s", order.id)
    return {"status": OrderStatus.PENDING, "completed_at": None}


def toggle_item(order: Order, item_id: str) -> OrderUpdate:
    """Flip one line's completion flag. The order status does not change."""
    if order.item(item_id) is None:
        raise NotFoundError(f"Item {item_id} is not part of order {order.id}.")
    items = tuple(
        replace(item, is_completed=not item.is_completed)
        if item.id == item_id
        else item
        for item in order.items
    )
    return {"items": items}


def wait_minutes(order: Order, now: datetime) -> int:
    return max(0, int((now - order.created_at).total_seconds() // 60))


def wait_clock(order: Order, now: datetime) -> str:
    seconds = max(0, int((now - order.created_at).total_seconds()))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


def wait_band(minutes: int) -> str:
    """Colour band for a kitchen ticket: fresh, warning, late or overdue."""
    if minutes >= WAIT_OVERDUE_MINUTES:
        return "overdue"
    if minutes >= WAIT_LATE_MINUTES:
        return "late"
    if minutes >= WAIT_WARNING_MINUTES:
        return "warning"
    return "fresh"
