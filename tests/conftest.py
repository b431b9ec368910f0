from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from cafe.checkout import new_cart_item
from cafe.data import SEED_MENU
from cafe.models import CartItem, Drink, ModifierOption, Order, OrderStatus, PaymentMethod

NOW = datetime(2026, 3, 14, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def menu():
    return SEED_MENU


@pytest.fixture
def latte() -> Drink:
    drink = SEED_MENU.drink("drink-1")
    assert drink is not None
    return drink


def milk(option_id: str) -> dict[str, ModifierOption]:
    group = SEED_MENU.group("mod-group-1")
    assert group is not None
    option = group.option(option_id)
    assert option is not None
    return {"mod-group-1": option}


OAT = "mod-1-5"
ALMOND = "mod-1-3"


def make_item(drink: Drink, quantity: int = 1, option_id: str | None = None, item_id: str | None = None) -> CartItem:
    selections = milk(option_id) if option_id else {}
    return new_cart_item(drink, selections, quantity, item_id=item_id)


def make_order(
    order_id: str,
    items: tuple[CartItem, ...],
    status: OrderStatus = OrderStatus.PENDING,
    customer_name: str = "Sam",
    created_at: datetime = NOW,
    **changes: Any,
) -> Order:
    subtotal = sum(item.final_price for item in items)
    fields: dict[str, Any] = dict(
        id=order_id,
        customer_name=customer_name,
        customer_id="anon-1",
        items=items,
        subtotal=subtotal,
        total_cost=0.0,
        discount_applied=None,
        final_total=subtotal,
        payment_method=PaymentMethod.CARD,
        status=status,
        created_at=created_at,
    )
    fields.update(changes)
    return Order(**fields)


def minutes(value: int) -> timedelta:
    return timedelta(minutes=value)
