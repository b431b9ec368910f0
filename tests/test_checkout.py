from __future__ import annotations

import pytest

from cafe.checkout import CheckoutSession, new_cart_item
from cafe.data import SEED_DISCOUNTS
from cafe.errors import NotFoundError, ValidationError
from cafe.models import Discount, DiscountType, OrderStatus, PaymentMethod
from tests.conftest import NOW, OAT, make_item, milk, minutes


def test_new_cart_item_prices_the_line(latte):
    item = new_cart_item(latte, milk(OAT), 2, custom_name="  Sam's  ")
    assert item.final_price == pytest.approx(9.5)
    assert item.custom_name == "Sam's"
    assert item.id.startswith("cart-item-")


def test_new_cart_item_rejects_zero_quantity(latte):
    with pytest.raises(ValidationError):
        new_cart_item(latte, {}, 0)


def test_update_item_replaces_in_place(latte):
    session = CheckoutSession("Sam")
    session.add_item(make_item(latte, item_id="line-1"))
    session.add_item(make_item(latte, item_id="line-2"))
    session.update_item(make_item(latte, 3, item_id="line-1"))
    assert [item.quantity for item in session.items] == [3, 1]
    assert session.unit_count == 4

    with pytest.raises(NotFoundError):
        session.update_item(make_item(latte, item_id="missing"))


def test_unknown_discount_code_clears_the_applied_one(latte):
    session = CheckoutSession("Sam")
    session.apply_discount_code("50off", SEED_DISCOUNTS)
    assert session.discount.code == "50OFF"
    with pytest.raises(ValidationError):
        session.apply_discount_code("bogus", SEED_DISCOUNTS)
    assert session.discount is None


def test_totals_with_reward_and_discount(latte):
    session = CheckoutSession("Sam")
    session.add_item(make_item(latte, 2))
    session.apply_discount_code("50OFF", SEED_DISCOUNTS)
    totals = session.totals(loyalty_reward=True)
    assert totals.subtotal == pytest.approx(8.0)
    assert totals.loyalty_reward == pytest.approx(4.0)
    assert totals.discount == pytest.approx(2.0)
    assert totals.final_total == pytest.approx(2.0)
    assert totals.total_cost == pytest.approx(2.4)


@pytest.mark.parametrize(
    ("name", "pickup", "message"),
    [
        ("", None, "Please enter a name for the order."),
        ("Sam", NOW, "Pickup time must be in the future."),
    ],
)
def test_validation_messages(latte, name, pickup, message):
    session = CheckoutSession(name)
    session.add_item(make_item(latte))
    session.set_pickup(pickup)
    with pytest.raises(ValidationError, match=message):
        session.validate(NOW)


def test_empty_cart_is_rejected():
    with pytest.raises(ValidationError, match="Your cart is empty."):
        CheckoutSession("Sam").validate(NOW)


def test_build_order_snapshots_the_session(latte):
    session = CheckoutSession(" Sam ", PaymentMethod.CASH)
    session.add_item(make_item(latte, 2))
    order = session.build_order(customer_id="anon-1", is_admin=False, loyalty_reward=False, now=NOW)
    assert order.id == ""
    assert order.customer_name == "Sam"
    assert order.status is OrderStatus.PAYMENT_REQUIRED
    assert order.payment_method is PaymentMethod.CASH
    assert order.final_total == pytest.approx(8.0)
    assert order.created_at == NOW


def test_admin_order_with_future_pickup_is_scheduled(latte):
    session = CheckoutSession("Sam")
    session.add_item(make_item(latte))
    session.set_pickup(NOW + minutes(60))
    order = session.build_order(customer_id="anon-1", is_admin=True, loyalty_reward=False, now=NOW)
    assert order.status is OrderStatus.SCHEDULED
    assert order.pickup_time == NOW + minutes(60)


def test_clear_keeps_the_name(latte):
    session = CheckoutSession("Sam")
    session.add_item(make_item(latte))
    session.apply_discount_code("STAFF10", SEED_DISCOUNTS)
    session.set_pickup(NOW + minutes(60))
    session.clear()
    assert session.is_empty
    assert session.discount is None
    assert session.pickup_time is None
    assert session.order_name == "Sam"


def test_fixed_discount_larger_than_the_cart_still_adds_up(latte):
    session = CheckoutSession("Sam")
    session.add_item(make_item(latte))
    session.apply_discount_code("TENOFF", [Discount(id="d", code="TENOFF", type=DiscountType.FIXED, value=10.0)])
    totals = session.totals()
    assert totals.subtotal == pytest.approx(4.0)
    assert totals.discount == pytest.approx(4.0)
    assert totals.final_total == 0.0
    assert totals.subtotal - totals.loyalty_reward - totals.discount == pytest.approx(totals.final_total)
