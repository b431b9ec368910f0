from __future__ import annotations

import pytest

from cafe.data import SEED_DISCOUNTS
from cafe.models import Discount, DiscountType
from cafe.pricing import (
    apply_discount,
    cheapest_item,
    discount_amount,
    final_total,
    find_discount,
    format_money,
    line_total,
    loyalty_reward_amount,
    subtotal,
    unit_price,
)
from tests.conftest import OAT, make_item, milk

HALF_OFF = Discount(id="d-50", code="50OFF", type=DiscountType.PERCENTAGE, value=50)
TWO_OFF = Discount(id="d-2", code="2DOLLARSOFF", type=DiscountType.FIXED, value=2)


def test_unit_price_adds_option_deltas(latte):
    assert unit_price(latte, {}) == pytest.approx(4.0)
    assert unit_price(latte, milk(OAT)) == pytest.approx(4.75)


def test_line_total_multiplies_by_quantity(latte):
    assert line_total(latte, milk(OAT), 3) == pytest.approx(14.25)


def test_line_total_rejects_zero_quantity(latte):
    with pytest.raises(ValueError):
        line_total(latte, {}, 0)


def test_percentage_and_fixed_discounts():
    assert apply_discount(10.0, HALF_OFF) == pytest.approx(5.0)
    assert apply_discount(10.0, TWO_OFF) == pytest.approx(8.0)
    assert apply_discount(10.0, None) == pytest.approx(10.0)


def test_fixed_discount_never_goes_below_zero():
    assert final_total(1.5, TWO_OFF) == 0.0


def test_loyalty_reward_is_applied_before_discount(latte):
    items = [make_item(latte, quantity=2)]
    sub = subtotal(items)
    assert sub == pytest.approx(8.0)
    # one free Latte, then 50% off the remaining 4.00
    assert final_total(sub, HALF_OFF, items, loyalty_reward=True) == pytest.approx(2.0)


def test_loyalty_reward_is_one_unit_of_the_cheapest_line(latte, menu):
    short_black = menu.drink("drink-4")
    items = [make_item(latte, quantity=2), make_item(short_black, quantity=3)]
    assert cheapest_item(items).drink.id == "drink-4"
    assert loyalty_reward_amount(items) == pytest.approx(3.0)
    assert loyalty_reward_amount([]) == 0.0


def test_cheapest_item_first_wins_tie(latte, menu):
    cappuccino = menu.drink("drink-2")
    first = make_item(latte)
    items = [first, make_item(cappuccino)]
    assert cheapest_item(items) is first


def test_discount_amount_shows_removed_money():
    assert discount_amount(10.0, HALF_OFF) == pytest.approx(5.0)
    assert discount_amount(10.0, None) == 0.0


def test_discount_amount_never_exceeds_the_subtotal():
    ten_off = Discount(id="d", code="TENOFF", type=DiscountType.FIXED, value=10.0)
    assert discount_amount(4.0, ten_off) == pytest.approx(4.0)


def test_find_discount_is_case_insensitive():
    assert find_discount(SEED_DISCOUNTS, " staff10 ").code == "STAFF10"
    assert find_discount(SEED_DISCOUNTS, "nope") is None
    assert find_discount(SEED_DISCOUNTS, "") is None


def test_format_money():
    assert format_money(4.75) == "$4.75"
    assert format_money(0) == "$0.00"
