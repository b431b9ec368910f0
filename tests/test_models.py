from __future__ import annotations

from cafe.data import SEED_DISCOUNTS, SEED_MENU, default_selections, visible_categories
from cafe.models import Menu, Order, OrderStatus, User, UserRole, encode_order_fields
from tests.conftest import NOW, OAT, make_item, make_order, minutes


def test_order_document_round_trip(latte):
    order = make_order(
        "order-1",
        (make_item(latte, 2, OAT),),
        status=OrderStatus.SCHEDULED,
        pickup_time=NOW + minutes(30),
        discount_applied=SEED_DISCOUNTS[0],
    )
    doc = order.to_document()
    assert "id" not in doc
    assert Order.from_document("order-1", doc) == order


def test_menu_document_round_trip():
    assert Menu.from_document(SEED_MENU.to_document()) == SEED_MENU
    assert Menu.from_document(None) == Menu()


def test_encode_order_fields_keeps_explicit_nulls():
    encoded = encode_order_fields({"status": OrderStatus.PENDING, "completed_at": None, "created_at": NOW})
    assert encoded == {"status": "pending", "completed_at": None, "created_at": NOW.isoformat()}


def test_user_roles():
    assert User(id="guest-1", name="x").is_guest
    assert User(id="u", name="x", role=UserRole.KITCHEN).is_staff
    assert not User(id="u", name="x", role=UserRole.KITCHEN).is_admin


def test_default_selections_pick_first_option(latte):
    selections = default_selections(SEED_MENU, latte)
    assert selections["mod-group-1"].name == "Full Cream"
    assert set(selections) == set(latte.modifier_groups)


def test_empty_categories_are_hidden():
    assert "cat-5" not in {category.id for category in visible_categories(SEED_MENU)}
