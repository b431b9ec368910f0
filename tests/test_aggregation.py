from __future__ import annotations

from cafe.aggregation import KitchenViews, build_snapshot, by_item, by_type, filter_orders, order_history, pending_orders
from cafe.models import OrderStatus
from tests.conftest import ALMOND, NOW, OAT, make_item, make_order, minutes


def _cafe_orders(latte, menu):
    cappuccino = menu.drink("drink-2")
    return (
        make_order("order-a", (make_item(latte, 2, OAT), make_item(cappuccino)), customer_name="Ann", created_at=NOW),
        make_order("order-b", (make_item(latte, 1, OAT), make_item(latte, 1, ALMOND)), customer_name="Ben",
                   created_at=NOW + minutes(1)),
        make_order("order-c", (make_item(latte, 5, OAT),), status=OrderStatus.COMPLETED, customer_name="Cal",
                   completed_at=NOW),
        make_order("order-d", (make_item(latte, 4, ALMOND),), status=OrderStatus.PAYMENT_REQUIRED,
                   customer_name="Dee"),
    )


def test_by_item_groups_identical_drinks_across_pending_orders(latte, menu):
    groups = by_item(_cafe_orders(latte, menu))

    first = groups[0]
    assert first.drink.id == "drink-1"
    assert first.option_ids == (OAT,)
    assert first.quantity == 3
    assert [(c.customer_name, c.quantity) for c in first.contributions] == [("Ann", 2), ("Ben", 1)]

    # equal quantities keep first-seen order
    assert [(g.drink.id, g.option_ids) for g in groups[1:]] == [("drink-2", ()), ("drink-1", (ALMOND,))]


def test_by_type_breaks_a_drink_into_variations(latte, menu):
    groups = by_type(_cafe_orders(latte, menu))
    latte_group = groups[0]
    assert latte_group.drink.id == "drink-1"
    assert latte_group.total_quantity == 4
    assert [(v.selected_modifiers["mod-group-1"].id, v.quantity) for v in latte_group.variations] == [
        (OAT, 3),
        (ALMOND, 1),
    ]
    assert groups[1].drink.id == "drink-2"


def test_pending_orders_longest_waiting_first(latte, menu):
    orders = _cafe_orders(latte, menu)
    assert [order.id for order in pending_orders(reversed(orders))] == ["order-a", "order-b"]


def test_history_most_recent_first(latte):
    older = make_order("h-1", (make_item(latte),), status=OrderStatus.COMPLETED, completed_at=NOW)
    newer = make_order("h-2", (make_item(latte),), status=OrderStatus.COMPLETED, completed_at=NOW + minutes(5))
    assert [order.id for order in order_history([older, newer])] == ["h-2", "h-1"]


def test_filter_matches_name_id_and_drink(latte, menu):
    orders = _cafe_orders(latte, menu)
    assert [o.id for o in filter_orders(orders, "ann")] == ["order-a"]
    assert [o.id for o in filter_orders(orders, "ORDER-B")] == ["order-b"]
    assert [o.id for o in filter_orders(orders, "cappu")] == ["order-a"]
    assert len(filter_orders(orders, "  ")) == len(orders)


def test_filter_is_applied_before_grouping(latte, menu):
    snapshot = build_snapshot(_cafe_orders(latte, menu), "ben")
    assert [o.id for o in snapshot.pending] == ["order-b"]
    assert sum(group.quantity for group in snapshot.by_item) == 2
    assert sum(group.total_quantity for group in snapshot.by_type) == 2
    assert snapshot.payment_required == ()
    assert snapshot.history == ()


def test_snapshot_is_memoised_on_collection_and_query(latte, menu):
    orders = _cafe_orders(latte, menu)
    views = KitchenViews()
    first = views.snapshot(orders, "")
    assert views.snapshot(orders, "") is first
    assert views.recomputations == 1

    views.snapshot(orders, "ann")
    views.snapshot(list(orders), "ann")
    assert views.recomputations == 3
