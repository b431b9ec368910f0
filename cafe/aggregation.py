"""Kitchen projections over the live order collection.

Every projection is recomputed from scratch from the full collection. The
search filter decides which *orders* qualify and is applied before any
grouping, so all views agree on what a query matches.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

from cafe.models import Drink, ModifierOption, Order, OrderStatus


@dataclass(frozen=True)
class Contribution:
    """How many units of a group one order asked for."""

    order_id: str
    customer_name: str
    quantity: int


@dataclass(frozen=True)
class ItemGroup:
    """Identical drinks (same drink, same options) across all pending orders."""

    drink: Drink
    selected_modifiers: Mapping[str, ModifierOption]
    quantity: int
    contributions: tuple[Contribution, ...]

    @property
    def option_ids(self) -> tuple[str, ...]:
        return tuple(sorted(option.id for option in self.selected_modifiers.values()))


@dataclass(frozen=True)
class Variation:
    selected_modifiers: Mapping[str, ModifierOption]
    quantity: int


@dataclass(frozen=True)
class TypeGroup:
    """All pending units of one drink with a breakdown per option combination."""

    drink: Drink
    total_quantity: int
    variations: tuple[Variation, ...]


@dataclass(frozen=True)
class KitchenSnapshot:
    payment_required: tuple[Order, ...]
    pending: tuple[Order, ...]
    scheduled: tuple[Order, ...]
    history: tuple[Order, ...]
    by_item: tuple[ItemGroup, ...]
    by_type: tuple[TypeGroup, ...]


def matches(order: Order, query: str) -> bool:
    """Case-insensitive substring match on customer name, order id or any drink name."""
    needle = query.strip().lower()
    if not needle:
        return True
    if needle in order.customer_name.lower():
        return True
    if needle in order.id.lower():
        return True
    return any(needle in item.drink.name.lower() for item in order.items)


def filter_orders(orders: Iterable[Order], query: str) -> list[Order]:
    return [order for order in orders if matches(order, query)]


def _with_status(orders: Iterable[Order], status: OrderStatus) -> list[Order]:
    return [order for order in orders if order.status is status]


def payment_required_orders(orders: Iterable[Order], query: str = "") -> list[Order]:
    selected = filter_orders(_with_status(orders, OrderStatus.PAYMENT_REQUIRED), query)
    return sorted(selected, key=lambda order: order.created_at)


def pending_orders(orders: Iterable[Order], query: str = "") -> list[Order]:
    """Tickets for the by-order view, longest waiting first."""
    selected = filter_orders(_with_status(orders, OrderStatus.PENDING), query)
    return sorted(selected, key=lambda order: order.created_at)


by_order = pending_orders


def scheduled_orders(orders: Iterable[Order], query: str = "") -> list[Order]:
    selected = filter_orders(_with_status(orders, OrderStatus.SCHEDULED), query)
    return sorted(selected, key=lambda order: (order.pickup_time is None, order.pickup_time or order.created_at))


def order_history(orders: Iterable[Order], query: str = "") -> list[Order]:
    """Completed orders, most recently completed first."""
    selected = filter_orders(_with_status(orders, OrderStatus.COMPLETED), query)
    return sorted(selected, key=lambda order: order.completed_at or order.created_at, reverse=True)


def _variation_key(selected_modifiers: Mapping[str, ModifierOption]) -> tuple[str, ...]:
    return tuple(sorted(option.id for option in selected_modifiers.values()))


def by_item(orders: Iterable[Order], query: str = "") -> list[ItemGroup]:
    groups: dict[tuple[str, tuple[str, ...]], dict] = {}

    for order in pending_orders(orders, query):
        for item in order.items:
            key = (item.drink.id, _variation_key(item.selected_modifiers))
            group = groups.get(key)
            if group is None:
                group = {
                    "drink": item.drink,
                    "selected_modifiers": item.selected_modifiers,
                    "quantity": 0,
                    "orders": {},
                }
                groups[key] = group
            group["quantity"] += item.quantity
            name, quantity = group["orders"].get(order.id, (order.customer_name, 0))
            group["orders"][order.id] = (name, quantity + item.quantity)

    result = [
        ItemGroup(
            drink=group["drink"],
            selected_modifiers=group["selected_modifiers"],
            quantity=group["quantity"],
            contributions=tuple(
                Contribution(order_id=order_id, customer_name=name, quantity=quantity)
                for order_id, (name, quantity) in group["orders"].items()
            ),
        )
        for group in groups.values()
    ]
    result.sort(key=lambda group: -group.quantity)
    return result


def by_type(orders: Iterable[Order], query: str = "") -> list[TypeGroup]:
    drinks: dict[str, Drink] = {}
    totals: dict[str, int] = {}
    variations: dict[str, dict[tuple[str, ...], list]] = {}

    for order in pending_orders(orders, query):
        for item in order.items:
            drink_id = item.drink.id
            drinks.setdefault(drink_id, item.drink)
            totals[drink_id] = totals.get(drink_id, 0) + item.quantity
            per_drink = variations.setdefault(drink_id, {})
            entry = per_drink.setdefault(_variation_key(item.selected_modifiers), [item.selected_modifiers, 0])
            entry[1] += item.quantity

    result = []
    for drink_id, drink in drinks.items():
        breakdown = [
            Variation(selected_modifiers=selected, quantity=quantity)
            for selected, quantity in variations[drink_id].values()
        ]
        breakdown.sort(key=lambda variation: -variation.quantity)
        result.append(TypeGroup(drink=drink, total_quantity=totals[drink_id], variations=tuple(breakdown)))
    result.sort(key=lambda group: -group.total_quantity)
    return result


def build_snapshot(orders: Sequence[Order], query: str = "") -> KitchenSnapshot:
    return KitchenSnapshot(
        payment_required=tuple(payment_required_orders(orders, query)),
        pending=tuple(pending_orders(orders, query)),
        scheduled=tuple(scheduled_orders(orders, query)),
        history=tuple(order_history(orders, query)),
        by_item=tuple(by_item(orders, query)),
        by_type=tuple(by_type(orders, query)),
    )


class KitchenViews:
    """Memoises the kitchen snapshot on the order collection's identity and the query.

    The change feed replaces the collection wholesale, so a new collection
    object is the signal that something changed.
    """

    def __init__(self) -> None:
        self._orders: Sequence[Order] | None = None
        self._query: str | None = None
        self._snapshot: KitchenSnapshot | None = None
        self.recomputations = 0

    def snapshot(self, orders: Sequence[Order], query: str = "") -> KitchenSnapshot:
        if self._snapshot is not None and orders is self._orders and query == self._query:
            return self._snapshot
        self._orders = orders
        self._query = query
        self._snapshot = build_snapshot(orders, query)
        self.recomputations += 1
        return self._snapshot
