"""Line, cart and order total computation.

All arithmetic is plain floating point; amounts are only rounded for
display (see ``format_money``).
"""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from cafe.models import CartItem, Discount, DiscountType, Drink, ModifierOption


def unit_price(drink: Drink, selections: Mapping[str, ModifierOption]) -> float:
    """Base price plus every selected option's price delta."""
    return drink.base_price + sum(option.price for option in selections.values())


def line_total(drink: Drink, selections: Mapping[str, ModifierOption], quantity: int) -> float:
    if quantity < 1:
        raise ValueError("quantity must be at least 1")
    return unit_price(drink, selections) * quantity


def unit_cost(drink: Drink, selections: Mapping[str, ModifierOption]) -> float:
    return drink.base_cost + sum(option.cost for option in selections.values())


def line_cost(item: CartItem) -> float:
    return unit_cost(item.drink, item.selected_modifiers) * item.quantity


def total_cost(items: Iterable[CartItem]) -> float:
    """Cost of goods for reporting. Never shown to customers, never discounted."""
    return sum(line_cost(item) for item in items)


def subtotal(items: Iterable[CartItem]) -> float:
    return sum(item.final_price for item in items)


def item_unit_price(item: CartItem) -> float:
    return unit_price(item.drink, item.selected_modifiers)


def cheapest_item(items: Sequence[CartItem]) -> CartItem | None:
    """Line with the lowest unit price; the first one wins a tie."""
    if not items:
        return None
    return min(items, key=item_unit_price)


def loyalty_reward_amount(items: Sequence[CartItem]) -> float:
    """Value of the free unit: one unit of the cheapest line, not the whole line."""
    cheapest = cheapest_item(items)
    if cheapest is None:
        return 0.0
    return item_unit_price(cheapest)


def apply_discount(amount: float, discount: Discount | None) -> float:
    if discount is None:
        return amount
    if discount.type is DiscountType.PERCENTAGE:
        return amount * (100 - discount.value) / 100
    return amount - discount.value


def final_total(
    subtotal_amount: float,
    discount: Discount | None,
    items: Sequence[CartItem] = (),
    loyalty_reward: bool = False,
) -> float:
    """Loyalty reward first, then the discount code, then clamp at zero."""
    total = subtotal_amount
    if loyalty_reward and items:
        total -= loyalty_reward_amount(items)
    total = apply_discount(total, discount)
    return max(0.0, total)


def discount_amount(subtotal_amount: float, discount: Discount | None) -> float:
    """Money a discount removes from the subtotal, as shown on the cart summary.

    Never more than the subtotal itself.
    """
    if discount is None:
        return 0.0
    return subtotal_amount - max(0.0, apply_discount(subtotal_amount, discount))


def find_discount(discounts: Iterable[Discount], code: str) -> Discount | None:
    wanted = code.strip().lower()
    if not wanted:
        return None
    for discount in discounts:
        if discount.code.lower() == wanted:
            return discount
    return None


def format_money(amount: float) -> str:
    return f"${amount:.2f}"
