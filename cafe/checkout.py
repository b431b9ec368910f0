"""Client-local cart and checkout working state."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Mapping
from uuid import uuid4

from cafe.errors import NotFoundError, ValidationError
from cafe.lifecycle import initial_status
from cafe.models import CartItem, Discount, Drink, ModifierOption, Order, PaymentMethod
from cafe.pricing import discount_amount, find_discount, final_total, line_total, loyalty_reward_amount, subtotal, total_cost

logger = logging.getLogger(__name__)


def new_cart_item(
    drink: Drink,
    selections: Mapping[str, ModifierOption],
    quantity: int = 1,
    custom_name: str | None = None,
    item_id: str | None = None,
) -> CartItem:
    """Build a cart line with its price computed from the drink, options and quantity."""
    if quantity < 1:
        raise ValidationError("Quantity must be at least 1.")
    return CartItem(
        id=item_id or f"cart-item-{uuid4().hex}",
        drink=drink,
        quantity=quantity,
        selected_modifiers=dict(selections),
        final_price=line_total(drink, selections, quantity),
        custom_name=(custom_name or "").strip() or None,
    )


@dataclass(frozen=True)
class CheckoutTotals:
    subtotal: float
    loyalty_reward: float
    discount: float
    final_total: float
    total_cost: float


class CheckoutSession:
    """Cart lines, order name, discount, pickup time and payment method for one checkout."""

    def __init__(self, order_name: str = "", payment_method: PaymentMethod = PaymentMethod.CARD) -> None:
        self.items: list[CartItem] = []
        self.order_name = order_name
        self.payment_method = payment_method
        self.discount: Discount | None = None
        self.pickup_time: datetime | None = None

    @property
    def unit_count(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def add_item(self, item: CartItem) -> None:
        self.items.append(item)

    def update_item(self, item: CartItem) -> None:
        """Replace the line with the same id in place."""
        for index, existing in enumerate(self.items):
            if existing.id == item.id:
                self.items[index] = item
                return
        raise NotFoundError(f"Cart item {item.id} is not in the cart.")

    def remove_item(self, item_id: str) -> None:
        self.items = [item for item in self.items if item.id != item_id]

    def clear(self) -> None:
        """Empty the cart after a successful submission. The order name is kept."""
        self.items = []
        self.discount = None
        self.pickup_time = None

    def apply_discount_code(self, code: str, discounts: Iterable[Discount]) -> Discount:
        discount = find_discount(discounts, code)
        if discount is None:
            self.discount = None
            raise ValidationError(f"Discount code '{code.strip()}' is not valid.")
        self.discount = discount
        logger.info("discount_applied code=%s", discount.code)
        return discount

    def remove_discount(self) -> None:
        self.discount = None

    def set_pickup(self, pickup_time: datetime | None) -> None:
        self.pickup_time = pickup_time

    def totals(self, loyalty_reward: bool = False) -> CheckoutTotals:
        sub = subtotal(self.items)
        reward = loyalty_reward_amount(self.items) if loyalty_reward else 0.0
        return CheckoutTotals(
            subtotal=sub,
            loyalty_reward=reward,
            discount=discount_amount(sub - reward, self.discount),
            final_total=final_total(sub, self.discount, self.items, loyalty_reward),
            total_cost=total_cost(self.items),
        )

    def validate(self, now: datetime) -> None:
        if not self.items:
            raise ValidationError("Your cart is empty.")
        if not self.order_name.strip():
            raise ValidationError("Please enter a name for the order.")
        if self.pickup_time is not None and self.pickup_time <= now:
            raise ValidationError("Pickup time must be in the future.")

    def build_order(self, customer_id: str, is_admin: bool, loyalty_reward: bool, now: datetime) -> Order:
        """Validate and snapshot the session into an order. The id is assigned by the store."""
        self.validate(now)
        totals = self.totals(loyalty_reward)
        return Order(
            id="",
            customer_name=self.order_name.strip(),
            customer_id=customer_id,
            items=tuple(self.items),
            subtotal=totals.subtotal,
            total_cost=totals.total_cost,
            discount_applied=self.discount,
            final_total=totals.final_total,
            payment_method=self.payment_method,
            status=initial_status(is_admin, self.pickup_time, now),
            created_at=now,
            pickup_time=self.pickup_time,
        )
