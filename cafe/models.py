"""Domain models for the café ordering system."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _time_to_doc(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.isoformat()


def _time_from_doc(value: Any) -> datetime | None:
    if value is None:
        return None
    parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class OrderStatus(str, Enum):
    PAYMENT_REQUIRED = "payment-required"
    PENDING = "pending"
    SCHEDULED = "scheduled"
    COMPLETED = "completed"


class UserRole(str, Enum):
    CUSTOMER = "Customer"
    KITCHEN = "Kitchen Staff"
    ADMIN = "Administrator"


class PaymentMethod(str, Enum):
    CARD = "Credit/Debit Card"
    SERVING = "Serving"
    CASH = "Cash"


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


@dataclass(frozen=True)
class ModifierOption:
    """One choice inside a modifier group, with its price and cost deltas."""

    id: str
    name: str
    price: float = 0.0
    cost: float = 0.0

    def to_document(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "price": self.price, "cost": self.cost}

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> ModifierOption:
        return cls(
            id=str(doc["id"]),
            name=str(doc["name"]),
            price=float(doc.get("price", 0.0)),
            cost=float(doc.get("cost", 0.0) or 0.0),
        )


@dataclass(frozen=True)
class ModifierGroup:
    """A named choice axis such as "Milk Type"."""

    id: str
    name: str
    options: tuple[ModifierOption, ...] = ()

    def option(self, option_id: str) -> ModifierOption | None:
        for option in self.options:
            if option.id == option_id:
                return option
        return None

    def to_document(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "options": [option.to_document() for option in self.options]}

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> ModifierGroup:
        return cls(
            id=str(doc["id"]),
            name=str(doc["name"]),
            options=tuple(ModifierOption.from_document(option) for option in doc.get("options") or []),
        )


@dataclass(frozen=True)
class Category:
    id: str
    name: str

    def to_document(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name}

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> Category:
        return cls(id=str(doc["id"]), name=str(doc["name"]))


@dataclass(frozen=True)
class Drink:
    """A catalog entry. Orders embed a copy, never a live reference."""

    id: str
    name: str
    category: str
    base_price: float
    base_cost: float = 0.0
    modifier_groups: tuple[str, ...] = ()
    image_url: str | None = None
    description: str | None = None

    def to_document(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "base_price": self.base_price,
            "base_cost": self.base_cost,
            "modifier_groups": list(self.modifier_groups),
            "image_url": self.image_url,
            "description": self.description,
        }

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> Drink:
        return cls(
            id=str(doc["id"]),
            name=str(doc["name"]),
            category=str(doc.get("category") or ""),
            base_price=float(doc.get("base_price", 0.0)),
            base_cost=float(doc.get("base_cost", 0.0) or 0.0),
            modifier_groups=tuple(doc.get("modifier_groups") or ()),
            image_url=doc.get("image_url"),
            description=doc.get("description"),
        )


@dataclass(frozen=True)
class Menu:
    """The full admin-authored menu: drinks, categories and modifier groups."""

    drinks: tuple[Drink, ...] = ()
    categories: tuple[Category, ...] = ()
    modifier_groups: tuple[ModifierGroup, ...] = ()

    def drink(self, drink_id: str) -> Drink | None:
        for drink in self.drinks:
            if drink.id == drink_id:
                return drink
        return None

    def group(self, group_id: str) -> ModifierGroup | None:
        for group in self.modifier_groups:
            if group.id == group_id:
                return group
        return None

    def groups_for(self, drink: Drink) -> list[ModifierGroup]:
        """Modifier groups linked to a drink, in the drink's order, skipping dangling ids."""
        groups = []
        for group_id in drink.modifier_groups:
            group = self.group(group_id)
            if group is not None:
                groups.append(group)
        return groups

    def drinks_in(self, category_id: str) -> list[Drink]:
        return [drink for drink in self.drinks if drink.category == category_id]

    def to_document(self) -> dict[str, Any]:
        return {
            "drinks": [drink.to_document() for drink in self.drinks],
            "categories": [category.to_document() for category in self.categories],
            "modifier_groups": [group.to_document() for group in self.modifier_groups],
        }

    @classmethod
    def from_document(cls, doc: Mapping[str, Any] | None) -> Menu:
        doc = doc or {}
        return cls(
            drinks=tuple(Drink.from_document(d) for d in doc.get("drinks") or []),
            categories=tuple(Category.from_document(c) for c in doc.get("categories") or []),
            modifier_groups=tuple(ModifierGroup.from_document(g) for g in doc.get("modifier_groups") or []),
        )


@dataclass(frozen=True)
class Discount:
    id: str
    code: str
    type: DiscountType
    value: float

    def to_document(self) -> dict[str, Any]:
        return {"id": self.id, "code": self.code, "type": self.type.value, "value": self.value}

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> Discount:
        return cls(
            id=str(doc["id"]),
            code=str(doc["code"]),
            type=DiscountType(doc["type"]),
            value=float(doc["value"]),
        )


@dataclass(frozen=True)
class CartItem:
    """One ordered line.

    ``final_price`` is always derived from the drink, the selected options and
    the quantity (see ``cafe.pricing``); build items with
    ``cafe.checkout.new_cart_item`` rather than setting it by hand.
    """

    id: str
    drink: Drink
    quantity: int
    selected_modifiers: Mapping[str, ModifierOption] = field(default_factory=dict)
    final_price: float = 0.0
    custom_name: str | None = None
    is_completed: bool = False

    @property
    def display_name(self) -> str:
        return self.custom_name or self.drink.name

    def option_ids(self) -> tuple[str, ...]:
        return tuple(sorted(option.id for option in self.selected_modifiers.values()))

    def to_document(self) -> dict[str, Any]:
        doc: dict[str, Any] = {
            "id": self.id,
            "drink": self.drink.to_document(),
            "quantity": self.quantity,
            "selected_modifiers": {
                group_id: option.to_document() for group_id, option in self.selected_modifiers.items()
            },
            "final_price": self.final_price,
            "is_completed": self.is_completed,
        }
        if self.custom_name:
            doc["custom_name"] = self.custom_name
        return doc

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> CartItem:
        return cls(
            id=str(doc["id"]),
            drink=Drink.from_document(doc["drink"]),
            quantity=int(doc["quantity"]),
            selected_modifiers={
                str(group_id): ModifierOption.from_document(option)
                for group_id, option in (doc.get("selected_modifiers") or {}).items()
            },
            final_price=float(doc.get("final_price", 0.0)),
            custom_name=doc.get("custom_name") or None,
            is_completed=bool(doc.get("is_completed", False)),
        )


@dataclass(frozen=True)
class Order:
    """A placed order. Totals are fixed at creation and never recomputed."""

    id: str
    customer_name: str
    customer_id: str
    items: tuple[CartItem, ...]
    subtotal: float
    total_cost: float
    discount_applied: Discount | None
    final_total: float
    payment_method: PaymentMethod
    status: OrderStatus
    created_at: datetime
    completed_at: datetime | None = None
    pickup_time: datetime | None = None

    @property
    def all_items_completed(self) -> bool:
        return all(item.is_completed for item in self.items)

    @property
    def unit_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def item(self, item_id: str) -> CartItem | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def with_updates(self, fields: Mapping[str, Any]) -> Order:
        """Apply a partial update the way the document store would."""
        return replace(self, **dict(fields))

    def to_document(self) -> dict[str, Any]:
        """Serialise every field except ``id``, which is the document key."""
        return {
            "customer_name": self.customer_name,
            "customer_id": self.customer_id,
            "items": [item.to_document() for item in self.items],
            "subtotal": self.subtotal,
            "total_cost": self.total_cost,
            "discount_applied": self.discount_applied.to_document() if self.discount_applied else None,
            "final_total": self.final_total,
            "payment_method": self.payment_method.value,
            "status": self.status.value,
            "created_at": _time_to_doc(self.created_at),
            "completed_at": _time_to_doc(self.completed_at),
            "pickup_time": _time_to_doc(self.pickup_time),
        }

    @classmethod
    def from_document(cls, order_id: str, doc: Mapping[str, Any]) -> Order:
        discount = doc.get("discount_applied")
        created_at = _time_from_doc(doc.get("created_at"))
        return cls(
            id=order_id,
            customer_name=str(doc.get("customer_name", "")),
            customer_id=str(doc.get("customer_id", "")),
            items=tuple(CartItem.from_document(item) for item in doc.get("items") or []),
            subtotal=float(doc.get("subtotal", 0.0)),
            total_cost=float(doc.get("total_cost", 0.0) or 0.0),
            discount_applied=Discount.from_document(discount) if discount else None,
            final_total=float(doc.get("final_total", 0.0)),
            payment_method=PaymentMethod(doc.get("payment_method", PaymentMethod.CARD.value)),
            status=OrderStatus(doc["status"]),
            created_at=created_at if created_at is not None else utc_now(),
            completed_at=_time_from_doc(doc.get("completed_at")),
            pickup_time=_time_from_doc(doc.get("pickup_time")),
        )


def encode_order_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Encode a partial ``Order`` update into document values.

    ``None`` is kept as an explicit null so the store clears the field.
    """
    encoded: dict[str, Any] = {}
    for name, value in fields.items():
        if value is None:
            encoded[name] = None
        elif isinstance(value, datetime):
            encoded[name] = _time_to_doc(value)
        elif isinstance(value, Enum):
            encoded[name] = value.value
        elif isinstance(value, Discount):
            encoded[name] = value.to_document()
        elif name == "items":
            encoded[name] = [item.to_document() for item in value]
        else:
            encoded[name] = value
    return encoded


@dataclass(frozen=True)
class User:
    id: str
    name: str
    role: UserRole = UserRole.CUSTOMER
    favourites: tuple[CartItem, ...] = ()
    loyalty_points: int = 0
    has_completed_tutorial: bool = False

    @property
    def is_guest(self) -> bool:
        return self.id.startswith("guest-")

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN

    @property
    def is_staff(self) -> bool:
        return self.role in {UserRole.ADMIN, UserRole.KITCHEN}

    def to_document(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role.value,
            "favourites": [item.to_document() for item in self.favourites],
            "loyalty_points": self.loyalty_points,
            "has_completed_tutorial": self.has_completed_tutorial,
        }

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> User:
        return cls(
            id=str(doc["id"]),
            name=str(doc["name"]),
            role=UserRole(doc.get("role", UserRole.CUSTOMER.value)),
            favourites=tuple(CartItem.from_document(item) for item in doc.get("favourites") or []),
            loyalty_points=int(doc.get("loyalty_points", 0)),
            has_completed_tutorial=bool(doc.get("has_completed_tutorial", False)),
        )


@dataclass(frozen=True)
class Feedback:
    id: str
    rating: int
    message: str
    created_at: datetime

    def to_document(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "rating": self.rating,
            "message": self.message,
            "created_at": _time_to_doc(self.created_at),
        }

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> Feedback:
        return cls(
            id=str(doc["id"]),
            rating=int(doc["rating"]),
            message=str(doc.get("message", "")),
            created_at=_time_from_doc(doc.get("created_at")) or utc_now(),
        )


@dataclass(frozen=True)
class TutorialStep:
    id: str
    title: str
    content: str
    target: str = ""
    position: str = "bottom"
    wait_for_action: bool = False

    def to_document(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "target": self.target,
            "position": self.position,
            "wait_for_action": self.wait_for_action,
        }

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> TutorialStep:
        return cls(
            id=str(doc["id"]),
            title=str(doc.get("title", "")),
            content=str(doc.get("content", "")),
            target=str(doc.get("target", "")),
            position=str(doc.get("position", "bottom")),
            wait_for_action=bool(doc.get("wait_for_action", False)),
        )


@dataclass(frozen=True)
class AccountIdentity:
    """Loyalty identity of a registered user, keyed by account id."""

    user_id: str


@dataclass(frozen=True)
class GuestIdentity:
    """Loyalty identity of a guest, keyed by the lower-cased order name."""

    name: str


Identity = AccountIdentity | GuestIdentity
