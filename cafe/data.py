"""Seed menu, discount, account and tutorial data as domain objects."""

from __future__ import annotations

from cafe.constant import (
    CATEGORIES as _CATEGORIES_RAW,
    DISCOUNTS as _DISCOUNTS_RAW,
    DRINKS as _DRINKS_RAW,
    MODIFIER_GROUPS as _MODIFIER_GROUPS_RAW,
    TUTORIAL_STEPS as _TUTORIAL_STEPS_RAW,
    USERS as _USERS_RAW,
)
from cafe.models import (
    Category,
    Discount,
    DiscountType,
    Drink,
    Menu,
    ModifierGroup,
    ModifierOption,
    TutorialStep,
    User,
    UserRole,
)

SEED_MENU = Menu(
    drinks=tuple(
        Drink(
            id=drink_id,
            name=str(raw["name"]),
            category=str(raw["category"]),
            base_price=float(raw["price"]),  # type: ignore[arg-type]
            base_cost=float(raw["cost"]),  # type: ignore[arg-type]
            modifier_groups=tuple(raw["groups"]),  # type: ignore[arg-type]
            description=str(raw["description"]),
        )
        for drink_id, raw in _DRINKS_RAW.items()
    ),
    categories=tuple(Category(id=raw["id"], name=raw["name"]) for raw in _CATEGORIES_RAW),
    modifier_groups=tuple(
        ModifierGroup(
            id=group_id,
            name=str(raw["name"]),
            options=tuple(
                ModifierOption(id=option_id, name=name, price=price, cost=cost)
                for option_id, name, price, cost in raw["options"]  # type: ignore[misc]
            ),
        )
        for group_id, raw in _MODIFIER_GROUPS_RAW.items()
    ),
)

SEED_DISCOUNTS: tuple[Discount, ...] = tuple(
    Discount(
        id=str(raw["id"]),
        code=str(raw["code"]),
        type=DiscountType(raw["type"]),
        value=float(raw["value"]),
    )
    for raw in _DISCOUNTS_RAW
)

SEED_USERS: tuple[User, ...] = tuple(
    User(id=raw["id"], name=raw["name"], role=UserRole(raw["role"])) for raw in _USERS_RAW
)

SEED_TUTORIAL_STEPS: tuple[TutorialStep, ...] = tuple(
    TutorialStep(
        id=str(raw["id"]),
        title=str(raw["title"]),
        content=str(raw["content"]),
        target=str(raw["target"]),
        position=str(raw["position"]),
        wait_for_action=bool(raw["wait_for_action"]),
    )
    for raw in _TUTORIAL_STEPS_RAW
)


def default_selections(menu: Menu, drink: Drink) -> dict[str, ModifierOption]:
    """Preselect the first option of every modifier group linked to a drink."""
    selections: dict[str, ModifierOption] = {}
    for group in menu.groups_for(drink):
        if group.options:
            selections[group.id] = group.options[0]
    return selections


def category_name(menu: Menu, category_id: str) -> str:
    for category in menu.categories:
        if category.id == category_id:
            return category.name
    return category_id


def visible_categories(menu: Menu) -> list[Category]:
    """Categories that currently hold at least one drink, in menu order."""
    used = {drink.category for drink in menu.drinks}
    return [category for category in menu.categories if category.id in used]
