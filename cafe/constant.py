"""Editable seed data for the menu, discounts, accounts and tutorial."""

from __future__ import annotations

UNCATEGORISED_CATEGORY_ID = "cat-5"

CATEGORIES: list[dict[str, str]] = [
    {"id": "cat-1", "name": "Hot Drinks"},
    {"id": "cat-2", "name": "Iced Drinks"},
    {"id": "cat-3", "name": "Teas"},
    {"id": "cat-4", "name": "Other"},
    {"id": UNCATEGORISED_CATEGORY_ID, "name": "Uncategorised"},
]

# (option id, name, price, cost)
MODIFIER_GROUPS: dict[str, dict[str, str | list[tuple[str, str, float, float]]]] = {
    "mod-group-1": {
        "name": "Milk Type",
        "options": [
            ("mod-1-1", "Full Cream", 0.0, 0.1),
            ("mod-1-2", "Light", 0.0, 0.1),
            ("mod-1-3", "Almond", 0.75, 0.25),
            ("mod-1-4", "Soy", 0.5, 0.2),
            ("mod-1-5", "Oat", 0.75, 0.25),
            ("mod-1-6", "Lactose Free", 0.75, 0.25),
        ],
    },
    "mod-group-2": {
        "name": "Sweetness",
        "options": [
            ("mod-2-1", "1 Sugar", 0.0, 0.05),
            ("mod-2-2", "2 Sugars", 0.0, 0.1),
            ("mod-2-3", "Vanilla Syrup", 0.5, 0.15),
        ],
    },
    "mod-group-3": {
        "name": "Espresso",
        "options": [
            ("mod-3-1", "Double Shot", 0.5, 0.4),
            ("mod-3-2", "Triple Shot", 1.0, 0.8),
        ],
    },
    "mod-group-4": {
        "name": "Chocolate",
        "options": [
            ("mod-4-1", "Extra Milk Chocolate", 0.5, 0.2),
            ("mod-4-2", "Extra White Chocolate", 0.5, 0.2),
        ],
    },
    "mod-group-5": {
        "name": "Marshmallow",
        "options": [
            ("mod-5-1", "In", 0.0, 0.1),
            ("mod-5-2", "Out", 0.0, 0.0),
        ],
    },
}

_COFFEE = ["mod-group-1", "mod-group-2", "mod-group-3"]
_CHOCOLATE = ["mod-group-1", "mod-group-4", "mod-group-5"]
_TEA = ["mod-group-1", "mod-group-2"]

DRINKS: dict[str, dict[str, str | float | list[str]]] = {
    "drink-1": {"name": "Latte", "category": "cat-1", "price": 4.0, "cost": 1.2, "groups": _COFFEE,
                "description": "A smooth, creamy coffee made with a shot of espresso and steamed milk."},
    "drink-2": {"name": "Cappuccino", "category": "cat-1", "price": 4.0, "cost": 1.1, "groups": _COFFEE,
                "description": "Espresso, steamed milk and a thick layer of foam."},
    "drink-3": {"name": "Flat White", "category": "cat-1", "price": 4.0, "cost": 1.3, "groups": _COFFEE,
                "description": "A rich espresso shot topped with velvety steamed milk."},
    "drink-4": {"name": "Short Black", "category": "cat-1", "price": 3.0, "cost": 0.8, "groups": ["mod-group-3"],
                "description": "A pure, intense shot of espresso."},
    "drink-5": {"name": "Long Black", "category": "cat-1", "price": 3.5, "cost": 0.9, "groups": ["mod-group-3"],
                "description": "A double shot pulled over hot water to keep its crema."},
    "drink-6": {"name": "Macchiato", "category": "cat-1", "price": 3.25, "cost": 0.9, "groups": ["mod-group-3"],
                "description": "Espresso stained with a dollop of milk froth."},
    "drink-7": {"name": "Hot Chocolate", "category": "cat-1", "price": 4.5, "cost": 1.3, "groups": _CHOCOLATE,
                "description": "Rich chocolate melted into creamy steamed milk."},
    "drink-8": {"name": "Mocha", "category": "cat-1", "price": 4.75, "cost": 1.4,
                "groups": ["mod-group-1", "mod-group-2", "mod-group-3", "mod-group-4"],
                "description": "Chocolate, espresso and steamed milk."},
    "drink-9": {"name": "White Hot Chocolate", "category": "cat-1", "price": 4.5, "cost": 1.5, "groups": _CHOCOLATE,
                "description": "White chocolate and steamed milk."},
    "drink-10": {"name": "Piccolo", "category": "cat-1", "price": 3.5, "cost": 1.0,
                 "groups": ["mod-group-1", "mod-group-3"],
                 "description": "A mini latte on a ristretto shot."},
    "drink-22": {"name": "Americano", "category": "cat-1", "price": 3.5, "cost": 0.8, "groups": ["mod-group-3"],
                 "description": "Espresso diluted with hot water."},
    "drink-11": {"name": "Chai Latte", "category": "cat-3", "price": 4.5, "cost": 1.4, "groups": _TEA,
                 "description": "Black tea, aromatic spices and steamed milk."},
    "drink-12": {"name": "Dirty Chai", "category": "cat-3", "price": 5.0, "cost": 1.8, "groups": _COFFEE,
                 "description": "A chai latte with an added shot of espresso."},
    "drink-13": {"name": "Sticky Chai", "category": "cat-3", "price": 5.0, "cost": 1.8, "groups": ["mod-group-1"],
                 "description": "Chai spices and black tea candied in honey."},
    "drink-14": {"name": "Matcha Latte", "category": "cat-3", "price": 4.75, "cost": 1.5, "groups": _TEA,
                 "description": "Japanese green tea powder whisked with steamed milk."},
    "drink-24": {"name": "English Breakfast Tea", "category": "cat-3", "price": 3.5, "cost": 0.5, "groups": _TEA,
                 "description": "A robust, full-bodied black tea blend."},
    "drink-15": {"name": "Iced Coffee", "category": "cat-2", "price": 4.25, "cost": 1.0, "groups": _COFFEE,
                 "description": "Chilled coffee served over ice."},
    "drink-19": {"name": "Iced Latte", "category": "cat-2", "price": 4.25, "cost": 1.2, "groups": _COFFEE,
                 "description": "Espresso poured over milk and ice."},
    "drink-20": {"name": "Iced Chocolate", "category": "cat-2", "price": 4.75, "cost": 1.5,
                 "groups": ["mod-group-1", "mod-group-4"],
                 "description": "Chocolate syrup and cold milk over ice."},
    "drink-21": {"name": "Iced Matcha Latte", "category": "cat-2", "price": 5.0, "cost": 1.6, "groups": _TEA,
                 "description": "Green tea powder whisked with cold milk over ice."},
    "drink-16": {"name": "Babyccino", "category": "cat-4", "price": 1.5, "cost": 0.5, "groups": [],
                 "description": "Steamed, frothy milk in a tiny cup."},
    "drink-17": {"name": "Cookie", "category": "cat-4", "price": 3.0, "cost": 1.0, "groups": [],
                 "description": "A freshly baked, chewy cookie."},
    "drink-18": {"name": "Coffee Beans", "category": "cat-4", "price": 18.0, "cost": 9.0, "groups": [],
                 "description": "Our house blend, whole beans."},
    "drink-23": {"name": "Affogato", "category": "cat-4", "price": 5.5, "cost": 2.0, "groups": [],
                 "description": "Vanilla ice cream drowned with a shot of hot espresso."},
}

DISCOUNTS: list[dict[str, str | float]] = [
    {"id": "disc-1", "code": "STAFF10", "type": "percentage", "value": 10},
    {"id": "disc-2", "code": "50OFF", "type": "percentage", "value": 50},
    {"id": "disc-3", "code": "2DOLLARSOFF", "type": "fixed", "value": 2},
]

USERS: list[dict[str, str]] = [
    {"id": "admin-user", "name": "admin", "role": "Administrator"},
    {"id": "kitchen-user", "name": "kitchen", "role": "Kitchen Staff"},
]

TUTORIAL_STEPS: list[dict[str, str | bool]] = [
    {"id": "tut-step-1", "title": "Welcome!",
     "content": "Let's walk through placing an order. Press Esc at any time to leave the guide.",
     "target": "#menu", "position": "bottom", "wait_for_action": False},
    {"id": "tut-step-2", "title": "Find your drink",
     "content": "Drinks are grouped by category. Move with j/k and press Enter to customise one.",
     "target": "#menu", "position": "bottom", "wait_for_action": True},
    {"id": "tut-step-3", "title": "Choose your options",
     "content": "Pick milk, sweetness and extras. The price updates as you choose.",
     "target": "#drink-dialog", "position": "bottom", "wait_for_action": False},
    {"id": "tut-step-4", "title": "Check out",
     "content": "Press c to open checkout, enter a name, apply a discount and choose a pickup time.",
     "target": "#cart", "position": "left", "wait_for_action": True},
    {"id": "tut-step-5", "title": "Place your order",
     "content": "Press Enter to send your order to the counter. Enjoy!",
     "target": "#checkout-dialog", "position": "top", "wait_for_action": False},
]
