"""Customer view: browse the menu, build a cart, check out."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import Key
from textual.reactive import reactive
from textual.widgets import Footer, Header, Static

from cafe.base_screen import CafeScreen
from cafe.checkout import new_cart_item
from cafe.checkout_modal import CheckoutModal
from cafe.data import visible_categories
from cafe.drink_modal import DrinkModal
from cafe.errors import ValidationError
from cafe.feedback_modal import FeedbackModal
from cafe.models import CartItem, Drink
from cafe.pricing import format_money
from cafe.rendering import format_cart_item, window_bounds
from cafe.tutorial_modal import TutorialModal

_PANES = ("menu", "cart", "favourites")


class CustomerScreen(CafeScreen):
    CSS = """
    #customer-layout {
        height: 1fr;
    }

    #menu-pane {
        width: 3fr;
        border: round $primary;
        padding: 1;
    }

    #cart-pane {
        width: 2fr;
        border: round $secondary;
        padding: 1;
    }

    #categories {
        height: auto;
        margin-bottom: 1;
    }

    #drinks, #cart-list, #favourites-list {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    #cart-summary {
        height: auto;
        margin-top: 1;
    }
    """

    pane = reactive("menu")
    category_index = reactive(0)
    drink_index = reactive(0)
    cart_index = reactive(0)
    favourite_index = reactive(0)

    def compose(self) -> ComposeResult:
        yield Header()
        yield self.permission_banner()
        with Horizontal(id="customer-layout"):
            with Vertical(id="menu-pane"):
                yield Static("Menu", classes="pane-title")
                yield Static(id="categories")
                yield Static(id="drinks")
            with Vertical(id="cart-pane"):
                yield Static("Your Order", classes="pane-title")
                yield Static(id="cart-list")
                yield Static(id="cart-summary")
                yield Static("Favourites", classes="pane-title")
                yield Static(id="favourites-list")
        yield Static(id="customer-status", classes="status-bar")
        yield Footer()

    @property
    def session(self):
        return self.app.session  # type: ignore[attr-defined]

    def on_key(self, event: Key) -> None:
        key = event.key
        handled = True
        if key == "tab":
            self.pane = _PANES[(_PANES.index(self.pane) + 1) % len(_PANES)]
        elif key in {"j", "down"}:
            self._move(1)
        elif key in {"k", "up"}:
            self._move(-1)
        elif key in {"h", "left"} and self.pane == "menu":
            self._move_category(-1)
        elif key in {"l", "right"} and self.pane == "menu":
            self._move_category(1)
        elif key == "enter":
            self._activate()
        elif key == "d":
            self._delete_selected()
        elif key == "f":
            self._save_favourite()
        elif key in {"s", "ctrl+s"}:
            self._checkout()
        elif key == "b":
            self.app.push_screen(FeedbackModal(self.store))
        elif key == "question_mark":
            self.open_tutorial()
        else:
            handled = False
        if handled:
            event.stop()
            self.refresh_view()

    def _drinks(self) -> list[Drink]:
        menu = self.store.state.menu
        categories = visible_categories(menu)
        if not categories:
            return []
        self.category_index = min(self.category_index, len(categories) - 1)
        return menu.drinks_in(categories[self.category_index].id)

    def _favourites(self) -> tuple[CartItem, ...]:
        user = self.store.state.current_user
        return user.favourites if user is not None else ()

    def _move(self, delta: int) -> None:
        if self.pane == "menu":
            count = len(self._drinks())
            if count:
                self.drink_index = (self.drink_index + delta) % count
        elif self.pane == "cart":
            count = len(self.session.items)
            if count:
                self.cart_index = (self.cart_index + delta) % count
        else:
            count = len(self._favourites())
            if count:
                self.favourite_index = (self.favourite_index + delta) % count

    def _move_category(self, delta: int) -> None:
        categories = visible_categories(self.store.state.menu)
        if not categories:
            return
        self.category_index = (self.category_index + delta) % len(categories)
        self.drink_index = 0

    def _activate(self) -> None:
        menu = self.store.state.menu
        if self.pane == "menu":
            drinks = self._drinks()
            if drinks:
                self.app.push_screen(DrinkModal(menu, drinks[self.drink_index]), self._on_item_added)
        elif self.pane == "cart":
            if self.session.items:
                item = self.session.items[self.cart_index]
                drink = menu.drink(item.drink.id) or item.drink
                self.app.push_screen(DrinkModal(menu, drink, item), self._on_item_edited)
        else:
            favourites = self._favourites()
            if favourites:
                favourite = favourites[self.favourite_index]
                self.session.add_item(
                    new_cart_item(favourite.drink, favourite.selected_modifiers, 1, favourite.custom_name)
                )
                self.app.notify(f"Added {favourite.display_name} to your order.")

    def _on_item_added(self, item: CartItem | None) -> None:
        if item is None:
            return
        self.session.add_item(item)
        self.app.notify(f"Added {item.quantity}x {item.display_name}.")
        self.refresh_view()

    def _on_item_edited(self, item: CartItem | None) -> None:
        if item is None:
            return
        self.session.update_item(item)
        self.refresh_view()

    def _delete_selected(self) -> None:
        if self.pane == "cart" and self.session.items:
            self.session.remove_item(self.session.items[self.cart_index].id)
            self.cart_index = max(0, min(self.cart_index, len(self.session.items) - 1))
        elif self.pane == "favourites":
            favourites = self._favourites()
            if favourites:
                self.store.remove_favourite(favourites[self.favourite_index].id)
                self.favourite_index = 0

    def _save_favourite(self) -> None:
        if self.pane != "cart" or not self.session.items:
            return
        try:
            self.store.add_favourite(self.session.items[self.cart_index])
        except ValidationError as exc:
            self.app.notify(str(exc), severity="warning")
            return
        self.app.notify("Saved to favourites.")

    def _checkout(self) -> None:
        if self.session.is_empty:
            self.app.notify("Your cart is empty.", severity="warning")
            return
        self.app.push_screen(CheckoutModal(self.store, self.session), self._on_checkout)

    def _on_checkout(self, order_id: str | None) -> None:
        if order_id is None:
            return
        self.cart_index = 0
        self.app.notify(f"Order #{order_id[-6:]} placed.")
        self.refresh_view()

    def open_tutorial(self) -> None:
        self.app.push_screen(TutorialModal(self.store.state.tutorial_steps), self._on_tutorial_closed)

    def _on_tutorial_closed(self, finished: bool | None) -> None:
        if finished:
            self.store.complete_tutorial()

    def refresh_view(self) -> None:
        self._refresh_menu()
        self._refresh_cart()
        self._refresh_favourites()
        self._refresh_status()

    def _refresh_menu(self) -> None:
        menu = self.store.state.menu
        categories = visible_categories(menu)
        tabs = Text()
        for idx, category in enumerate(categories):
            if idx > 0:
                tabs.append("  ")
            style = "bold reverse" if idx == self.category_index else ""
            tabs.append(f" {category.name} ", style=style)
        self.query_one("#categories", Static).update(tabs if categories else "Loading menu...")

        drinks_widget = self.query_one("#drinks", Static)
        drinks = self._drinks()
        if not drinks:
            drinks_widget.update("(no drinks)")
            return
        self.drink_index = min(self.drink_index, len(drinks) - 1)
        start, end = window_bounds(len(drinks), drinks_widget.size.height or 8, self.drink_index)
        lines = Text()
        for idx in range(start, end):
            if idx > start:
                lines.append("\n")
            drink = drinks[idx]
            selected = idx == self.drink_index and self.pane == "menu"
            lines.append("➤ " if selected else "  ")
            lines.append(drink.name, style="bold" if selected else "")
            lines.append(f"  {format_money(drink.base_price)}", style="dim")
        drinks_widget.update(lines)

    def _refresh_cart(self) -> None:
        cart_widget = self.query_one("#cart-list", Static)
        items = self.session.items
        if not items:
            cart_widget.update("(cart is empty)")
        else:
            self.cart_index = min(self.cart_index, len(items) - 1)
            lines = Text()
            for idx, item in enumerate(items):
                if idx > 0:
                    lines.append("\n")
                lines.append("➤ " if idx == self.cart_index and self.pane == "cart" else "  ")
                lines.append_text(format_cart_item(item))
            cart_widget.update(lines)

        reward = self.store.has_loyalty_reward(self.session)
        totals = self.session.totals(loyalty_reward=reward)
        summary = Text()
        summary.append(f"Total {format_money(totals.final_total)}", style="bold")
        if reward:
            summary.append("  (includes a free drink!)", style="green")
        self.query_one("#cart-summary", Static).update(summary)

    def _refresh_favourites(self) -> None:
        widget = self.query_one("#favourites-list", Static)
        user = self.store.state.current_user
        if user is None or user.is_guest:
            widget.update("Register to save favourites.")
            return
        favourites = user.favourites
        if not favourites:
            widget.update("(none yet, press F on a cart line)")
            return
        self.favourite_index = min(self.favourite_index, len(favourites) - 1)
        lines = Text()
        for idx, item in enumerate(favourites):
            if idx > 0:
                lines.append("\n")
            lines.append("➤ " if idx == self.favourite_index and self.pane == "favourites" else "  ")
            lines.append_text(format_cart_item(item))
        widget.update(lines)

    def _refresh_status(self) -> None:
        user = self.store.state.current_user
        who = "Not logged in" if user is None else f"{user.name} ({'guest' if user.is_guest else user.role.value})"
        if user is not None and not user.is_guest:
            who += f"  loyalty {user.loyalty_points}/5"
        self.query_one("#customer-status", Static).update(
            f"{who}  |  Tab pane, J/K move, H/L category, Enter add/edit, D delete, F favourite, S checkout, B feedback, ? help"
        )
