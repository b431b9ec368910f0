"""Drink customisation modal: options, quantity and custom label."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.widgets import Static

from cafe.checkout import new_cart_item
from cafe.data import default_selections
from cafe.models import CartItem, Drink, Menu, ModifierOption
from cafe.pricing import format_money, line_total


class DrinkModal(ModalScreen[CartItem | None]):
    """Centered modal to pick options for one drink. Dismisses with the finished cart line."""

    BINDINGS = [
        ("escape", "close", "Close"),
        ("ctrl+c", "close", "Close"),
        ("j", "move_cursor(1)", "Next"),
        ("k", "move_cursor(-1)", "Previous"),
        ("up", "move_cursor(-1)", "Previous"),
        ("down", "move_cursor(1)", "Next"),
        ("h", "cycle(-1)", "Previous option"),
        ("l", "cycle(1)", "Next option"),
        ("left", "cycle(-1)", "Previous option"),
        ("right", "cycle(1)", "Next option"),
        ("enter", "confirm", "Add"),
    ]

    CSS = """
    DrinkModal {
        align: center middle;
        background: $background 60%;
    }

    #drink-dialog {
        width: 64;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #drink-title {
        text-style: bold;
        margin-bottom: 1;
    }

    #drink-body {
        margin-bottom: 1;
    }

    #drink-help {
        margin-top: 1;
        color: $text-muted;
    }
    """

    cursor_index = reactive(0)
    _QUANTITY_ROW = "quantity"
    _NAME_ROW = "name"

    def __init__(self, menu: Menu, drink: Drink, item: CartItem | None = None) -> None:
        super().__init__()
        self.drink = drink
        self.groups = menu.groups_for(drink)
        self.selections: dict[str, ModifierOption] = (
            dict(item.selected_modifiers) if item is not None else default_selections(menu, drink)
        )
        self.quantity = item.quantity if item is not None else 1
        self.custom_name = (item.custom_name or "") if item is not None else ""
        self.item_id = item.id if item is not None else None
        self.typing_name = False

    def compose(self) -> ComposeResult:
        with Container(id="drink-dialog"):
            yield Static(self.drink.name, id="drink-title")
            yield Static(id="drink-body")
            yield Static(id="drink-help")

    def on_mount(self) -> None:
        self._refresh_content()

    def on_key(self, event) -> None:
        if not self.typing_name:
            if event.character in {"+", "="}:
                self._change_quantity(1)
                event.stop()
            elif event.character in {"-", "_"}:
                self._change_quantity(-1)
                event.stop()
            return

        if event.key in {"escape", "enter"}:
            self.typing_name = False
            self._refresh_content()
            event.stop()
            return

        if event.key == "backspace":
            self.custom_name = self.custom_name[:-1]
            self._refresh_content()
            event.stop()
            return

        if event.is_printable and event.character:
            self.custom_name += event.character
            self._refresh_content()
            event.stop()
            return

        # Ignore all non-text keys while typing.
        event.stop()

    def action_close(self) -> None:
        if self.typing_name:
            self.typing_name = False
            self._refresh_content()
            return
        self.dismiss(None)

    def action_move_cursor(self, delta: int) -> None:
        if self.typing_name:
            return
        self.cursor_index = (self.cursor_index + delta) % len(self._rows())
        self._refresh_content()

    def action_cycle(self, delta: int) -> None:
        if self.typing_name:
            return
        kind, value = self._rows()[self.cursor_index]
        if kind == self._QUANTITY_ROW:
            self._change_quantity(delta)
            return
        if kind != "group":
            return
        group = next(g for g in self.groups if g.id == value)
        if not group.options:
            return
        current = self.selections.get(group.id)
        index = group.options.index(current) if current in group.options else -1
        self.selections[group.id] = group.options[(index + delta) % len(group.options)]
        self._refresh_content()

    def action_confirm(self) -> None:
        if self.typing_name:
            return
        kind, _ = self._rows()[self.cursor_index]
        if kind == self._NAME_ROW:
            self.typing_name = True
            self._refresh_content()
            return
        self.dismiss(new_cart_item(self.drink, self.selections, self.quantity, self.custom_name, item_id=self.item_id))

    def _change_quantity(self, delta: int) -> None:
        self.quantity = max(1, self.quantity + delta)
        self._refresh_content()

    def _rows(self) -> list[tuple[str, str]]:
        rows = [("group", group.id) for group in self.groups]
        rows.append((self._QUANTITY_ROW, ""))
        rows.append((self._NAME_ROW, ""))
        return rows

    def _refresh_content(self) -> None:
        body = self.query_one("#drink-body", Static)
        help_text = self.query_one("#drink-help", Static)

        content = Text()
        if self.drink.description:
            content.append(f"{self.drink.description}\n\n", style="italic")
        for idx, (kind, value) in enumerate(self._rows()):
            if idx > 0:
                content.append("\n")
            pointer = "➤ " if idx == self.cursor_index else "  "
            if kind == "group":
                group = next(g for g in self.groups if g.id == value)
                option = self.selections.get(group.id)
                label = option.name if option is not None else "-"
                extra = f" (+{format_money(option.price)})" if option is not None and option.price else ""
                content.append(f"{pointer}{group.name}: ")
                content.append(f"‹ {label} ›", style="bold")
                content.append(extra, style="dim")
            elif kind == self._QUANTITY_ROW:
                content.append(f"{pointer}Quantity: ")
                content.append(f"‹ {self.quantity} ›", style="bold")
            elif self.typing_name and idx == self.cursor_index:
                content.append(f"{pointer}Label: {self.custom_name}|", style="bold")
            else:
                content.append(f"{pointer}Label: {self.custom_name or '(none)'}")

        content.append("\n\nLine total: ", style="bold")
        content.append(format_money(line_total(self.drink, self.selections, self.quantity)), style="bold")

        if self.typing_name:
            help_text.update("Type a label, Enter/Esc done")
        else:
            help_text.update("J/K/↑/↓ move, H/L/←/→ change, +/- quantity, Enter add (on Label: edit), Esc cancel")
        body.update(content)
