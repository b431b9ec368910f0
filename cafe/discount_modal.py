"""Form for adding a discount code: code, type and value."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Static

from cafe.errors import ValidationError
from cafe.models import Discount, DiscountType
from cafe.store import AppStore

FIELDS = ("code", "value")
TYPES = (DiscountType.PERCENTAGE, DiscountType.FIXED)


class DiscountModal(ModalScreen[Discount | None]):
    CSS = """
    DiscountModal {
        align: center middle;
        background: $background 60%;
    }

    #discount-dialog {
        width: 56;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #discount-title {
        text-style: bold;
        margin-bottom: 1;
    }

    #discount-form {
        border: heavy $secondary;
        padding: 0 1;
        margin-bottom: 1;
    }

    #discount-error {
        color: #ffb3b3;
    }

    #discount-help {
        color: $text-muted;
    }
    """

    def __init__(self, store: AppStore) -> None:
        super().__init__()
        self.store = store
        self.code = ""
        self.value = ""
        self.type = DiscountType.PERCENTAGE
        self.field = "code"
        self.error = ""

    def compose(self) -> ComposeResult:
        with Container(id="discount-dialog"):
            yield Static("Add Discount", id="discount-title")
            yield Static(id="discount-form")
            yield Static(id="discount-error")
            yield Static("Tab next field, ←/→ type, Enter add, Esc cancel", id="discount-help")

    def on_mount(self) -> None:
        self._refresh_content()

    def on_key(self, event: Key) -> None:
        key = event.key
        if key in {"escape", "ctrl+c"}:
            self.dismiss(None)
            event.stop()
            return
        if key == "enter":
            event.stop()
            discount = self._submit()
            if discount is not None:
                self.app.notify(f"Discount '{discount.code}' added.")
                self.dismiss(discount)
                return
        elif key in {"tab", "shift+tab"}:
            self.field = FIELDS[(FIELDS.index(self.field) + 1) % len(FIELDS)]
        elif key in {"left", "right"}:
            self.type = TYPES[(TYPES.index(self.type) + 1) % len(TYPES)]
        elif key == "backspace":
            setattr(self, self.field, getattr(self, self.field)[:-1])
        elif event.is_printable and event.character:
            if self.field == "value" and event.character not in "0123456789.":
                event.stop()
                return
            setattr(self, self.field, getattr(self, self.field) + event.character)
        else:
            return
        event.stop()
        self._refresh_content()

    def _submit(self) -> Discount | None:
        try:
            try:
                value = float(self.value)
            except ValueError:
                raise ValidationError("Please enter a number for the value.") from None
            return self.store.add_discount(self.code, self.type, value)
        except ValidationError as exc:
            self.error = str(exc)
            self._refresh_content()
            return None

    def _refresh_content(self) -> None:
        form = Text()
        for name, label, shown in (
            ("code", "Code", self.code.upper()),
            ("type", "Type", self.type.value.title()),
            ("value", "Value", self.value),
        ):
            if name != "code":
                form.append("\n")
            form.append("➤ " if name == self.field else "  ")
            form.append(f"{label}: ", style="bold")
            form.append(shown)
            if name == self.field:
                form.append("|")
        self.query_one("#discount-form", Static).update(form)
        self.query_one("#discount-error", Static).update(self.error)
