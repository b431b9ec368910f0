"""Checkout modal: order name, discount code, pickup time and payment method."""

from __future__ import annotations

from datetime import timedelta

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Static

from cafe.checkout import CheckoutSession
from cafe.errors import IdentityUnavailableError, ValidationError
from cafe.models import PaymentMethod, utc_now
from cafe.pricing import format_money
from cafe.store import AppStore

_FIELDS = ("name", "code", "pickup", "payment")
_PAYMENT_METHODS = list(PaymentMethod)


class CheckoutModal(ModalScreen[str | None]):
    """Collect the remaining order details and submit. Dismisses with the new order id."""

    CSS = """
    CheckoutModal {
        align: center middle;
        background: $background 60%;
    }

    #checkout-dialog {
        width: 64;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #checkout-title {
        text-style: bold;
        margin-bottom: 1;
    }

    #checkout-fields {
        margin-bottom: 1;
    }

    #checkout-totals {
        border: heavy $secondary;
        padding: 0 1;
        margin-bottom: 1;
    }

    #checkout-error {
        color: #ffb3b3;
        margin-bottom: 1;
    }

    #checkout-help {
        color: $text-muted;
    }
    """

    def __init__(self, store: AppStore, session: CheckoutSession) -> None:
        super().__init__()
        self.store = store
        self.session = session
        self.field_index = 0
        self.code = session.discount.code if session.discount is not None else ""
        self.pickup_minutes = ""
        self.error = ""
        if not session.order_name and store.state.current_user is not None:
            session.order_name = store.state.current_user.name

    def compose(self) -> ComposeResult:
        with Container(id="checkout-dialog"):
            yield Static("Checkout", id="checkout-title")
            yield Static(id="checkout-fields")
            yield Static(id="checkout-totals")
            yield Static(id="checkout-error")
            yield Static(
                "Tab/↑/↓ field. Type to edit. ←/→ payment. Enter apply code / place order. Esc cancel.",
                id="checkout-help",
            )

    def on_mount(self) -> None:
        self._refresh_content()

    @property
    def field(self) -> str:
        return _FIELDS[self.field_index]

    def on_key(self, event: Key) -> None:
        if event.key in {"escape", "ctrl+c"}:
            self.dismiss(None)
            event.stop()
            return

        if event.key in {"tab", "down"}:
            self.field_index = (self.field_index + 1) % len(_FIELDS)
        elif event.key in {"shift+tab", "up"}:
            self.field_index = (self.field_index - 1) % len(_FIELDS)
        elif event.key in {"left", "right"} and self.field == "payment":
            step = 1 if event.key == "right" else -1
            index = _PAYMENT_METHODS.index(self.session.payment_method)
            self.session.payment_method = _PAYMENT_METHODS[(index + step) % len(_PAYMENT_METHODS)]
        elif event.key == "enter":
            if self.field == "code":
                self._apply_code()
            elif self._submit():
                event.stop()
                return
        elif event.key == "backspace":
            self._edit(None)
        elif event.is_printable and event.character:
            self._edit(event.character)
        else:
            return
        event.stop()
        self._refresh_content()

    def _edit(self, character: str | None) -> None:
        self.error = ""
        if self.field == "name":
            value = self.session.order_name
            self.session.order_name = value[:-1] if character is None else value + character
        elif self.field == "code":
            self.code = self.code[:-1] if character is None else self.code + character
        elif self.field == "pickup":
            if character is None:
                self.pickup_minutes = self.pickup_minutes[:-1]
            elif character.isdigit() and len(self.pickup_minutes) < 4:
                self.pickup_minutes += character

    def _apply_code(self) -> None:
        if not self.code.strip():
            self.session.remove_discount()
            return
        try:
            self.session.apply_discount_code(self.code, self.store.state.discounts)
        except ValidationError as exc:
            self.error = str(exc)
            self.app.notify(str(exc), severity="warning")

    def _sync_pickup(self) -> None:
        if self.pickup_minutes:
            self.session.set_pickup(utc_now() + timedelta(minutes=int(self.pickup_minutes)))
        else:
            self.session.set_pickup(None)

    def _submit(self) -> bool:
        self._sync_pickup()
        try:
            order_id = self.store.place_order(self.session)
        except (ValidationError, IdentityUnavailableError) as exc:
            self.error = str(exc)
            self.app.notify(str(exc), severity="warning")
            return False
        if order_id is None:
            self.error = "The order could not be placed. Your cart has been kept."
            return False
        self.dismiss(order_id)
        return True

    def _refresh_content(self) -> None:
        fields = self.query_one("#checkout-fields", Static)
        totals_widget = self.query_one("#checkout-totals", Static)
        error = self.query_one("#checkout-error", Static)

        values = {
            "name": ("Order name", self.session.order_name),
            "code": ("Discount code", self.code),
            "pickup": ("Pickup in (min)", self.pickup_minutes or "as soon as possible"),
            "payment": ("Payment", f"‹ {self.session.payment_method.value} ›"),
        }
        content = Text()
        for idx, name in enumerate(_FIELDS):
            if idx > 0:
                content.append("\n")
            label, value = values[name]
            active = name == self.field
            pointer = "➤ " if active else "  "
            cursor = "|" if active and name != "payment" else ""
            content.append(f"{pointer}{label}: ")
            content.append(f"{value}{cursor}", style="bold" if active else "")
        if self.session.discount is not None:
            content.append(f"\n  Applied: {self.session.discount.code}", style="green")
        fields.update(content)

        reward = self.store.has_loyalty_reward(self.session)
        totals = self.session.totals(loyalty_reward=reward)
        summary = Text()
        summary.append(f"Subtotal  {format_money(totals.subtotal)}\n")
        if reward:
            summary.append(f"Free drink  -{format_money(totals.loyalty_reward)}\n", style="green")
        if totals.discount:
            summary.append(f"Discount  -{format_money(totals.discount)}\n", style="green")
        summary.append(f"Total     {format_money(totals.final_total)}", style="bold")
        totals_widget.update(summary)
        error.update(self.error)
