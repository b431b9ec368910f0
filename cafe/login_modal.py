"""Name prompt for logging in or registering."""

from __future__ import annotations

from typing import Callable

from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Static

from cafe.errors import ValidationError
from cafe.models import User
from cafe.store import AppStore


class LoginModal(ModalScreen[User | None]):
    """Enter logs in (unknown names continue as a guest), Ctrl+R registers a new account."""

    CSS = """
    LoginModal {
        align: center middle;
        background: $background 60%;
    }

    #login-dialog {
        width: 56;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #login-title {
        text-style: bold;
        margin-bottom: 1;
    }

    #login-value {
        border: heavy $secondary;
        padding: 0 1;
        margin-bottom: 1;
    }

    #login-error {
        color: #ffb3b3;
        margin-bottom: 1;
    }

    #login-help {
        color: $text-muted;
    }
    """

    def __init__(self, store: AppStore) -> None:
        super().__init__()
        self.store = store
        self.value = ""
        self.error = ""

    def compose(self) -> ComposeResult:
        with Container(id="login-dialog"):
            yield Static("Log in", id="login-title")
            yield Static(id="login-value")
            yield Static(id="login-error")
            yield Static("Enter log in / continue as guest. Ctrl+R register. Esc cancel.", id="login-help")

    def on_mount(self) -> None:
        self._refresh_content()

    def on_key(self, event: Key) -> None:
        if event.key in {"escape", "ctrl+c"}:
            self.dismiss(None)
            event.stop()
            return
        if event.key in {"enter", "ctrl+r"}:
            event.stop()
            if self._submit(self.store.login if event.key == "enter" else self.store.register):
                return
        elif event.key == "backspace":
            self.value = self.value[:-1]
            self.error = ""
        elif event.is_printable and event.character:
            self.value += event.character
            self.error = ""
        else:
            return
        event.stop()
        self._refresh_content()

    def _submit(self, action: Callable[[str], User]) -> bool:
        try:
            user = action(self.value)
        except ValidationError as exc:
            self.error = str(exc)
            return False
        self.dismiss(user)
        return True

    def _refresh_content(self) -> None:
        self.query_one("#login-value", Static).update(f"{self.value}|")
        self.query_one("#login-error", Static).update(self.error)
