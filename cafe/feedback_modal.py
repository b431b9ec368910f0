"""Star rating and optional message."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Static

from cafe.errors import ValidationError
from cafe.store import AppStore


class FeedbackModal(ModalScreen[bool]):
    CSS = """
    FeedbackModal {
        align: center middle;
        background: $background 60%;
    }

    #feedback-dialog {
        width: 60;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #feedback-title {
        text-style: bold;
        margin-bottom: 1;
    }

    #feedback-message {
        border: heavy $secondary;
        padding: 0 1;
        margin: 1 0;
    }

    #feedback-error {
        color: #ffb3b3;
    }

    #feedback-help {
        color: $text-muted;
    }
    """

    def __init__(self, store: AppStore) -> None:
        super().__init__()
        self.store = store
        self.rating = 0
        self.message = ""
        self.error = ""

    def compose(self) -> ComposeResult:
        with Container(id="feedback-dialog"):
            yield Static("Feedback", id="feedback-title")
            yield Static(id="feedback-rating")
            yield Static(id="feedback-message")
            yield Static(id="feedback-error")
            yield Static("Ctrl+1..5 rate (or digits while empty), type a message, Enter send, Esc cancel", id="feedback-help")

    def on_mount(self) -> None:
        self._refresh_content()

    def on_key(self, event: Key) -> None:
        if event.key in {"escape", "ctrl+c"}:
            self.dismiss(False)
            event.stop()
            return
        if event.key == "enter":
            event.stop()
            try:
                self.store.submit_feedback(self.rating, self.message)
            except ValidationError as exc:
                self.error = str(exc)
                self._refresh_content()
                return
            self.app.notify("Thank you for your feedback!")
            self.dismiss(True)
            return
        if event.key.startswith("ctrl+") and event.key[-1] in "12345":
            self.rating = int(event.key[-1])
        elif event.character and event.character in "12345" and not self.message:
            self.rating = int(event.character)
        elif event.key == "backspace":
            self.message = self.message[:-1]
        elif event.is_printable and event.character:
            self.message += event.character
        else:
            return
        self.error = ""
        event.stop()
        self._refresh_content()

    def _refresh_content(self) -> None:
        stars = "★" * self.rating + "☆" * (5 - self.rating)
        self.query_one("#feedback-rating", Static).update(f"Rating: {stars}")
        self.query_one("#feedback-message", Static).update(f"{self.message}|")
        self.query_one("#feedback-error", Static).update(self.error)
