"""Ask-AI modal: type a question, get an answer from the completion API."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container, VerticalScroll
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Static

from cafe.assistant import AssistantClient, user_message
from cafe.errors import AssistantError


class AskModal(ModalScreen[None]):
    CSS = """
    AskModal {
        align: center middle;
        background: $background 60%;
    }

    #ask-dialog {
        width: 80;
        height: auto;
        max-height: 80%;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #ask-title {
        text-style: bold;
        margin-bottom: 1;
    }

    #ask-prompt {
        border: heavy $secondary;
        padding: 0 1;
        margin-bottom: 1;
    }

    #ask-answer-scroll {
        height: auto;
        max-height: 20;
    }

    #ask-help {
        margin-top: 1;
        color: $text-muted;
    }
    """

    def __init__(self, client: AssistantClient) -> None:
        super().__init__()
        self.client = client
        self.prompt = ""
        self.answer = Text()
        self.loading = False

    def compose(self) -> ComposeResult:
        with Container(id="ask-dialog"):
            yield Static("Ask AI", id="ask-title")
            yield Static(id="ask-prompt")
            with VerticalScroll(id="ask-answer-scroll"):
                yield Static(id="ask-answer")
            yield Static("Type a question, Enter send, Esc close", id="ask-help")

    def on_mount(self) -> None:
        self._refresh_content()

    def on_key(self, event: Key) -> None:
        if event.key in {"escape", "ctrl+c"}:
            self.dismiss(None)
        elif self.loading:
            pass
        elif event.key == "enter":
            self._send()
        elif event.key == "backspace":
            self.prompt = self.prompt[:-1]
        elif event.is_printable and event.character:
            self.prompt += event.character
        else:
            return
        event.stop()
        if event.key not in {"escape", "ctrl+c"}:
            self._refresh_content()

    def _send(self) -> None:
        if not self.prompt.strip():
            self.app.notify("Please enter a question.", severity="warning")
            return
        self.loading = True
        self.answer = Text("Thinking...", style="italic")
        self.run_worker(self._ask(self.prompt), exclusive=True)

    async def _ask(self, prompt: str) -> None:
        try:
            response = await self.client.complete(prompt)
        except AssistantError as exc:
            self.answer = Text(f"Failed to get a response. {exc}", style="#ffb3b3")
            self.app.notify(user_message(exc), severity="error")
        else:
            self.answer = Text(response or "(empty response)")
        finally:
            self.loading = False
        self._refresh_content()

    def _refresh_content(self) -> None:
        self.query_one("#ask-prompt", Static).update(f"{self.prompt}|")
        self.query_one("#ask-answer", Static).update(self.answer)
