"""First-run walkthrough built from the stored tutorial steps."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Container
from textual.screen import ModalScreen
from textual.widgets import Static

from cafe.models import TutorialStep


class TutorialModal(ModalScreen[bool]):
    """Dismisses with ``True`` when the last step was reached, ``False`` when skipped."""

    BINDINGS = [
        ("enter", "step(1)", "Next"),
        ("right", "step(1)", "Next"),
        ("left", "step(-1)", "Back"),
        ("escape", "skip", "Skip"),
    ]

    CSS = """
    TutorialModal {
        align: center middle;
        background: $background 60%;
    }

    #tutorial-dialog {
        width: 60;
        height: auto;
        border: round $accent;
        background: $panel;
        padding: 1 2;
    }

    #tutorial-title {
        text-style: bold;
        margin-bottom: 1;
    }

    #tutorial-help {
        margin-top: 1;
        color: $text-muted;
    }
    """

    def __init__(self, steps: tuple[TutorialStep, ...]) -> None:
        super().__init__()
        self.steps = steps
        self.index = 0

    def compose(self) -> ComposeResult:
        with Container(id="tutorial-dialog"):
            yield Static(id="tutorial-title")
            yield Static(id="tutorial-content")
            yield Static(id="tutorial-help")

    def on_mount(self) -> None:
        if not self.steps:
            self.dismiss(True)
            return
        self._refresh_content()

    def action_step(self, delta: int) -> None:
        target = self.index + delta
        if target >= len(self.steps):
            self.dismiss(True)
            return
        self.index = max(0, target)
        self._refresh_content()

    def action_skip(self) -> None:
        self.dismiss(False)

    def _refresh_content(self) -> None:
        step = self.steps[self.index]
        self.query_one("#tutorial-title", Static).update(f"{step.title}  ({self.index + 1}/{len(self.steps)})")
        self.query_one("#tutorial-content", Static).update(step.content)
        last = self.index == len(self.steps) - 1
        self.query_one("#tutorial-help", Static).update(
            f"Enter/→ {'finish' if last else 'next'}, ← back, Esc skip"
        )
