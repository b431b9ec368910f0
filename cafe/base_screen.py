"""Shared chrome for the three main views: header, permission banner and footer."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.text import Text
from textual.screen import Screen
from textual.widgets import Static

if TYPE_CHECKING:
    from cafe.store import AppStore


class CafeScreen(Screen):
    DEFAULT_CSS = """
    #permission-banner {
        background: #b23a48;
        color: #ffffff;
        padding: 0 1;
        height: auto;
    }

    .pane-title {
        text-style: bold;
        margin-bottom: 1;
    }

    .status-bar {
        height: auto;
        padding: 0 1;
        color: $text-muted;
    }
    """

    @property
    def store(self) -> AppStore:
        return self.app.store  # type: ignore[attr-defined]

    def permission_banner(self) -> Static:
        return Static(id="permission-banner")

    def on_mount(self) -> None:
        self.refresh_state()

    def on_screen_resume(self) -> None:
        self.refresh_state()

    def refresh_state(self) -> None:
        if not self.is_mounted:
            return
        self._refresh_banner()
        self.refresh_view()

    def refresh_view(self) -> None:
        """Redraw the view from the store's current state."""

    def _refresh_banner(self) -> None:
        banner = self.query_one("#permission-banner", Static)
        message = self.store.state.permission_error
        banner.display = bool(message)
        if message:
            text = Text()
            text.append("Permission problem: ", style="bold")
            text.append(message)
            text.append("  (Ctrl+X to dismiss)", style="italic")
            banner.update(text)
