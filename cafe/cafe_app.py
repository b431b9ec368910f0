"""The café ordering app: customer, kitchen and admin views over one store."""

from __future__ import annotations

import logging

from textual.app import App
from textual.binding import Binding

from cafe.admin_screen import AdminScreen
from cafe.ask_modal import AskModal
from cafe.assistant import AssistantClient
from cafe.base_screen import CafeScreen
from cafe.checkout import CheckoutSession
from cafe.config import (
    ACTIVATION_INTERVAL_SECONDS,
    DB_PATH,
    FEED_POLL_INTERVAL_SECONDS,
    LOCAL_STORE_PATH,
    TICKET_CLOCK_INTERVAL_SECONDS,
)
from cafe.customer_screen import CustomerScreen
from cafe.kitchen_screen import KitchenScreen
from cafe.local_store import LocalStore
from cafe.login_modal import LoginModal
from cafe.models import User
from cafe.persistence import OrderGateway
from cafe.printer import check_printer_dependencies
from cafe.store import AppState, AppStore

logger = logging.getLogger(__name__)

TEXTUAL_THEMES = {"dark": "textual-dark", "light": "textual-light"}


def can_open(mode: str, user: User | None) -> bool:
    if mode == "customer":
        return True
    if user is None:
        return False
    if mode == "kitchen":
        return user.is_staff
    return user.is_admin


class CafeApp(App):
    """A Textual app for taking café orders and running the kitchen queue."""

    TITLE = "Café Order"
    SUB_TITLE = "Customer"

    MODES = {
        "customer": CustomerScreen,
        "kitchen": KitchenScreen,
        "admin": AdminScreen,
    }

    BINDINGS = [
        Binding("f1", "open_mode('customer')", "Customer", priority=True),
        Binding("f2", "open_mode('kitchen')", "Kitchen", priority=True),
        Binding("f3", "open_mode('admin')", "Admin", priority=True),
        Binding("ctrl+l", "login", "Log in/out", priority=True),
        Binding("ctrl+t", "toggle_theme", "Theme"),
        Binding("ctrl+a", "ask", "Ask AI"),
        Binding("ctrl+x", "dismiss_banner", "Dismiss"),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self, store: AppStore | None = None, assistant: AssistantClient | None = None) -> None:
        super().__init__()
        self.store = store or AppStore(OrderGateway(DB_PATH), LocalStore(LOCAL_STORE_PATH))
        self.assistant = assistant or AssistantClient()
        self.session = CheckoutSession()
        self.system_status = ""
        self._applied_theme: str | None = None

    def on_mount(self) -> None:
        self.store.on_notify(lambda message, severity: self.notify(message, severity=severity))  # type: ignore[arg-type]
        self.store.subscribe(self._on_state_changed)
        self.store.start()
        _, self.system_status = check_printer_dependencies()
        logger.info("app_mounted printer_status=%r", self.system_status)
        self._apply_theme(self.store.state)

        self.set_interval(ACTIVATION_INTERVAL_SECONDS, self.store.activate_due_orders)
        self.set_interval(FEED_POLL_INTERVAL_SECONDS, self.store.poll)
        self.set_interval(TICKET_CLOCK_INTERVAL_SECONDS, self._tick_clock)
        self.switch_mode("customer")

    def on_unmount(self) -> None:
        self.store.stop()

    def _on_state_changed(self, state: AppState) -> None:
        self._apply_theme(state)
        for screen in self.screen_stack:
            if isinstance(screen, CafeScreen):
                screen.refresh_state()

    def _apply_theme(self, state: AppState) -> None:
        if state.theme == self._applied_theme:
            return
        self._applied_theme = state.theme
        self.theme = TEXTUAL_THEMES.get(state.theme, "textual-dark")

    def _tick_clock(self) -> None:
        # Wait timers on tickets tick even when no order changes.
        if isinstance(self.screen, KitchenScreen):
            self.screen.refresh_view()

    def action_open_mode(self, mode: str) -> None:
        if can_open(mode, self.store.state.current_user):
            self._switch(mode)
            return
        self.notify(f"Log in with a {mode} account to open that view.", severity="warning")

        def after_login(user: User | None) -> None:
            self._after_login(user)
            if can_open(mode, self.store.state.current_user):
                self._switch(mode)

        self.push_screen(LoginModal(self.store), after_login)

    def _switch(self, mode: str) -> None:
        self.sub_title = mode.title()
        self.switch_mode(mode)

    def action_login(self) -> None:
        if self.store.state.current_user is not None:
            name = self.store.state.current_user.name
            self.store.logout()
            self.session.order_name = ""
            self.notify(f"Logged out {name}.")
            if self.current_mode != "customer":
                self._switch("customer")
            return
        self.push_screen(LoginModal(self.store), self._after_login)

    def _after_login(self, user: User | None) -> None:
        if user is None:
            return
        self.session.order_name = user.name
        if user.is_guest:
            self.notify(f"Continuing as guest {user.name}.")
            return
        self.notify(f"Welcome, {user.name}!")
        if not user.has_completed_tutorial and isinstance(self.screen, CustomerScreen):
            self.screen.open_tutorial()

    def action_toggle_theme(self) -> None:
        self.store.set_theme("light" if self.store.state.theme == "dark" else "dark")

    def action_ask(self) -> None:
        self.push_screen(AskModal(self.assistant))

    def action_dismiss_banner(self) -> None:
        self.store.dismiss_permission_error()
