"""Administrator view: sales dashboard, user roles, feedback and discount codes."""

from __future__ import annotations

from datetime import date, datetime, timedelta

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.events import Key
from textual.reactive import reactive
from textual.widgets import Footer, Header, Static

from cafe.base_screen import CafeScreen
from cafe.confirm_modal import ConfirmModal
from cafe.discount_modal import DiscountModal
from cafe.errors import ValidationError
from cafe.models import Discount, DiscountType, UserRole
from cafe.pricing import format_money
from cafe.reports import build_report
from cafe.rendering import format_report, window_bounds
from cafe.store import DeleteDiscount

SECTIONS = ("dashboard", "users", "feedback", "discounts")
PERIODS = {"t": ("Today", 0), "w": ("Last 7 days", 6), "m": ("Last 30 days", 29)}
ROLE_CYCLE = (UserRole.CUSTOMER, UserRole.KITCHEN, UserRole.ADMIN)


def next_role(role: UserRole) -> UserRole:
    return ROLE_CYCLE[(ROLE_CYCLE.index(role) + 1) % len(ROLE_CYCLE)]


class AdminScreen(CafeScreen):
    CSS = """
    #admin-pane {
        height: 1fr;
        border: round $primary;
        padding: 1;
    }

    #admin-tabs {
        height: auto;
        margin-bottom: 1;
    }

    #admin-body {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }
    """

    section = reactive("dashboard")
    period = reactive("t")
    selected_index = reactive(0)

    def compose(self) -> ComposeResult:
        yield Header()
        yield self.permission_banner()
        with Vertical(id="admin-pane"):
            yield Static(id="admin-tabs")
            yield Static(id="admin-body")
        yield Static(id="admin-status", classes="status-bar")
        yield Footer()

    def on_key(self, event: Key) -> None:
        key = event.key
        handled = True
        if key == "tab":
            self.section = SECTIONS[(SECTIONS.index(self.section) + 1) % len(SECTIONS)]
            self.selected_index = 0
        elif key in PERIODS and self.section == "dashboard":
            self.period = key
        elif key in {"j", "down"}:
            self.selected_index += 1
        elif key in {"k", "up"}:
            self.selected_index = max(0, self.selected_index - 1)
        elif key == "r" and self.section == "users":
            self._cycle_role()
        elif key == "n" and self.section == "discounts":
            self._add_discount()
        elif key == "d" and self.section == "discounts":
            self._delete_discount()
        else:
            handled = False
        if handled:
            event.stop()
            self.refresh_view()

    def period_bounds(self, today: date | None = None) -> tuple[date, date]:
        today = today or datetime.now().astimezone().date()
        _, days_back = PERIODS[self.period]
        return today - timedelta(days=days_back), today

    def _cycle_role(self) -> None:
        users = self.store.state.users
        if not users:
            return
        user = users[min(self.selected_index, len(users) - 1)]
        try:
            self.store.update_user_role(user.id, next_role(user.role))
        except ValidationError as exc:
            self.app.notify(str(exc), severity="warning")

    def _add_discount(self) -> None:
        def added(discount: Discount | None) -> None:
            if discount is not None:
                self.selected_index = len(self.store.state.discounts) - 1
                self.refresh_view()

        self.app.push_screen(DiscountModal(self.store), added)

    def _delete_discount(self) -> None:
        discounts = self.store.state.discounts
        if not discounts:
            return
        discount = discounts[min(self.selected_index, len(discounts) - 1)]

        def confirmed(answer: bool | None) -> None:
            if answer:
                self.store.dispatch(DeleteDiscount(discount.id))
                self.selected_index = 0

        self.app.push_screen(ConfirmModal(f"Delete discount code {discount.code}?"), confirmed)

    def refresh_view(self) -> None:
        tabs = Text()
        for idx, section in enumerate(SECTIONS):
            if idx > 0:
                tabs.append("  ")
            tabs.append(f" {section.title()} ", style="bold reverse" if section == self.section else "")
        self.query_one("#admin-tabs", Static).update(tabs)

        body = self.query_one("#admin-body", Static)
        if self.section == "dashboard":
            start, end = self.period_bounds()
            tz = datetime.now().astimezone().tzinfo
            report = build_report(self.store.state.orders, start, end, tz)
            content = Text(f"{PERIODS[self.period][0]}\n", style="italic")
            content.append_text(format_report(report))
            body.update(content)
        elif self.section == "users":
            body.update(self._users_text(body.size.height or 12))
        elif self.section == "feedback":
            body.update(self._feedback_text(body.size.height or 12))
        else:
            body.update(self._discounts_text())

        hints = {
            "dashboard": "T today, W 7 days, M 30 days",
            "users": "J/K select, R cycle role",
            "feedback": "J/K scroll",
            "discounts": "J/K select, N new, D delete",
        }
        self.query_one("#admin-status", Static).update(f"{hints[self.section]}  |  Tab section")

    def _users_text(self, rows: int) -> Text | str:
        users = self.store.state.users
        if not users:
            return "(no users)"
        self.selected_index = min(self.selected_index, len(users) - 1)
        current = self.store.state.current_user
        text = Text()
        start, end = window_bounds(len(users), rows, self.selected_index)
        for idx in range(start, end):
            user = users[idx]
            if idx > start:
                text.append("\n")
            text.append("➤ " if idx == self.selected_index else "  ")
            text.append(user.name, style="bold")
            text.append(f"  {user.role.value}", style="dim")
            text.append(f"  loyalty {user.loyalty_points}")
            if current is not None and current.id == user.id:
                text.append("  (you)", style="italic")
        return text

    def _feedback_text(self, rows: int) -> Text | str:
        entries = sorted(self.store.state.feedback, key=lambda entry: entry.created_at, reverse=True)
        if not entries:
            return "(no feedback yet)"
        self.selected_index = min(self.selected_index, len(entries) - 1)
        start, end = window_bounds(len(entries), max(1, rows // 2), self.selected_index)
        text = Text()
        for idx in range(start, end):
            entry = entries[idx]
            if idx > start:
                text.append("\n")
            text.append("➤ " if idx == self.selected_index else "  ")
            text.append("★" * entry.rating + "☆" * (5 - entry.rating), style="#e6c84f")
            text.append(f"  {entry.created_at.astimezone().strftime('%Y-%m-%d %H:%M')}", style="dim")
            text.append(f"\n    {entry.message or '(no message)'}")
        return text

    def _discounts_text(self) -> Text | str:
        discounts = self.store.state.discounts
        if not discounts:
            return "(no discount codes)"
        self.selected_index = min(self.selected_index, len(discounts) - 1)
        text = Text()
        for idx, discount in enumerate(discounts):
            if idx > 0:
                text.append("\n")
            text.append("➤ " if idx == self.selected_index else "  ")
            text.append(discount.code, style="bold")
            if discount.type is DiscountType.PERCENTAGE:
                text.append(f"  {discount.value:g}% off")
            else:
                text.append(f"  {format_money(discount.value)} off")
        return text
