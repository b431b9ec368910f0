"""Kitchen display: live tickets, grouped prep views, payment and history queues."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.events import Key
from textual.reactive import reactive
from textual.widgets import Footer, Header, Static

from cafe.aggregation import KitchenSnapshot
from cafe.base_screen import CafeScreen
from cafe.confirm_modal import ConfirmModal
from cafe.models import Order
from cafe.printer import check_printer_dependencies, print_order_ticket
from cafe.rendering import format_history_row, format_item_group, format_ticket, format_type_group, window_bounds

VIEWS = ("orders", "items", "types", "payment", "scheduled", "history")
VIEW_TITLES = {
    "orders": "By Order",
    "items": "By Item",
    "types": "By Type",
    "payment": "Payment Required",
    "scheduled": "Scheduled",
    "history": "History",
}


class KitchenScreen(CafeScreen):
    CSS = """
    #kitchen-pane {
        height: 1fr;
        border: round $primary;
        padding: 1;
    }

    #kitchen-tabs {
        height: auto;
        margin-bottom: 1;
    }

    #kitchen-search {
        border: heavy $secondary;
        padding: 0 1;
        height: 3;
        margin-bottom: 1;
    }

    #kitchen-body {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }
    """

    view = reactive("orders")
    input_state = reactive("normal")
    search = reactive("")
    order_index = reactive(0)
    item_index = reactive(0)

    def compose(self) -> ComposeResult:
        yield Header()
        yield self.permission_banner()
        with Vertical(id="kitchen-pane"):
            yield Static(id="kitchen-tabs")
            yield Static(id="kitchen-search")
            yield Static(id="kitchen-body")
        yield Static(id="kitchen-status", classes="status-bar")
        yield Footer()

    def snapshot(self) -> KitchenSnapshot:
        return self.store.kitchen_snapshot(self.search)

    def _orders_for_view(self, snapshot: KitchenSnapshot) -> tuple[Order, ...]:
        if self.view == "orders":
            return snapshot.pending
        if self.view == "payment":
            return snapshot.payment_required
        if self.view == "scheduled":
            return snapshot.scheduled
        if self.view == "history":
            return snapshot.history
        return ()

    def _selected_order(self) -> Order | None:
        orders = self._orders_for_view(self.snapshot())
        if not orders:
            return None
        self.order_index = min(self.order_index, len(orders) - 1)
        return orders[self.order_index]

    def on_key(self, event: Key) -> None:
        if self.input_state == "search":
            self._on_search_key(event)
            event.stop()
            self.refresh_view()
            return

        key = event.key
        handled = True
        if key == "tab":
            self._set_view(VIEWS[(VIEWS.index(self.view) + 1) % len(VIEWS)])
        elif event.character and event.character in "123456":
            self._set_view(VIEWS[int(event.character) - 1])
        elif key == "slash":
            self.input_state = "search"
        elif key == "j":
            self.order_index += 1
            self.item_index = 0
        elif key == "k":
            self.order_index = max(0, self.order_index - 1)
            self.item_index = 0
        elif key == "down":
            self.item_index += 1
        elif key == "up":
            self.item_index = max(0, self.item_index - 1)
        elif key == "space":
            self._toggle_item()
        elif key in {"enter", "c"}:
            self._complete()
        elif key == "v":
            self._with_order(self.store.verify_payment, "payment")
        elif key == "a":
            self._with_order(self.store.activate_scheduled_order, "scheduled")
        elif key == "r":
            self._with_order(self.store.requeue_order, "history")
        elif key == "p":
            self._print_selected()
        else:
            handled = False
        if handled:
            event.stop()
            self.refresh_view()

    def _on_search_key(self, event: Key) -> None:
        if event.key in {"escape", "ctrl+c"}:
            self.search = ""
            self.input_state = "normal"
        elif event.key == "enter":
            self.input_state = "normal"
        elif event.key == "backspace":
            self.search = self.search[:-1]
        elif event.is_printable and event.character:
            self.search += event.character
        self.order_index = 0

    def _set_view(self, view: str) -> None:
        self.view = view
        self.order_index = 0
        self.item_index = 0

    def _with_order(self, command, view: str) -> None:
        if self.view != view:
            return
        order = self._selected_order()
        if order is not None:
            command(order.id)

    def _toggle_item(self) -> None:
        if self.view != "orders":
            return
        order = self._selected_order()
        if order is None or not order.items:
            return
        item = order.items[min(self.item_index, len(order.items) - 1)]
        self.store.toggle_order_item(order.id, item.id)

    def _complete(self) -> None:
        if self.view != "orders":
            return
        order = self._selected_order()
        if order is None:
            return
        if not order.all_items_completed:
            self.app.notify("Mark every item as done before completing the order.", severity="warning")
            return
        order_id = order.id

        def confirmed(answer: bool | None) -> None:
            if answer:
                self.store.complete_order(order_id)

        self.app.push_screen(ConfirmModal(f"Complete order for {order.customer_name}?"), confirmed)

    def _print_selected(self) -> None:
        order = self._selected_order()
        if order is None:
            return
        ok, message = check_printer_dependencies()
        if not ok:
            self.app.notify(message, severity="warning")
            return
        try:
            print_order_ticket(order)
        except Exception as exc:
            self.app.notify(f"Print failed: {exc}", severity="error")
            return
        self.app.notify(f"Printed ticket for {order.customer_name}.")

    def refresh_view(self) -> None:
        snapshot = self.snapshot()
        self._refresh_tabs(snapshot)
        self._refresh_search()
        self._refresh_body(snapshot)
        self._refresh_status()

    def _refresh_tabs(self, snapshot: KitchenSnapshot) -> None:
        counts = {
            "orders": len(snapshot.pending),
            "items": len(snapshot.by_item),
            "types": len(snapshot.by_type),
            "payment": len(snapshot.payment_required),
            "scheduled": len(snapshot.scheduled),
            "history": len(snapshot.history),
        }
        tabs = Text()
        for idx, view in enumerate(VIEWS):
            if idx > 0:
                tabs.append("  ")
            style = "bold reverse" if view == self.view else ""
            if view == "payment" and counts[view]:
                style = f"{style} #ffb3b3".strip()
            tabs.append(f" {idx + 1} {VIEW_TITLES[view]} ({counts[view]}) ", style=style)
        self.query_one("#kitchen-tabs", Static).update(tabs)

    def _refresh_search(self) -> None:
        bar = self.query_one("#kitchen-search", Static)
        if self.input_state == "search":
            bar.update(f"Search: {self.search}|")
        elif self.search:
            bar.update(f"Filter: {self.search}  (/ edit, Esc in search clears)")
        else:
            bar.update("Press / to filter by name, order id or drink.")

    def _refresh_body(self, snapshot: KitchenSnapshot) -> None:
        body = self.query_one("#kitchen-body", Static)
        now = self.store.clock()
        content = Text()

        if self.view == "items":
            for idx, group in enumerate(snapshot.by_item):
                if idx > 0:
                    content.append("\n\n")
                content.append_text(format_item_group(group))
        elif self.view == "types":
            for idx, type_group in enumerate(snapshot.by_type):
                if idx > 0:
                    content.append("\n\n")
                content.append_text(format_type_group(type_group))
        else:
            orders = self._orders_for_view(snapshot)
            if orders:
                self.order_index = min(self.order_index, len(orders) - 1)
                rows = max(1, (body.size.height or 12) // 4)
                start, end = window_bounds(len(orders), rows, self.order_index)
                if start > 0:
                    content.append("⋮\n", style="dim")
                for idx in range(start, end):
                    order = orders[idx]
                    if idx > start:
                        content.append("\n\n" if self.view != "history" else "\n")
                    selected = idx == self.order_index
                    content.append("➤ " if selected else "  ")
                    if self.view == "history":
                        content.append_text(format_history_row(order))
                        continue
                    cursor = min(self.item_index, len(order.items) - 1) if selected and self.view == "orders" else None
                    content.append_text(format_ticket(order, now, cursor))
                if end < len(orders):
                    content.append("\n⋮", style="dim")

        body.update(content if content.plain else "(nothing here)")

    def _refresh_status(self) -> None:
        hints = {
            "orders": "J/K order, ↑/↓ item, Space toggle item, Enter complete, P print",
            "items": "Grouped identical drinks across pending orders",
            "types": "Grouped by drink with variations",
            "payment": "J/K order, V verify payment, P print",
            "scheduled": "J/K order, A activate if due, P print",
            "history": "J/K order, R re-queue",
        }
        self.query_one("#kitchen-status", Static).update(f"{hints[self.view]}  |  Tab/1-6 view, / search")
