"""Rich text formatting for menu lines, kitchen tickets and reports."""

from __future__ import annotations

from datetime import datetime
from typing import Mapping

from rich.text import Text

from cafe.aggregation import ItemGroup, TypeGroup
from cafe.config import WAIT_WARNING_MINUTES
from cafe.lifecycle import wait_band, wait_clock, wait_minutes
from cafe.models import CartItem, ModifierOption, Order, OrderStatus
from cafe.pricing import format_money
from cafe.reports import DashboardReport

WAIT_STYLES = {
    "fresh": "bold #0b1f0f on #5fbf72",
    "warning": "bold #1f1a00 on #e6c84f",
    "late": "bold #ffffff on #d9822b",
    "overdue": "bold #ffffff on #b23a48",
}

STATUS_LABELS = {
    OrderStatus.PAYMENT_REQUIRED: "NOT PAID",
    OrderStatus.PENDING: "PENDING",
    OrderStatus.SCHEDULED: "SCHEDULED",
    OrderStatus.COMPLETED: "DONE",
}


def badge_style(status: OrderStatus) -> str:
    """Return a consistent badge style for order status tags."""
    if status is OrderStatus.PAYMENT_REQUIRED:
        return "bold #ffffff on #b23a48"
    if status is OrderStatus.SCHEDULED:
        return "bold #ffffff on #2f6db5"
    if status is OrderStatus.COMPLETED:
        return "bold #ffffff on #555555"
    return "bold #0b1f0f on #5fbf72"


def wait_style(order: Order, now: datetime) -> str:
    minutes = wait_minutes(order, now)
    if order.status is OrderStatus.PAYMENT_REQUIRED:
        return WAIT_STYLES["late"] if minutes >= WAIT_WARNING_MINUTES else WAIT_STYLES["fresh"]
    return WAIT_STYLES[wait_band(minutes)]


def format_modifiers(selected: Mapping[str, ModifierOption]) -> str:
    return ", ".join(option.name for option in selected.values())


def format_cart_item(item: CartItem) -> Text:
    text = Text()
    text.append(f"{item.quantity}x ", style="bold")
    text.append(item.display_name)
    modifiers = format_modifiers(item.selected_modifiers)
    if modifiers:
        text.append(f"  [{modifiers}]", style="dim")
    text.append(f"  {format_money(item.final_price)}")
    return text


def format_order_header(order: Order, now: datetime) -> Text:
    text = Text()
    text.append(STATUS_LABELS[order.status], style=badge_style(order.status))
    text.append(f" {order.customer_name}", style="bold")
    text.append(f"  #{order.id[-6:]}", style="dim")
    if order.status is OrderStatus.SCHEDULED and order.pickup_time is not None:
        text.append(f"  pickup {order.pickup_time.astimezone().strftime('%H:%M')}")
    elif order.status in {OrderStatus.PENDING, OrderStatus.PAYMENT_REQUIRED}:
        text.append(" ")
        text.append(f" {wait_clock(order, now)} ", style=wait_style(order, now))
    return text


def format_ticket(order: Order, now: datetime, cursor: int | None = None) -> Text:
    """One kitchen ticket with per-item progress boxes."""
    text = format_order_header(order, now)
    for idx, item in enumerate(order.items):
        text.append("\n")
        pointer = "➤ " if idx == cursor else "  "
        checked = "[x]" if item.is_completed else "[ ]"
        text.append(f"{pointer}{checked} ", style="bold" if item.is_completed else "")
        line = format_cart_item(item)
        if item.is_completed:
            line.stylize("strike dim")
        text.append_text(line)
    if order.status is OrderStatus.PAYMENT_REQUIRED:
        text.append(f"\n    {order.payment_method.value}  {format_money(order.final_total)}", style="italic")
    return text


def format_item_group(group: ItemGroup) -> Text:
    text = Text()
    text.append(f"{group.quantity}x ", style="bold")
    text.append(group.drink.name, style="bold")
    modifiers = format_modifiers(group.selected_modifiers)
    if modifiers:
        text.append(f"  [{modifiers}]", style="dim")
    for contribution in group.contributions:
        text.append(f"\n    {contribution.customer_name} ×{contribution.quantity}", style="dim")
    return text


def format_type_group(group: TypeGroup) -> Text:
    text = Text()
    text.append(f"{group.total_quantity}x {group.drink.name}", style="bold")
    for variation in group.variations:
        label = format_modifiers(variation.selected_modifiers) or "standard"
        text.append(f"\n    {variation.quantity}× {label}")
    return text


def format_history_row(order: Order) -> Text:
    text = Text()
    finished = order.completed_at.astimezone().strftime("%H:%M") if order.completed_at else "--:--"
    text.append(f"{finished} ", style="dim")
    text.append(order.customer_name, style="bold")
    text.append(f"  {order.unit_count} drinks  {format_money(order.final_total)}")
    return text


def format_report(report: DashboardReport) -> Text:
    text = Text()
    period = report.start.isoformat() if report.is_single_day else f"{report.start.isoformat()} to {report.end.isoformat()}"
    text.append(f"Reporting period: {period}\n\n", style="bold")
    text.append(f"Total Revenue     {format_money(report.revenue)}\n")
    text.append(f"Total Profit      {format_money(report.profit)}\n")
    text.append(f"Drinks Processed  {report.drinks_processed}\n")
    text.append(f"Avg. Processing   {report.average_processing_minutes:.1f} min\n")

    text.append("\nRevenue by hour\n" if report.is_single_day else "\nRevenue by day\n", style="bold")
    peak = max((point.revenue for point in report.series), default=0.0)
    for point in report.series:
        if report.is_single_day and point.revenue == 0:
            continue
        width = int(round(20 * point.revenue / peak)) if peak else 0
        text.append(f"{point.label:>6} ")
        text.append("█" * width, style="#5fbf72")
        text.append(f" {format_money(point.revenue)} (profit {format_money(point.profit)})\n")

    text.append("\nPayment methods\n", style="bold")
    if not report.payment_methods:
        text.append("  (no completed orders)\n", style="dim")
    for method, count in report.payment_methods.items():
        text.append(f"  {method}: {count}\n")
    return text


def window_bounds(total: int, rows: int, selected: int | None) -> tuple[int, int]:
    """Slice of a long list to show so the selected row stays roughly centred."""
    if total <= 0:
        return (0, 0)

    rows = max(1, rows)
    if total <= rows:
        return (0, total)

    if selected is None:
        start = 0
    else:
        start = selected - rows // 2
        start = max(0, start)
        start = min(start, total - rows)

    return (start, start + rows)
