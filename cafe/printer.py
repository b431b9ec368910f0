"""Kitchen ticket printing on a USB ESC/POS thermal printer."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from cafe.config import (
    PRINTER_FONT_PATH,
    PRINTER_FONT_SIZE,
    PRINTER_LEFT_INDENT_PX,
    PRINTER_USB_PRODUCT_ID,
    PRINTER_USB_VENDOR_ID,
    PRINTER_WIDTH_PX,
)
from cafe.models import CartItem, Order, OrderStatus

logger = logging.getLogger(__name__)

NOT_PAID_BADGE = "NOT PAID"

_RULE_HEIGHT_PX = 20
_RULE_THICKNESS_PX = 5
_RIGHT_GUTTER_PX = 8
_TAIL_SPACER_PX = 60
_MAIN_PADDING_PX = 30
_COMPACT_PADDING_PX = 6
_LINUX_FONT_FALLBACKS = (
    "/usr/share/fonts/TTF/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/noto/NotoSans-Regular.ttf",
    "/usr/share/fonts/liberation/LiberationSans-Regular.ttf",
)


@dataclass(frozen=True)
class TicketLine:
    text: str
    compact: bool = False


def short_order_id(order: Order) -> str:
    return order.id[-6:].upper()


def item_lines(item: CartItem) -> list[TicketLine]:
    """The drink line with its quantity, then one indented line per option and the custom label."""
    lines = [TicketLine(f"{item.quantity}x {item.drink.name}")]
    for option in item.selected_modifiers.values():
        lines.append(TicketLine(f"    {option.name}", compact=True))
    if item.custom_name:
        lines.append(TicketLine(f'    "{item.custom_name}"', compact=True))
    return lines


def ticket_lines(order: Order) -> list[TicketLine]:
    lines = [TicketLine(order.customer_name)]
    if order.pickup_time is not None:
        lines.append(TicketLine(f"Pickup {order.pickup_time.astimezone().strftime('%H:%M')}", compact=True))
    for item in order.items:
        lines.extend(item_lines(item))
    return lines


def resolve_printer_font_path() -> str:
    """
    Resolve a printer font path.

    Resolution order:
    1. CAFE_PRINTER_FONT_PATH / PRINTER_FONT_PATH
    2. Known Linux fallbacks
    """
    candidates = [PRINTER_FONT_PATH, *_LINUX_FONT_FALLBACKS]
    seen: set[str] = set()
    for candidate in candidates:
        if not candidate or candidate in seen:
            continue
        seen.add(candidate)
        if Path(candidate).is_file():
            return candidate

    raise RuntimeError(
        "No usable printer font found. Set CAFE_PRINTER_FONT_PATH to a valid .ttf/.otf file. "
        f"Tried: {', '.join(seen)}"
    )


def check_printer_dependencies() -> tuple[bool, str]:
    """Check whether printer dependencies are importable and a font is available."""
    try:
        from escpos.printer import Usb  # noqa: F401
        from PIL import ImageFont

        font_path = resolve_printer_font_path()
        ImageFont.truetype(font_path, max(10, PRINTER_FONT_SIZE // 2))
    except (ImportError, RuntimeError, OSError) as exc:
        return (False, f"Printer unavailable: {exc}")
    return (True, "Printer ready")


@dataclass(frozen=True)
class TicketFonts:
    main: Any
    compact: Any
    header: Any

    @classmethod
    def load(cls, font_path: str) -> TicketFonts:
        from PIL import ImageFont

        return cls(
            main=ImageFont.truetype(font_path, PRINTER_FONT_SIZE),
            compact=ImageFont.truetype(font_path, max(14, PRINTER_FONT_SIZE - 16)),
            header=ImageFont.truetype(font_path, max(20, PRINTER_FONT_SIZE - 20)),
        )


def _blank(height_px: int) -> Any:
    from PIL import Image

    return Image.new("1", (PRINTER_WIDTH_PX, max(1, height_px)), color=1)


def _text_strip(text: str, font: Any, padding_px: int, right_aligned: bool = False) -> Any:
    """A full-width 1-bit strip holding one line of text."""
    from PIL import ImageDraw

    left, top, right, bottom = ImageDraw.Draw(_blank(1)).textbbox((0, 0), text, font=font)
    strip = _blank(bottom - top + padding_px)
    if right_aligned:
        x = PRINTER_WIDTH_PX - _RIGHT_GUTTER_PX - (right - left) - left
    else:
        x = PRINTER_LEFT_INDENT_PX
    # Shift by the bbox top so descenders stay on the strip.
    ImageDraw.Draw(strip).text((x, padding_px // 2 - top), text, font=font, fill=0)
    return strip


def _rule() -> Any:
    from PIL import ImageDraw

    strip = _blank(_RULE_HEIGHT_PX)
    top = (_RULE_HEIGHT_PX - _RULE_THICKNESS_PX) // 2
    ImageDraw.Draw(strip).rectangle((0, top, PRINTER_WIDTH_PX - 1, top + _RULE_THICKNESS_PX - 1), fill=0)
    return strip


def render_ticket(order: Order, fonts: TicketFonts) -> list[Any]:
    """Images for one ticket, top to bottom: badge, order ref, name, rule, lines, tail."""
    images = []
    if order.status is OrderStatus.PAYMENT_REQUIRED:
        images.append(_text_strip(NOT_PAID_BADGE, fonts.compact, _COMPACT_PADDING_PX))
    images.append(_text_strip(short_order_id(order), fonts.header, _COMPACT_PADDING_PX, right_aligned=True))
    name, *rest = ticket_lines(order)
    images.append(_text_strip(name.text, fonts.main, _MAIN_PADDING_PX))
    images.append(_rule())
    for line in rest:
        if line.compact:
            images.append(_text_strip(line.text, fonts.compact, _COMPACT_PADDING_PX))
        else:
            images.append(_text_strip(line.text, fonts.main, _MAIN_PADDING_PX))
    images.append(_blank(_TAIL_SPACER_PX))
    return images


def print_order_ticket(order: Order, printer: Any = None) -> None:
    """Print one kitchen ticket and cut it."""
    if not order.items:
        return

    try:
        from escpos.printer import Usb
    except ImportError as exc:
        raise RuntimeError(f"Printer dependencies unavailable: {exc}") from exc

    fonts = TicketFonts.load(resolve_printer_font_path())
    if printer is None:
        printer = Usb(PRINTER_USB_VENDOR_ID, PRINTER_USB_PRODUCT_ID)
    for image in render_ticket(order, fonts):
        printer.image(image)
    printer.cut()
    logger.info("ticket_printed order=%s status=%s", order.id, order.status.value)
