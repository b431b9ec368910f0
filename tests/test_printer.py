from __future__ import annotations

from dataclasses import replace

import pytest
from PIL import ImageFont

from cafe import printer
from cafe.checkout import new_cart_item
from cafe.config import PRINTER_WIDTH_PX
from cafe.models import OrderStatus
from cafe.printer import TicketFonts, TicketLine, print_order_ticket, render_ticket, short_order_id, ticket_lines
from tests.conftest import NOW, OAT, make_order, milk, minutes


class RecordingPrinter:
    def __init__(self) -> None:
        self.images = []
        self.cuts = 0

    def image(self, img) -> None:
        self.images.append(img)

    def cut(self) -> None:
        self.cuts += 1


@pytest.fixture
def fonts() -> TicketFonts:
    font = ImageFont.load_default()
    return TicketFonts(main=font, compact=font, header=font)


def test_ticket_lists_name_items_options_and_labels(latte):
    item = new_cart_item(latte, milk("mod-1-5"), 2, custom_name="Jo")
    order = make_order("abcdef123456", (item,), customer_name="Sam")

    assert ticket_lines(order) == [
        TicketLine("Sam"),
        TicketLine("2x Latte"),
        TicketLine("    Oat", compact=True),
        TicketLine('    "Jo"', compact=True),
    ]
    assert short_order_id(order) == "123456"


def test_ticket_shows_pickup_time(latte):
    order = make_order("o", (new_cart_item(latte, {}),), pickup_time=NOW + minutes(30))
    lines = ticket_lines(order)
    assert lines[1].compact
    assert lines[1].text.startswith("Pickup ")


def test_rendered_strips_are_full_width_and_unpaid_tickets_get_a_badge(latte, fonts):
    order = make_order("abcdef123456", (new_cart_item(latte, milk(OAT)),))

    paid = render_ticket(order, fonts)
    # order ref, name, rule, drink, option, tail
    assert len(paid) == 6
    assert all(image.mode == "1" and image.width == PRINTER_WIDTH_PX for image in paid)

    unpaid = render_ticket(replace(order, status=OrderStatus.PAYMENT_REQUIRED), fonts)
    assert len(unpaid) == len(paid) + 1


def test_print_sends_every_strip_then_cuts(latte, fonts, monkeypatch):
    monkeypatch.setattr(printer, "resolve_printer_font_path", lambda: "font.ttf")
    monkeypatch.setattr(TicketFonts, "load", classmethod(lambda cls, path: fonts))
    order = make_order("abcdef123456", (new_cart_item(latte, {}),))
    device = RecordingPrinter()

    print_order_ticket(order, printer=device)
    assert len(device.images) == len(render_ticket(order, fonts))
    assert device.cuts == 1


def test_empty_order_prints_nothing(fonts):
    device = RecordingPrinter()
    print_order_ticket(make_order("o", ()), printer=device)
    assert device.images == []
    assert device.cuts == 0
