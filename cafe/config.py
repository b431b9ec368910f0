"""Runtime configuration defaults for persistence, scheduling and printing."""

from __future__ import annotations

import os
from datetime import timedelta

DB_PATH = os.environ.get("CAFE_DB_PATH", "data/cafe.db")
LOCAL_STORE_PATH = os.environ.get("CAFE_LOCAL_STORE_PATH", "data/cafe-local.json")

DEBUG_LOG_PATH = os.environ.get("CAFE_DEBUG_LOG", "/tmp/cafe-debug.log")
LOG_LEVEL = os.environ.get("CAFE_LOG_LEVEL", "INFO").upper()

# The order feed only ever carries the most recent orders by creation time.
ORDER_FEED_LIMIT = 100

PREPARATION_LEAD_TIME = timedelta(minutes=15)
ACTIVATION_INTERVAL_SECONDS = 10.0
FEED_POLL_INTERVAL_SECONDS = 1.0
TICKET_CLOCK_INTERVAL_SECONDS = 1.0

LOYALTY_CYCLE = 5

# Minutes waiting before a kitchen ticket changes colour.
WAIT_WARNING_MINUTES = 5
WAIT_LATE_MINUTES = 7
WAIT_OVERDUE_MINUTES = 10

ASSISTANT_API_KEY = os.environ.get("CAFE_ASSISTANT_API_KEY", "")
ASSISTANT_API_URL = os.environ.get(
    "CAFE_ASSISTANT_URL",
    "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.5-flash:generateContent",
)
ASSISTANT_TIMEOUT_SECONDS = 30.0

PRINTER_USB_VENDOR_ID = 0x28E9
PRINTER_USB_PRODUCT_ID = 0x0289
PRINTER_WIDTH_PX = 384
PRINTER_FONT_SIZE = 40
PRINTER_FONT_PATH = os.environ.get("CAFE_PRINTER_FONT_PATH", "/System/Library/Fonts/SFNS.ttf")
PRINTER_LEFT_INDENT_PX = 16
