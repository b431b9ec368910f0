"""SQLite document store for orders, the menu and tutorial steps.

Each order is one JSON document keyed by id. The menu and tutorial steps are
single documents in a key/value table. Subscribers receive the full current
collection after every local commit, and ``poll`` picks up commits made by
other processes through ``PRAGMA data_version``.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterator, Mapping, Sequence
from uuid import uuid4

from cafe.config import DB_PATH, ORDER_FEED_LIMIT
from cafe.errors import NotFoundError, PermissionDeniedError
from cafe.models import Menu, Order, TutorialStep, encode_order_fields

logger = logging.getLogger(__name__)

OrdersCallback = Callable[[list[Order]], None]
MenuCallback = Callable[[Menu], None]
ErrorCallback = Callable[[Exception], None]

MENU_KEY = "menu"
TUTORIAL_KEY = "tutorial_steps"

_PERMISSION_MARKERS = ("readonly database", "unable to open database", "access permission denied")


def _permission_error(exc: sqlite3.Error, path: str, operation: str) -> PermissionDeniedError | None:
    text = str(exc).lower()
    if "readonly database" in text:
        return PermissionDeniedError(path, "write", str(exc))
    if any(marker in text for marker in _PERMISSION_MARKERS):
        return PermissionDeniedError(path, operation, str(exc))
    return None


class OrderGateway:
    """Persistence and change-feed boundary backed by a single SQLite file."""

    def __init__(self, db_path: str = DB_PATH, feed_limit: int = ORDER_FEED_LIMIT) -> None:
        self.db_path = db_path
        self.feed_limit = feed_limit
        self._order_listeners: list[tuple[OrdersCallback, ErrorCallback | None]] = []
        self._menu_listeners: list[tuple[MenuCallback, ErrorCallback | None]] = []
        self._watch_conn: sqlite3.Connection | None = None
        self._data_version: int | None = None

    def _connect(self) -> sqlite3.Connection:
        db_file = Path(self.db_path)
        db_file.parent.mkdir(parents=True, exist_ok=True)
        return sqlite3.connect(db_file)

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        try:
            yield
        except sqlite3.OperationalError as exc:
            denied = _permission_error(exc, self.db_path, operation)
            if denied is not None:
                logger.error("permission_denied path=%s operation=%s detail=%s", self.db_path, operation, exc)
                raise denied from exc
            raise

    def bootstrap_schema(self) -> None:
        """Create persistence schema if it does not already exist."""
        with self._guard("write"), self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS orders (
                    id TEXT PRIMARY KEY,
                    created_at TEXT NOT NULL,
                    doc TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_orders_created_at
                    ON orders(created_at);

                CREATE TABLE IF NOT EXISTS documents (
                    key TEXT PRIMARY KEY,
                    doc TEXT NOT NULL
                );
                """
            )

    def close(self) -> None:
        if self._watch_conn is not None:
            self._watch_conn.close()
            self._watch_conn = None

    # orders

    def load_orders(self) -> list[Order]:
        """Most recent orders by creation time, returned oldest first."""
        with self._guard("read"), self._connect() as conn:
            rows = conn.execute(
                """
                SELECT id, doc FROM (
                    SELECT id, created_at, doc FROM orders ORDER BY created_at DESC LIMIT ?
                ) ORDER BY created_at ASC
                """,
                (self.feed_limit,),
            ).fetchall()
        return [Order.from_document(order_id, json.loads(doc)) for order_id, doc in rows]

    def subscribe_orders(self, callback: OrdersCallback, error_callback: ErrorCallback | None = None) -> Callable[[], None]:
        """Deliver the current orders now and again after every change."""
        entry = (callback, error_callback)
        self._order_listeners.append(entry)
        self._deliver_orders([entry])

        def unsubscribe() -> None:
            if entry in self._order_listeners:
                self._order_listeners.remove(entry)

        return unsubscribe

    def create_order(self, order: Order) -> str:
        order_id = uuid4().hex
        doc = order.to_document()
        with self._guard("write"), self._connect() as conn:
            conn.execute(
                "INSERT INTO orders (id, created_at, doc) VALUES (?, ?, ?)",
                (order_id, doc["created_at"], json.dumps(doc)),
            )
        logger.info("order_created id=%s status=%s items=%d", order_id, order.status.value, len(order.items))
        self._after_commit(orders=True)
        return order_id

    def update_order(self, order_id: str, fields: Mapping[str, Any]) -> None:
        """Merge the named fields into the stored document. ``None`` clears a field."""
        encoded = encode_order_fields(fields)
        with self._guard("write"), self._connect() as conn:
            row = conn.execute("SELECT doc FROM orders WHERE id = ?", (order_id,)).fetchone()
            if row is None:
                raise NotFoundError(f"Order {order_id} does not exist.")
            doc = json.loads(row[0])
            doc.update(encoded)
            conn.execute(
                "UPDATE orders SET created_at = ?, doc = ? WHERE id = ?",
                (doc["created_at"], json.dumps(doc), order_id),
            )
        logger.info("order_updated id=%s fields=%s", order_id, ",".join(sorted(encoded)))
        self._after_commit(orders=True)

    # menu and tutorial

    def _read_document(self, key: str) -> Any | None:
        with self._guard("read"), self._connect() as conn:
            row = conn.execute("SELECT doc FROM documents WHERE key = ?", (key,)).fetchone()
        if row is None:
            return None
        return json.loads(row[0])

    def _write_document(self, key: str, value: Any) -> None:
        with self._guard("write"), self._connect() as conn:
            conn.execute(
                "INSERT INTO documents (key, doc) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET doc = excluded.doc",
                (key, json.dumps(value)),
            )

    def read_menu(self) -> Menu | None:
        doc = self._read_document(MENU_KEY)
        if doc is None:
            return None
        return Menu.from_document(doc)

    def subscribe_menu(self, callback: MenuCallback, error_callback: ErrorCallback | None = None) -> Callable[[], None]:
        """Deliver the stored menu now, if there is one, and after every change."""
        entry = (callback, error_callback)
        self._menu_listeners.append(entry)
        self._deliver_menu([entry])

        def unsubscribe() -> None:
            if entry in self._menu_listeners:
                self._menu_listeners.remove(entry)

        return unsubscribe

    def write_menu(self, menu: Menu) -> None:
        self._write_document(MENU_KEY, menu.to_document())
        logger.info("menu_written drinks=%d categories=%d", len(menu.drinks), len(menu.categories))
        self._after_commit(menu=True)

    def seed_menu_if_missing(self, menu: Menu) -> bool:
        if self._read_document(MENU_KEY) is not None:
            return False
        self.write_menu(menu)
        logger.info("menu_seeded")
        return True

    def read_tutorial_steps(self) -> list[TutorialStep]:
        doc = self._read_document(TUTORIAL_KEY) or []
        return [TutorialStep.from_document(step) for step in doc]

    def write_tutorial_steps(self, steps: Sequence[TutorialStep]) -> None:
        self._write_document(TUTORIAL_KEY, [step.to_document() for step in steps])

    def seed_tutorial_steps_if_missing(self, steps: Sequence[TutorialStep]) -> bool:
        if self._read_document(TUTORIAL_KEY) is not None:
            return False
        self.write_tutorial_steps(steps)
        return True

    # change feed

    def _deliver_orders(self, listeners: Sequence[tuple[OrdersCallback, ErrorCallback | None]]) -> None:
        if not listeners:
            return
        try:
            orders = self.load_orders()
        except PermissionDeniedError as exc:
            self._report(listeners, exc)
            return
        for callback, _ in listeners:
            callback(list(orders))

    def _deliver_menu(self, listeners: Sequence[tuple[MenuCallback, ErrorCallback | None]]) -> None:
        if not listeners:
            return
        try:
            menu = self.read_menu()
        except PermissionDeniedError as exc:
            self._report(listeners, exc)
            return
        if menu is None:
            return
        for callback, _ in listeners:
            callback(menu)

    def _report(self, listeners: Sequence[tuple[Callable, ErrorCallback | None]], exc: Exception) -> None:
        reported = False
        for _, error_callback in listeners:
            if error_callback is not None:
                error_callback(exc)
                reported = True
        if not reported:
            raise exc

    def _current_data_version(self) -> int:
        if self._watch_conn is None:
            self._watch_conn = self._connect()
        return int(self._watch_conn.execute("PRAGMA data_version").fetchone()[0])

    def _after_commit(self, orders: bool = False, menu: bool = False) -> None:
        # Our own commits also bump data_version; absorb them so poll() does not redeliver.
        self._data_version = self._current_data_version()
        if orders:
            self._deliver_orders(list(self._order_listeners))
        if menu:
            self._deliver_menu(list(self._menu_listeners))

    def poll(self) -> bool:
        """Redeliver everything if another process committed since the last check."""
        with self._guard("read"):
            version = self._current_data_version()
        if self._data_version is None:
            self._data_version = version
            return False
        if version == self._data_version:
            return False
        self._data_version = version
        logger.debug("external_change data_version=%d", version)
        self._deliver_orders(list(self._order_listeners))
        self._deliver_menu(list(self._menu_listeners))
        return True
