"""Entry point for the café ordering Textual app."""

from __future__ import annotations

import logging
from pathlib import Path

from cafe.cafe_app import CafeApp
from cafe.config import DEBUG_LOG_PATH, LOG_LEVEL


def configure_logging(path: str = DEBUG_LOG_PATH, level: str = LOG_LEVEL) -> None:
    """Send log records to a file; the terminal belongs to the UI."""
    log_file = Path(path)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(level)


def main() -> None:
    """Run the Textual application."""
    configure_logging()
    CafeApp().run()


if __name__ == "__main__":
    main()
