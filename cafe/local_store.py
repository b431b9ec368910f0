"""Device-local JSON snapshot of users, discounts, feedback, theme and guest loyalty."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from cafe.config import LOCAL_STORE_PATH
from cafe.errors import PermissionDeniedError
from cafe.models import Discount, Feedback, User

logger = logging.getLogger(__name__)

THEMES = ("light", "dark")


@dataclass(frozen=True)
class LocalSnapshot:
    users: tuple[User, ...] = ()
    discounts: tuple[Discount, ...] = ()
    feedback: tuple[Feedback, ...] = ()
    theme: str = "dark"
    loyalty: Mapping[str, int] = field(default_factory=dict)

    def to_document(self) -> dict[str, Any]:
        """Guest users are session-only and never written out."""
        return {
            "users": [user.to_document() for user in self.users if not user.is_guest],
            "discounts": [discount.to_document() for discount in self.discounts],
            "feedback": [entry.to_document() for entry in self.feedback],
            "theme": self.theme,
            "loyalty": dict(self.loyalty),
        }

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> LocalSnapshot:
        theme = doc.get("theme", "dark")
        return cls(
            users=tuple(User.from_document(user) for user in doc.get("users") or []),
            discounts=tuple(Discount.from_document(discount) for discount in doc.get("discounts") or []),
            feedback=tuple(Feedback.from_document(entry) for entry in doc.get("feedback") or []),
            theme=theme if theme in THEMES else "dark",
            loyalty={str(name): int(count) for name, count in (doc.get("loyalty") or {}).items()},
        )


class LocalStore:
    """A JSON file treated as a cache. ``poll`` reports writes made by other instances."""

    def __init__(self, path: str = LOCAL_STORE_PATH) -> None:
        self.path = Path(path)
        self._seen_mtime: float | None = None

    def _mtime(self) -> float | None:
        try:
            return self.path.stat().st_mtime
        except FileNotFoundError:
            return None

    def load(self) -> LocalSnapshot | None:
        self._seen_mtime = self._mtime()
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except PermissionError as exc:
            raise PermissionDeniedError(str(self.path), "read", str(exc)) from exc
        try:
            return LocalSnapshot.from_document(json.loads(raw))
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("local_store_unreadable path=%s error=%s", self.path, exc)
            return None

    def save(self, snapshot: LocalSnapshot) -> None:
        payload = json.dumps(snapshot.to_document(), indent=2)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(payload, encoding="utf-8")
            os.replace(tmp_path, self.path)
        except PermissionError as exc:
            raise PermissionDeniedError(str(self.path), "write", str(exc)) from exc
        self._seen_mtime = self._mtime()
        logger.debug("local_store_saved path=%s", self.path)

    def poll(self) -> LocalSnapshot | None:
        """Return the snapshot if the file changed since we last read or wrote it."""
        mtime = self._mtime()
        if mtime is None or mtime == self._seen_mtime:
            return None
        logger.info("local_store_changed path=%s", self.path)
        return self.load()
