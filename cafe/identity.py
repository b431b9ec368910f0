"""Anonymous per-session identity used as ``customer_id`` on orders."""

from __future__ import annotations

import logging
from uuid import uuid4

from cafe.errors import IdentityUnavailableError

logger = logging.getLogger(__name__)


class AnonymousIdentityProvider:
    def __init__(self) -> None:
        self._uid: str | None = None

    def sign_in(self) -> str:
        """Issue the session id once; later calls return the same id."""
        if self._uid is None:
            self._uid = f"anon-{uuid4().hex}"
            logger.info("anonymous_sign_in uid=%s", self._uid)
        return self._uid

    @property
    def current_uid(self) -> str | None:
        return self._uid

    def require_uid(self) -> str:
        if self._uid is None:
            raise IdentityUnavailableError("Still connecting to the ordering service. Please try again in a moment.")
        return self._uid
