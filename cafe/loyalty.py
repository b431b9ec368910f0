"""Rolling drink counter: every fifth drink unit is free.

Registered users carry their counter on the ``User`` record, which is synced
with their account. Guests are keyed by the lower-cased name typed on the
order and live in a device-local table only.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Mapping

from cafe.config import LOYALTY_CYCLE
from cafe.models import AccountIdentity, GuestIdentity, Identity, User

logger = logging.getLogger(__name__)


def record_purchase(counter: int, units: int) -> int:
    return (counter + units) % LOYALTY_CYCLE


def is_eligible(counter: int | None, units_in_cart: int) -> bool:
    """A zero counter only earns the reward when something is about to be bought."""
    return counter == 0 and units_in_cart > 0


def resolve_identity(current_user: User | None, order_name: str) -> Identity:
    """Pick the ledger namespace for an order.

    A registered user is always resolved by account id, whatever name they
    typed on the order. Anyone else, including a logged-in guest, is keyed by
    the typed order name.
    """
    if current_user is not None and not current_user.is_guest:
        return AccountIdentity(current_user.id)
    return GuestIdentity(order_name.strip().lower())


class AccountLedger:
    """Counters stored on registered ``User`` records."""

    def __init__(self, users: tuple[User, ...]) -> None:
        self._users = {user.id: user for user in users}

    def counter(self, identity: AccountIdentity) -> int | None:
        user = self._users.get(identity.user_id)
        if user is None:
            return None
        return user.loyalty_points

    def record(self, identity: AccountIdentity, units: int) -> tuple[User, ...]:
        """Return the user list with the purchase applied."""
        user = self._users.get(identity.user_id)
        if user is None:
            logger.warning("loyalty_record_skipped unknown_user=%s", identity.user_id)
            return tuple(self._users.values())
        points = record_purchase(user.loyalty_points, units)
        updated = replace(user, loyalty_points=points)
        self._users[user.id] = updated
        logger.info("loyalty_account user=%s points=%d->%d", user.id, user.loyalty_points, points)
        return tuple(self._users.values())


class GuestLedger:
    """Counters keyed by lower-cased guest name; never synced off the device."""

    def __init__(self, table: Mapping[str, int]) -> None:
        self._table = dict(table)

    def counter(self, identity: GuestIdentity) -> int | None:
        return self._table.get(identity.name)

    def record(self, identity: GuestIdentity, units: int) -> dict[str, int]:
        """Return the table with the purchase applied."""
        old = self._table.get(identity.name, 0)
        self._table[identity.name] = record_purchase(old, units)
        logger.info("loyalty_guest name=%r count=%d->%d", identity.name, old, self._table[identity.name])
        return dict(self._table)


def counter_for(identity: Identity, users: tuple[User, ...], guest_table: Mapping[str, int]) -> int | None:
    if isinstance(identity, AccountIdentity):
        return AccountLedger(users).counter(identity)
    return GuestLedger(guest_table).counter(identity)


def has_reward(
    identity: Identity,
    users: tuple[User, ...],
    guest_table: Mapping[str, int],
    units_in_cart: int,
) -> bool:
    return is_eligible(counter_for(identity, users, guest_table), units_in_cart)
