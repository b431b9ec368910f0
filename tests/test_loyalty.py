from __future__ import annotations

from cafe.loyalty import (
    AccountLedger,
    GuestLedger,
    counter_for,
    has_reward,
    is_eligible,
    record_purchase,
    resolve_identity,
)
from cafe.models import AccountIdentity, GuestIdentity, User

ALICE = User(id="user-alice", name="Alice", loyalty_points=3)
GUEST = User(id="guest-1", name="Bob")


def test_counter_wraps_every_five_units():
    assert record_purchase(0, 1) == 1
    assert record_purchase(3, 2) == 0
    assert record_purchase(4, 7) == 1


def test_reward_needs_zero_counter_and_units_in_cart():
    assert is_eligible(0, 1)
    assert not is_eligible(0, 0)
    assert not is_eligible(2, 1)
    assert not is_eligible(None, 1)


def test_registered_user_is_keyed_by_account_whatever_the_typed_name():
    assert resolve_identity(ALICE, "Someone Else") == AccountIdentity("user-alice")


def test_guest_and_anonymous_are_keyed_by_lowercased_name():
    assert resolve_identity(GUEST, "  Bob ") == GuestIdentity("bob")
    assert resolve_identity(None, "BOB") == GuestIdentity("bob")


def test_account_ledger_updates_only_that_user():
    other = User(id="user-carol", name="Carol", loyalty_points=1)
    users = AccountLedger((ALICE, other)).record(AccountIdentity("user-alice"), 2)
    by_id = {user.id: user for user in users}
    assert by_id["user-alice"].loyalty_points == 0
    assert by_id["user-carol"].loyalty_points == 1


def test_account_ledger_ignores_unknown_user():
    users = AccountLedger((ALICE,)).record(AccountIdentity("user-missing"), 2)
    assert users == (ALICE,)


def test_guest_ledger_starts_new_names_at_zero():
    table = GuestLedger({}).record(GuestIdentity("bob"), 2)
    assert table == {"bob": 2}


def test_guest_without_entry_is_not_eligible():
    assert counter_for(GuestIdentity("bob"), (), {}) is None
    assert not has_reward(GuestIdentity("bob"), (), {}, 3)


def test_fifth_unit_earns_a_reward_on_the_next_order():
    table = GuestLedger({"bob": 3}).record(GuestIdentity("bob"), 2)
    assert has_reward(GuestIdentity("bob"), (), table, 1)
    assert has_reward(AccountIdentity("user-alice"), (User(id="user-alice", name="Alice"),), {}, 1)
