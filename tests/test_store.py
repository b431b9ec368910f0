from __future__ import annotations

from dataclasses import replace

import pytest

from cafe.checkout import CheckoutSession
from cafe.constant import UNCATEGORISED_CATEGORY_ID
from cafe.data import SEED_MENU
from cafe.errors import IdentityUnavailableError, NotFoundError, PermissionDeniedError, ValidationError
from cafe.local_store import LocalSnapshot, LocalStore
from cafe.models import (
    Discount,
    DiscountType,
    Drink,
    GuestIdentity,
    ModifierGroup,
    ModifierOption,
    Order,
    OrderStatus,
    TutorialStep,
    UserRole,
)
from cafe.store import (
    AddCategory,
    AddDiscount,
    AddDrink,
    AddModifierGroup,
    AppState,
    AppStore,
    DeleteCategory,
    DeleteDrink,
    DeleteModifierGroup,
    HydrateFromStorage,
    Login,
    OrderPlaced,
    SetTheme,
    UpdateCategory,
    UpdateDrink,
    UpdateModifierGroup,
    UpdateUserRole,
    reduce,
)
from tests.conftest import NOW, make_item, make_order, minutes


class FakeGateway:
    """In-memory stand-in for ``OrderGateway`` that echoes writes through its feeds."""

    def __init__(self) -> None:
        self.orders: dict[str, Order] = {}
        self.menu = None
        self.tutorial = None
        self.order_listeners = []
        self.menu_listeners = []
        self.menu_writes = 0
        self.updates = []
        self.create_error: Exception | None = None
        self.closed = False

    def bootstrap_schema(self):
        pass

    def seed_menu_if_missing(self, menu):
        if self.menu is not None:
            return False
        self.write_menu(menu)
        return True

    def seed_tutorial_steps_if_missing(self, steps):
        if self.tutorial is not None:
            return False
        self.tutorial = list(steps)
        return True

    def read_tutorial_steps(self):
        return list(self.tutorial or [])

    def write_tutorial_steps(self, steps):
        self.tutorial = list(steps)

    def subscribe_orders(self, callback, error_callback=None):
        self.order_listeners.append(callback)
        callback(list(self.orders.values()))
        return lambda: self.order_listeners.remove(callback)

    def subscribe_menu(self, callback, error_callback=None):
        self.menu_listeners.append(callback)
        if self.menu is not None:
            callback(self.menu)
        return lambda: self.menu_listeners.remove(callback)

    def _push(self):
        for callback in list(self.order_listeners):
            callback(list(self.orders.values()))

    def create_order(self, order):
        if self.create_error is not None:
            raise self.create_error
        order_id = f"order-{len(self.orders) + 1}"
        self.orders[order_id] = replace(order, id=order_id)
        self._push()
        return order_id

    def update_order(self, order_id, fields):
        if order_id not in self.orders:
            raise NotFoundError(order_id)
        self.updates.append((order_id, dict(fields)))
        self.orders[order_id] = self.orders[order_id].with_updates(fields)
        self._push()

    def write_menu(self, menu):
        self.menu = menu
        self.menu_writes += 1
        for callback in list(self.menu_listeners):
            callback(menu)

    def poll(self):
        return False

    def close(self):
        self.closed = True


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def notes():
    return []


@pytest.fixture
def store(gateway, notes):
    app_store = AppStore(gateway, clock=lambda: NOW)
    app_store.on_notify(lambda message, severity: notes.append((severity, message)))
    app_store.start()
    return app_store


def _seed_order(gateway, store, order):
    gateway.orders[order.id] = order
    gateway._push()
    assert store.state.order(order.id) is not None


def _session(latte, name="Sam", quantity=1):
    session = CheckoutSession(name)
    session.add_item(make_item(latte, quantity))
    return session


def test_start_seeds_and_loads_feeds(store, gateway):
    assert store.state.menu_loaded
    assert store.state.menu == SEED_MENU
    assert len(store.state.tutorial_steps) == 5
    assert store.identity.current_uid is not None
    assert gateway.menu_writes == 1


def test_place_order_requires_identity(gateway, latte):
    fresh = AppStore(gateway, clock=lambda: NOW)
    with pytest.raises(IdentityUnavailableError):
        fresh.place_order(_session(latte))


def test_anonymous_order_waits_for_payment_and_updates_guest_loyalty(store, gateway, latte):
    session = _session(latte, "Sam", quantity=2)
    order_id = store.place_order(session)

    order = store.state.order(order_id)
    assert order.status is OrderStatus.PAYMENT_REQUIRED
    assert order.customer_id == store.identity.current_uid
    assert store.state.loyalty == {"sam": 2}
    assert session.is_empty
    assert session.order_name == "Sam"


def test_invalid_session_is_left_untouched(store, gateway, latte):
    session = _session(latte, name=" ")
    with pytest.raises(ValidationError):
        store.place_order(session)
    assert not session.is_empty
    assert gateway.orders == {}


def test_store_failure_keeps_the_cart_and_shows_the_banner(store, gateway, notes, latte):
    gateway.create_error = PermissionDeniedError("data/cafe.db", "write", "attempt to write a readonly database")
    session = _session(latte)

    assert store.place_order(session) is None
    assert not session.is_empty
    assert store.state.permission_error.startswith("Write permission denied for 'data/cafe.db'.")
    assert notes[-1][0] == "error"

    store.dismiss_permission_error()
    assert store.state.permission_error is None


def test_fifth_unit_gives_the_next_order_a_free_drink(store, latte):
    store.place_order(_session(latte, "Sam", quantity=5))
    assert store.state.loyalty == {"sam": 0}

    session = _session(latte, "sam", quantity=2)
    assert store.has_loyalty_reward(session)
    order_id = store.place_order(session)
    assert store.state.order(order_id).final_total == pytest.approx(4.0)


def test_registered_user_loyalty_follows_the_account(store, latte):
    user = store.register("Alice")
    store.place_order(_session(latte, "Somebody", quantity=3))
    assert store.state.current_user.loyalty_points == 3
    assert store.state.loyalty == {}
    assert next(u for u in store.state.users if u.id == user.id).loyalty_points == 3


def test_verify_payment_goes_through_the_feed(store, gateway, latte):
    order_id = store.place_order(_session(latte))
    assert store.verify_payment(order_id)
    assert gateway.updates[-1] == (order_id, {"status": OrderStatus.PENDING, "created_at": NOW})
    assert store.state.order(order_id).status is OrderStatus.PENDING


def test_complete_needs_items_done(store, gateway, notes, latte):
    order = make_order("order-x", (make_item(latte, item_id="line-1"),))
    _seed_order(gateway, store, order)

    assert store.complete_order("order-x") is False
    assert notes[-1][0] == "warning"
    assert gateway.updates == []

    assert store.toggle_order_item("order-x", "line-1")
    assert store.complete_order("order-x")
    completed = store.state.order("order-x")
    assert completed.status is OrderStatus.COMPLETED
    assert completed.completed_at == NOW

    assert store.requeue_order("order-x")
    requeued = store.state.order("order-x")
    assert requeued.status is OrderStatus.PENDING
    assert requeued.completed_at is None
    assert requeued.items[0].is_completed


def test_unknown_order_is_ignored(store, gateway):
    assert store.verify_payment("missing") is False
    assert store.toggle_order_item("missing", "line") is False
    assert gateway.updates == []


def test_activate_due_orders_only_touches_due_scheduled_orders(store, gateway, latte):
    due = make_order("due", (make_item(latte),), status=OrderStatus.SCHEDULED, pickup_time=NOW + minutes(10))
    later = make_order("later", (make_item(latte),), status=OrderStatus.SCHEDULED, pickup_time=NOW + minutes(40))
    gateway.orders.update({"due": due, "later": later})
    gateway._push()

    assert store.activate_due_orders() == 1
    assert store.state.order("due").status is OrderStatus.PENDING
    assert store.state.order("later").status is OrderStatus.SCHEDULED
    assert store.activate_due_orders() == 0


def test_menu_changes_are_written_back_but_feed_deliveries_are_not(store, gateway):
    writes = gateway.menu_writes
    store.dispatch(AddCategory("Seasonal", category_id="cat-9"))
    assert gateway.menu_writes == writes + 1
    assert gateway.menu.categories[-1].name == "Seasonal"
    assert store.state.menu.categories[-1].id == "cat-9"


def test_listeners_see_queued_dispatches_in_order(store):
    seen = []

    def listener(state):
        seen.append(state.theme)
        if state.theme == "light":
            store.dispatch(SetTheme("dark"))

    store.subscribe(listener)
    store.set_theme("light")
    assert seen == ["light", "dark"]


def test_accounts(store):
    alice = store.register("Alice")
    assert alice.id.startswith("user-")
    with pytest.raises(ValidationError):
        store.register("alice")

    store.logout()
    assert store.state.current_user is None

    guest = store.login("Walk In")
    assert guest.is_guest
    assert store.login("ALICE").id == alice.id


def test_favourites_need_an_account(store, latte):
    store.login("Walk In")
    with pytest.raises(ValidationError):
        store.add_favourite(make_item(latte, 3))

    store.register("Alice")
    store.add_favourite(make_item(latte, 3))
    [favourite] = store.state.current_user.favourites
    assert favourite.quantity == 1
    assert favourite.final_price == pytest.approx(4.0)

    store.remove_favourite(favourite.id)
    assert store.state.current_user.favourites == ()


def test_admin_cannot_change_own_role(store):
    admin = store.login("admin")
    with pytest.raises(ValidationError):
        store.update_user_role(admin.id, UserRole.CUSTOMER)

    store.update_user_role("kitchen-user", UserRole.CUSTOMER)
    assert next(u for u in store.state.users if u.id == "kitchen-user").role is UserRole.CUSTOMER


def test_feedback_rating_range(store):
    with pytest.raises(ValidationError):
        store.submit_feedback(0)
    store.submit_feedback(5, "  lovely  ")
    assert store.state.feedback[-1].message == "lovely"


def test_complete_tutorial_only_for_registered_users(store):
    store.login("Walk In")
    store.complete_tutorial()
    assert not store.state.current_user.has_completed_tutorial

    store.register("Alice")
    store.complete_tutorial()
    assert store.state.current_user.has_completed_tutorial


def test_local_snapshot_is_saved_when_its_slice_changes(tmp_path, gateway):
    local = LocalStore(str(tmp_path / "local.json"))
    app_store = AppStore(gateway, local_store=local, clock=lambda: NOW)
    app_store.start()
    assert not local.path.exists()

    app_store.set_theme("light")
    assert local.load().theme == "light"


def test_hydrating_does_not_write_the_snapshot_back(tmp_path, gateway):
    local = LocalStore(str(tmp_path / "local.json"))
    app_store = AppStore(gateway, local_store=local, clock=lambda: NOW)
    app_store.dispatch(HydrateFromStorage(LocalSnapshot(theme="light")))
    assert app_store.state.theme == "light"
    assert not local.path.exists()


def test_reducer_category_and_group_deletion():
    state = AppState(menu=SEED_MENU, menu_loaded=True)

    moved = reduce(state, DeleteCategory("cat-3"))
    assert all(category.id != "cat-3" for category in moved.menu.categories)
    assert {d.category for d in moved.menu.drinks if d.id == "drink-13"} == {UNCATEGORISED_CATEGORY_ID}

    assert reduce(state, DeleteCategory(UNCATEGORISED_CATEGORY_ID)) is state

    unlinked = reduce(state, DeleteModifierGroup("mod-group-1"))
    assert unlinked.menu.group("mod-group-1") is None
    assert all("mod-group-1" not in d.modifier_groups for d in unlinked.menu.drinks)


def test_reducer_guest_login_and_loyalty():
    state = reduce(AppState(), Login("Bob", guest_id="guest-bob"))
    assert state.current_user.id == "guest-bob"
    state = reduce(state, OrderPlaced(GuestIdentity("bob"), 2))
    assert state.loyalty == {"bob": 2}


def test_reducer_ignores_own_role_change():
    state = reduce(AppState(), Login("admin"))
    assert reduce(state, UpdateUserRole("admin-user", UserRole.CUSTOMER)) is state


def test_stop_detaches_feeds(store, gateway):
    store.stop()
    assert gateway.order_listeners == []
    assert gateway.closed


def test_drink_edits_are_written_back(store, gateway):
    writes = gateway.menu_writes
    flat_white = Drink(id="drink-99", name="Flat White", category="cat-1", base_price=4.5, modifier_groups=("mod-group-1",))

    store.dispatch(AddDrink(flat_white))
    assert gateway.menu.drink("drink-99") == flat_white

    store.dispatch(UpdateDrink(replace(flat_white, base_price=5.0)))
    assert store.state.menu.drink("drink-99").base_price == 5.0
    assert gateway.menu.drink("drink-99").base_price == 5.0

    store.dispatch(DeleteDrink("drink-99"))
    assert store.state.menu.drink("drink-99") is None
    assert gateway.menu.drink("drink-99") is None
    assert gateway.menu_writes == writes + 3


def test_category_and_group_edits_are_written_back(store, gateway):
    writes = gateway.menu_writes
    hot = store.state.menu.categories[0]
    store.dispatch(UpdateCategory(replace(hot, name="Hot Coffee")))
    assert gateway.menu.categories[0] == replace(hot, name="Hot Coffee")

    syrup = ModifierGroup(id="mod-group-9", name="Syrup", options=(ModifierOption(id="mod-9-1", name="Vanilla", price=0.5),))
    store.dispatch(AddModifierGroup(syrup))
    assert gateway.menu.group("mod-group-9") == syrup

    store.dispatch(UpdateModifierGroup(replace(syrup, name="Syrups")))
    assert store.state.menu.group("mod-group-9").name == "Syrups"
    assert gateway.menu_writes == writes + 3


def test_reducer_update_drink_keeps_the_rest_of_the_menu():
    state = AppState(menu=SEED_MENU, menu_loaded=True)
    latte = SEED_MENU.drink("drink-1")

    updated = reduce(state, UpdateDrink(replace(latte, name="Caffè Latte")))
    assert updated.menu.drink("drink-1").name == "Caffè Latte"
    assert [d.id for d in updated.menu.drinks] == [d.id for d in SEED_MENU.drinks]
    assert all(new == old for new, old in zip(updated.menu.drinks, SEED_MENU.drinks) if old.id != "drink-1")
    assert updated.menu.categories == SEED_MENU.categories


def test_add_discount_validates_and_stores_the_code(store, gateway):
    before = len(store.state.discounts)
    writes = gateway.menu_writes

    discount = store.add_discount(" summer20 ", DiscountType.PERCENTAGE, 20)
    assert discount.code == "SUMMER20"
    assert store.state.discounts[-1] == discount
    assert gateway.menu_writes == writes

    session = CheckoutSession("Sam")
    assert session.apply_discount_code("summer20", store.state.discounts).id == discount.id


@pytest.mark.parametrize(
    ("code", "discount_type", "value"),
    [
        ("", DiscountType.FIXED, 1.0),
        ("staff10", DiscountType.FIXED, 1.0),
        ("NEW", DiscountType.FIXED, 0.0),
        ("NEW", DiscountType.PERCENTAGE, 150.0),
    ],
)
def test_add_discount_rejects_bad_input(store, code, discount_type, value):
    before = store.state.discounts
    with pytest.raises(ValidationError):
        store.add_discount(code, discount_type, value)
    assert store.state.discounts == before


def test_reducer_add_discount():
    extra = Discount(id="disc-9", code="TREAT", type=DiscountType.FIXED, value=1.5)
    state = reduce(AppState(discounts=()), AddDiscount(extra))
    assert state.discounts == (extra,)


def test_write_tutorial_steps_saves_and_reloads(store, gateway):
    steps = (TutorialStep(id="step-1", title="Welcome", content="Pick a drink to start."),)
    store.write_tutorial_steps(steps)
    assert store.state.tutorial_steps == steps
    assert gateway.read_tutorial_steps() == list(steps)


def test_write_tutorial_steps_permission_denied_keeps_the_old_steps(store, gateway, monkeypatch):
    before = store.state.tutorial_steps

    def denied(steps):
        raise PermissionDeniedError("data/cafe.db", "write", "attempt to write a readonly database")

    monkeypatch.setattr(gateway, "write_tutorial_steps", denied)
    store.write_tutorial_steps(())
    assert store.state.tutorial_steps == before
    assert store.state.permission_error.startswith("Write permission denied")
