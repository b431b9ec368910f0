"""Application state, the closed action set and the single dispatch path.

``reduce`` is pure. ``AppStore`` owns the current state, applies actions one
at a time, runs the persistence effects that follow a state change, and turns
collaborator failures into notifications or the permission banner.

Order lifecycle commands never touch ``AppState.orders`` directly: they write
a partial update to the gateway and the change feed delivers the new
collection back through ``SetOrders``.
"""

from __future__ import annotations

import logging
import sqlite3
from collections import deque
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Callable, Mapping, Union
from uuid import uuid4

from cafe import lifecycle
from cafe.aggregation import KitchenSnapshot, KitchenViews
from cafe.checkout import CheckoutSession
from cafe.constant import UNCATEGORISED_CATEGORY_ID
from cafe.data import SEED_DISCOUNTS, SEED_MENU, SEED_TUTORIAL_STEPS, SEED_USERS
from cafe.errors import NotFoundError, PermissionDeniedError, TransitionError, ValidationError
from cafe.identity import AnonymousIdentityProvider
from cafe.local_store import THEMES, LocalSnapshot, LocalStore
from cafe.loyalty import AccountLedger, GuestLedger, has_reward, resolve_identity
from cafe.models import (
    AccountIdentity,
    CartItem,
    Category,
    Discount,
    DiscountType,
    Drink,
    Feedback,
    Identity,
    Menu,
    ModifierGroup,
    Order,
    TutorialStep,
    User,
    UserRole,
    utc_now,
)
from cafe.persistence import OrderGateway
from cafe.pricing import item_unit_price

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppState:
    menu: Menu = field(default_factory=Menu)
    menu_loaded: bool = False
    orders: tuple[Order, ...] = ()
    discounts: tuple[Discount, ...] = SEED_DISCOUNTS
    loyalty: Mapping[str, int] = field(default_factory=dict)
    users: tuple[User, ...] = SEED_USERS
    current_user: User | None = None
    feedback: tuple[Feedback, ...] = ()
    tutorial_steps: tuple[TutorialStep, ...] = ()
    theme: str = "dark"
    permission_error: str | None = None

    def local_snapshot(self) -> LocalSnapshot:
        return LocalSnapshot(
            users=self.users,
            discounts=self.discounts,
            feedback=self.feedback,
            theme=self.theme,
            loyalty=dict(self.loyalty),
        )

    def order(self, order_id: str) -> Order | None:
        for order in self.orders:
            if order.id == order_id:
                return order
        return None

    def find_user(self, name: str) -> User | None:
        wanted = name.strip().lower()
        for user in self.users:
            if user.name.lower() == wanted:
                return user
        return None


def _user_id() -> str:
    return f"user-{uuid4().hex[:12]}"


def _guest_id() -> str:
    return f"guest-{uuid4().hex[:12]}"


# feed


@dataclass(frozen=True)
class SetOrders:
    orders: tuple[Order, ...]


@dataclass(frozen=True)
class SetMenu:
    menu: Menu


@dataclass(frozen=True)
class SetTutorialSteps:
    steps: tuple[TutorialStep, ...]


@dataclass(frozen=True)
class HydrateFromStorage:
    snapshot: LocalSnapshot


@dataclass(frozen=True)
class SetPermissionError:
    message: str | None


# accounts


@dataclass(frozen=True)
class Register:
    name: str
    user_id: str = field(default_factory=_user_id)


@dataclass(frozen=True)
class Login:
    """Unknown names log in as a session-only guest."""

    name: str
    guest_id: str = field(default_factory=_guest_id)


@dataclass(frozen=True)
class Logout:
    pass


@dataclass(frozen=True)
class AddFavourite:
    item: CartItem


@dataclass(frozen=True)
class RemoveFavourite:
    item_id: str


@dataclass(frozen=True)
class UpdateUserRole:
    user_id: str
    role: UserRole


@dataclass(frozen=True)
class CompleteTutorial:
    pass


# ordering


@dataclass(frozen=True)
class OrderPlaced:
    identity: Identity
    units: int


# admin data


@dataclass(frozen=True)
class AddDrink:
    drink: Drink


@dataclass(frozen=True)
class UpdateDrink:
    drink: Drink


@dataclass(frozen=True)
class DeleteDrink:
    drink_id: str


@dataclass(frozen=True)
class AddCategory:
    name: str
    category_id: str = field(default_factory=lambda: f"cat-{uuid4().hex[:8]}")


@dataclass(frozen=True)
class UpdateCategory:
    category: Category


@dataclass(frozen=True)
class DeleteCategory:
    category_id: str


@dataclass(frozen=True)
class AddModifierGroup:
    group: ModifierGroup


@dataclass(frozen=True)
class UpdateModifierGroup:
    group: ModifierGroup


@dataclass(frozen=True)
class DeleteModifierGroup:
    group_id: str


@dataclass(frozen=True)
class AddDiscount:
    discount: Discount


@dataclass(frozen=True)
class DeleteDiscount:
    discount_id: str


# misc


@dataclass(frozen=True)
class SubmitFeedback:
    rating: int
    message: str = ""
    feedback_id: str = field(default_factory=lambda: f"feedback-{uuid4().hex[:12]}")
    created_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class SetTheme:
    theme: str


Action = Union[
    SetOrders,
    SetMenu,
    SetTutorialSteps,
    HydrateFromStorage,
    SetPermissionError,
    Register,
    Login,
    Logout,
    AddFavourite,
    RemoveFavourite,
    UpdateUserRole,
    CompleteTutorial,
    OrderPlaced,
    AddDrink,
    UpdateDrink,
    DeleteDrink,
    AddCategory,
    UpdateCategory,
    DeleteCategory,
    AddModifierGroup,
    UpdateModifierGroup,
    DeleteModifierGroup,
    AddDiscount,
    DeleteDiscount,
    SubmitFeedback,
    SetTheme,
]


def _replace_user(state: AppState, updated: User) -> AppState:
    users = tuple(updated if user.id == updated.id else user for user in state.users)
    current = updated if state.current_user is not None and state.current_user.id == updated.id else state.current_user
    return replace(state, users=users, current_user=current)


def _with_menu(state: AppState, **changes: Any) -> AppState:
    return replace(state, menu=replace(state.menu, **changes))


def _update_current_user(state: AppState, **changes: Any) -> AppState:
    user = state.current_user
    if user is None or user.is_guest:
        return state
    updated = replace(user, **changes)
    if any(existing.id == user.id for existing in state.users):
        return _replace_user(state, updated)
    return replace(state, current_user=updated)


def reduce(state: AppState, action: Action) -> AppState:
    """Return the state after ``action``. Unknown or inapplicable actions leave it unchanged."""
    if isinstance(action, SetOrders):
        return replace(state, orders=tuple(action.orders))
    if isinstance(action, SetMenu):
        return replace(state, menu=action.menu, menu_loaded=True)
    if isinstance(action, SetTutorialSteps):
        return replace(state, tutorial_steps=tuple(action.steps))
    if isinstance(action, SetPermissionError):
        return replace(state, permission_error=action.message)
    if isinstance(action, HydrateFromStorage):
        snapshot = action.snapshot
        users = snapshot.users or state.users
        current = state.current_user
        if current is not None and not current.is_guest:
            current = next((user for user in users if user.id == current.id), current)
        return replace(
            state,
            users=users,
            discounts=snapshot.discounts,
            feedback=snapshot.feedback,
            theme=snapshot.theme,
            loyalty=dict(snapshot.loyalty),
            current_user=current,
        )

    if isinstance(action, Register):
        name = action.name.strip()
        if not name or state.find_user(name) is not None:
            return state
        user = User(id=action.user_id, name=name, role=UserRole.CUSTOMER)
        return replace(state, users=state.users + (user,), current_user=user)
    if isinstance(action, Login):
        name = action.name.strip()
        if not name:
            return state
        user = state.find_user(name)
        if user is None:
            user = User(id=action.guest_id, name=name, role=UserRole.CUSTOMER)
        return replace(state, current_user=user)
    if isinstance(action, Logout):
        return replace(state, current_user=None)
    if isinstance(action, AddFavourite):
        if state.current_user is None:
            return state
        return _update_current_user(state, favourites=state.current_user.favourites + (action.item,))
    if isinstance(action, RemoveFavourite):
        if state.current_user is None:
            return state
        kept = tuple(item for item in state.current_user.favourites if item.id != action.item_id)
        return _update_current_user(state, favourites=kept)
    if isinstance(action, UpdateUserRole):
        if state.current_user is not None and state.current_user.id == action.user_id:
            return state
        target = next((user for user in state.users if user.id == action.user_id), None)
        if target is None:
            return state
        return _replace_user(state, replace(target, role=action.role))
    if isinstance(action, CompleteTutorial):
        return _update_current_user(state, has_completed_tutorial=True)

    if isinstance(action, OrderPlaced):
        if isinstance(action.identity, AccountIdentity):
            users = AccountLedger(state.users).record(action.identity, action.units)
            current = state.current_user
            if current is not None:
                current = next((user for user in users if user.id == current.id), current)
            return replace(state, users=users, current_user=current)
        loyalty = GuestLedger(state.loyalty).record(action.identity, action.units)
        return replace(state, loyalty=loyalty)

    if isinstance(action, AddDrink):
        return _with_menu(state, drinks=state.menu.drinks + (action.drink,))
    if isinstance(action, UpdateDrink):
        drinks = tuple(action.drink if drink.id == action.drink.id else drink for drink in state.menu.drinks)
        return _with_menu(state, drinks=drinks)
    if isinstance(action, DeleteDrink):
        return _with_menu(state, drinks=tuple(drink for drink in state.menu.drinks if drink.id != action.drink_id))
    if isinstance(action, AddCategory):
        category = Category(id=action.category_id, name=action.name.strip())
        return _with_menu(state, categories=state.menu.categories + (category,))
    if isinstance(action, UpdateCategory):
        categories = tuple(
            action.category if category.id == action.category.id else category for category in state.menu.categories
        )
        return _with_menu(state, categories=categories)
    if isinstance(action, DeleteCategory):
        if action.category_id == UNCATEGORISED_CATEGORY_ID:
            return state
        return _with_menu(
            state,
            categories=tuple(category for category in state.menu.categories if category.id != action.category_id),
            drinks=tuple(
                replace(drink, category=UNCATEGORISED_CATEGORY_ID) if drink.category == action.category_id else drink
                for drink in state.menu.drinks
            ),
        )
    if isinstance(action, AddModifierGroup):
        return _with_menu(state, modifier_groups=state.menu.modifier_groups + (action.group,))
    if isinstance(action, UpdateModifierGroup):
        groups = tuple(
            action.group if group.id == action.group.id else group for group in state.menu.modifier_groups
        )
        return _with_menu(state, modifier_groups=groups)
    if isinstance(action, DeleteModifierGroup):
        return _with_menu(
            state,
            modifier_groups=tuple(group for group in state.menu.modifier_groups if group.id != action.group_id),
            drinks=tuple(
                replace(drink, modifier_groups=tuple(gid for gid in drink.modifier_groups if gid != action.group_id))
                for drink in state.menu.drinks
            ),
        )
    if isinstance(action, AddDiscount):
        return replace(state, discounts=state.discounts + (action.discount,))
    if isinstance(action, DeleteDiscount):
        return replace(state, discounts=tuple(d for d in state.discounts if d.id != action.discount_id))

    if isinstance(action, SubmitFeedback):
        entry = Feedback(
            id=action.feedback_id,
            rating=action.rating,
            message=action.message.strip(),
            created_at=action.created_at,
        )
        return replace(state, feedback=state.feedback + (entry,))
    if isinstance(action, SetTheme):
        if action.theme not in THEMES:
            return state
        return replace(state, theme=action.theme)

    logger.warning("unhandled_action type=%s", type(action).__name__)
    return state


Listener = Callable[[AppState], None]
Notifier = Callable[[str, str], None]

_LOCAL_FIELDS = ("users", "discounts", "feedback", "theme", "loyalty")


def _local_slice(state: AppState) -> tuple[Any, ...]:
    return tuple(getattr(state, name) for name in _LOCAL_FIELDS)


class AppStore:
    """The coordinating owner of ``AppState``."""

    def __init__(
        self,
        gateway: OrderGateway,
        local_store: LocalStore | None = None,
        identity: AnonymousIdentityProvider | None = None,
        state: AppState | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.gateway = gateway
        self.local_store = local_store
        self.identity = identity or AnonymousIdentityProvider()
        self.state = state or AppState()
        self.clock = clock
        self.kitchen = KitchenViews()
        self._listeners: list[Listener] = []
        self._notifiers: list[Notifier] = []
        self._queue: deque[Action] = deque()
        self._dispatching = False
        self._unsubscribers: list[Callable[[], None]] = []

    # wiring

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def on_notify(self, notifier: Notifier) -> None:
        self._notifiers.append(notifier)

    def notify(self, message: str, severity: str = "information") -> None:
        for notifier in list(self._notifiers):
            notifier(message, severity)

    def dispatch(self, action: Action) -> None:
        """Apply ``action``. Dispatches made while one is running are queued behind it."""
        self._queue.append(action)
        if self._dispatching:
            return
        self._dispatching = True
        try:
            while self._queue:
                current = self._queue.popleft()
                previous = self.state
                self.state = reduce(previous, current)
                if self.state is previous:
                    continue
                logger.debug("dispatch action=%s", type(current).__name__)
                self._run_effects(previous, self.state, current)
                for listener in list(self._listeners):
                    listener(self.state)
        finally:
            self._dispatching = False

    def _report_permission(self, exc: PermissionDeniedError) -> None:
        self.dispatch(SetPermissionError(str(exc)))

    def _run_effects(self, previous: AppState, state: AppState, action: Action) -> None:
        if (
            self.local_store is not None
            and not isinstance(action, HydrateFromStorage)
            and _local_slice(previous) != _local_slice(state)
        ):
            try:
                self.local_store.save(state.local_snapshot())
            except PermissionDeniedError as exc:
                self._report_permission(exc)

        # The feed's own delivery is not written back, and nothing is written before it arrives.
        if state.menu is not previous.menu and previous.menu_loaded and not isinstance(action, SetMenu):
            try:
                self.gateway.write_menu(state.menu)
            except PermissionDeniedError as exc:
                self._report_permission(exc)
            except sqlite3.Error:
                logger.exception("menu_write_failed")
                self.notify("Failed to save menu changes to the database.", "error")

    def start(self) -> None:
        """Seed the store, hydrate local data and attach the change feeds."""
        try:
            self.gateway.bootstrap_schema()
            self.gateway.seed_menu_if_missing(SEED_MENU)
            self.gateway.seed_tutorial_steps_if_missing(SEED_TUTORIAL_STEPS)
            self.dispatch(SetTutorialSteps(tuple(self.gateway.read_tutorial_steps())))
        except PermissionDeniedError as exc:
            self._report_permission(exc)

        if self.local_store is not None:
            try:
                snapshot = self.local_store.load()
            except PermissionDeniedError as exc:
                self._report_permission(exc)
                snapshot = None
            if snapshot is not None:
                self.dispatch(HydrateFromStorage(snapshot))

        self.identity.sign_in()
        self._unsubscribers.append(
            self.gateway.subscribe_orders(lambda orders: self.dispatch(SetOrders(tuple(orders))), self._on_feed_error)
        )
        self._unsubscribers.append(
            self.gateway.subscribe_menu(lambda menu: self.dispatch(SetMenu(menu)), self._on_feed_error)
        )
        logger.info("store_started orders=%d drinks=%d", len(self.state.orders), len(self.state.menu.drinks))

    def stop(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        self.gateway.close()

    def _on_feed_error(self, exc: Exception) -> None:
        if isinstance(exc, PermissionDeniedError):
            self._report_permission(exc)
        else:
            logger.error("feed_error error=%s", exc)
            self.notify(str(exc), "error")

    def poll(self) -> None:
        """Pick up changes made by other processes to the order store or local snapshot."""
        try:
            self.gateway.poll()
        except PermissionDeniedError as exc:
            self._report_permission(exc)
        if self.local_store is None:
            return
        try:
            snapshot = self.local_store.poll()
        except PermissionDeniedError as exc:
            self._report_permission(exc)
            return
        if snapshot is not None:
            self.dispatch(HydrateFromStorage(snapshot))

    def dismiss_permission_error(self) -> None:
        self.dispatch(SetPermissionError(None))

    # kitchen

    def kitchen_snapshot(self, query: str = "") -> KitchenSnapshot:
        return self.kitchen.snapshot(self.state.orders, query)

    def _known_order(self, order_id: str) -> Order | None:
        order = self.state.order(order_id)
        if order is None:
            logger.warning("order_not_found id=%s", order_id)
        return order

    def _write_update(self, order_id: str, update: Mapping[str, Any]) -> bool:
        try:
            self.gateway.update_order(order_id, update)
        except PermissionDeniedError as exc:
            self._report_permission(exc)
            return False
        except NotFoundError:
            logger.warning("order_not_found_in_store id=%s", order_id)
            return False
        except sqlite3.Error:
            logger.exception("order_update_failed id=%s", order_id)
            self.notify("Failed to update the order. Please try again.", "error")
            return False
        return True

    def _transition(self, order_id: str, compute: Callable[[Order], Mapping[str, Any] | None]) -> bool:
        order = self._known_order(order_id)
        if order is None:
            return False
        try:
            update = compute(order)
        except (TransitionError, NotFoundError) as exc:
            logger.warning("transition_rejected id=%s reason=%s", order_id, exc)
            self.notify(str(exc), "warning")
            return False
        if update is None:
            return False
        return self._write_update(order_id, update)

    def verify_payment(self, order_id: str) -> bool:
        return self._transition(order_id, lambda order: lifecycle.verify_payment(order, self.clock()))

    def complete_order(self, order_id: str) -> bool:
        return self._transition(order_id, lambda order: lifecycle.complete_order(order, self.clock()))

    def requeue_order(self, order_id: str) -> bool:
        return self._transition(order_id, lifecycle.requeue_order)

    def activate_scheduled_order(self, order_id: str) -> bool:
        return self._transition(order_id, lambda order: lifecycle.activate_scheduled(order, self.clock()))

    def toggle_order_item(self, order_id: str, item_id: str) -> bool:
        return self._transition(order_id, lambda order: lifecycle.toggle_item(order, item_id))

    def activate_due_orders(self) -> int:
        """Ticker body: activate every scheduled order whose lead window has opened."""
        now = self.clock()
        activated = 0
        for order in lifecycle.due_for_activation(self.state.orders, now):
            update = lifecycle.activate_scheduled(order, now)
            if update is not None and self._write_update(order.id, update):
                activated += 1
        return activated

    # checkout

    def loyalty_identity(self, order_name: str) -> Identity:
        return resolve_identity(self.state.current_user, order_name)

    def has_loyalty_reward(self, session: CheckoutSession) -> bool:
        identity = self.loyalty_identity(session.order_name)
        return has_reward(identity, self.state.users, self.state.loyalty, session.unit_count)

    def place_order(self, session: CheckoutSession, now: datetime | None = None) -> str | None:
        """Validate, price and submit the session's cart.

        Raises ``ValidationError`` or ``IdentityUnavailableError`` for problems
        the customer can fix; the session is left untouched in that case. A
        store failure is reported and returns ``None``, also leaving the cart.
        """
        now = now or self.clock()
        customer_id = self.identity.require_uid()
        user = self.state.current_user
        identity = self.loyalty_identity(session.order_name)
        reward = has_reward(identity, self.state.users, self.state.loyalty, session.unit_count)
        order = session.build_order(
            customer_id=customer_id,
            is_admin=user is not None and user.is_admin,
            loyalty_reward=reward,
            now=now,
        )
        try:
            order_id = self.gateway.create_order(order)
        except PermissionDeniedError as exc:
            self._report_permission(exc)
            self.notify("Failed to place order. Please try again.", "error")
            return None
        except sqlite3.Error:
            logger.exception("order_create_failed")
            self.notify("Failed to place order. Please try again.", "error")
            return None

        self.dispatch(OrderPlaced(identity=identity, units=order.unit_count))
        session.clear()
        logger.info("order_placed id=%s status=%s reward=%s total=%.2f", order_id, order.status.value, reward, order.final_total)
        return order_id

    # accounts and misc

    def register(self, name: str) -> User:
        name = name.strip()
        if not name:
            raise ValidationError("Please enter a name.")
        if self.state.find_user(name) is not None:
            raise ValidationError(f"The name '{name}' is already taken.")
        self.dispatch(Register(name))
        assert self.state.current_user is not None
        return self.state.current_user

    def login(self, name: str) -> User:
        if not name.strip():
            raise ValidationError("Please enter a name.")
        self.dispatch(Login(name))
        assert self.state.current_user is not None
        return self.state.current_user

    def logout(self) -> None:
        self.dispatch(Logout())

    def add_favourite(self, item: CartItem) -> None:
        user = self.state.current_user
        if user is None or user.is_guest:
            raise ValidationError("Register an account to save favourites.")
        favourite = replace(
            item,
            id=f"fav-{uuid4().hex[:12]}",
            quantity=1,
            final_price=item_unit_price(item),
            is_completed=False,
        )
        self.dispatch(AddFavourite(favourite))

    def remove_favourite(self, item_id: str) -> None:
        self.dispatch(RemoveFavourite(item_id))

    def update_user_role(self, user_id: str, role: UserRole) -> None:
        user = self.state.current_user
        if user is not None and user.id == user_id:
            raise ValidationError("You cannot change your own role.")
        self.dispatch(UpdateUserRole(user_id, role))

    def complete_tutorial(self) -> None:
        self.dispatch(CompleteTutorial())

    def submit_feedback(self, rating: int, message: str = "") -> None:
        if not 1 <= rating <= 5:
            raise ValidationError("Please choose a rating from 1 to 5.")
        self.dispatch(SubmitFeedback(rating=rating, message=message))

    def set_theme(self, theme: str) -> None:
        self.dispatch(SetTheme(theme))

    def add_discount(self, code: str, type: DiscountType, value: float) -> Discount:
        code = code.strip().upper()
        if not code:
            raise ValidationError("Please enter a discount code.")
        if any(discount.code.upper() == code for discount in self.state.discounts):
            raise ValidationError(f"The code '{code}' already exists.")
        if value <= 0:
            raise ValidationError("The discount value must be greater than zero.")
        if type is DiscountType.PERCENTAGE and value > 100:
            raise ValidationError("A percentage discount cannot exceed 100.")
        discount = Discount(id=f"disc-{uuid4().hex[:12]}", code=code, type=type, value=value)
        self.dispatch(AddDiscount(discount))
        logger.info("discount_added code=%s type=%s value=%s", code, type.value, value)
        return discount

    def write_tutorial_steps(self, steps: tuple[TutorialStep, ...]) -> None:
        try:
            self.gateway.write_tutorial_steps(steps)
        except PermissionDeniedError as exc:
            self._report_permission(exc)
            return
        self.dispatch(SetTutorialSteps(steps))

