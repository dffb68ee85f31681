from __future__ import annotations

from tableorder.application.callers import Caller, TableSession
from tableorder.application.cart import DEFAULT_CART_TTL_SECONDS, CartKey, CartManager
from tableorder.application.dto.responses import CartResponse
from tableorder.application.errors import (
    AuthorizationError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from tableorder.application.mappers.cart_mapper import to_cart_response
from tableorder.application.ports.cache import KeyValueStore
from tableorder.application.ports.repositories import (
    MenuRepository,
    OrderRepository,
    TableRepository,
)
from tableorder.application.use_cases.lookups import load_menu, load_table
from tableorder.domain.common.ids import RestaurantId
from tableorder.domain.menu.entities import Menu
from tableorder.domain.table.entities import Table


class CartContext:
    """Opens the cart of a table session after validating the table."""

    def __init__(
        self,
        menu_repository: MenuRepository,
        table_repository: TableRepository,
        store: KeyValueStore,
        ttl_seconds: int = DEFAULT_CART_TTL_SECONDS,
    ) -> None:
        self._menu_repository = menu_repository
        self._table_repository = table_repository
        self._store = store
        self._ttl_seconds = ttl_seconds

    def resolve(self, restaurant_id: RestaurantId, table_ref: str) -> tuple[Table, Menu]:
        table = load_table(self._table_repository, restaurant_id, table_ref)
        menu = load_menu(self._menu_repository, restaurant_id)
        return table, menu

    def manager_for(self, session: TableSession, menu: Menu) -> CartManager:
        return CartManager(
            store=self._store,
            key=CartKey.for_session(session),
            currency=menu.currency,
            ttl_seconds=self._ttl_seconds,
        )

    def open(
        self,
        restaurant_id: RestaurantId,
        table_ref: str,
        caller: Caller,
    ) -> tuple[CartManager, Menu, Table]:
        table, menu = self.resolve(restaurant_id, table_ref)
        session = caller.session_for(restaurant_id, table.table_id)
        if session is None:
            raise AuthorizationError("a table session is required to use the cart")
        return self.manager_for(session, menu), menu, table


def ensure_cart_unlocked(order_repository: OrderRepository, manager: CartManager) -> None:
    """Reject edits to a cart whose submitted order the restaurant has already locked."""
    order_id = manager.cart.order_id
    if order_id is None:
        return
    order = order_repository.get(order_id)
    if order is not None and not order.is_editable:
        raise InvalidStateError(
            f"order {order_id} can no longer be changed; reload the table session",
            status=order.status.value,
        )


class ModifyCart:
    def __init__(self, context: CartContext, order_repository: OrderRepository) -> None:
        self._context = context
        self._order_repository = order_repository

    def get(self, restaurant_id: RestaurantId, table_ref: str, caller: Caller) -> CartResponse:
        manager, _, _ = self._context.open(restaurant_id, table_ref, caller)
        return to_cart_response(manager)

    def add_item(
        self,
        restaurant_id: RestaurantId,
        table_ref: str,
        caller: Caller,
        item_id: str,
    ) -> CartResponse:
        manager, menu, _ = self._context.open(restaurant_id, table_ref, caller)
        menu_item = menu.item(item_id)
        if menu_item is None:
            raise NotFoundError(f"menu item {item_id} does not exist", resource="menu_item")
        if not menu_item.is_available:
            raise ValidationError(
                f"menu item {item_id} is unavailable",
                details={"itemId": item_id},
            )
        ensure_cart_unlocked(self._order_repository, manager)
        manager.add_item(menu_item)
        return to_cart_response(manager)

    def update_item(
        self,
        restaurant_id: RestaurantId,
        table_ref: str,
        caller: Caller,
        item_id: str,
        delta: int | None = None,
        notes: str | None = None,
    ) -> CartResponse:
        if delta is None and notes is None:
            raise ValidationError("either delta or notes must be provided")
        manager, _, _ = self._context.open(restaurant_id, table_ref, caller)
        ensure_cart_unlocked(self._order_repository, manager)
        if delta is not None:
            manager.change_quantity(item_id, delta)
        if notes is not None:
            manager.update_notes(item_id, notes)
        return to_cart_response(manager)

    def remove_item(
        self,
        restaurant_id: RestaurantId,
        table_ref: str,
        caller: Caller,
        item_id: str,
    ) -> CartResponse:
        manager, _, _ = self._context.open(restaurant_id, table_ref, caller)
        ensure_cart_unlocked(self._order_repository, manager)
        manager.remove_item(item_id)
        return to_cart_response(manager)

    def clear(self, restaurant_id: RestaurantId, table_ref: str, caller: Caller) -> CartResponse:
        manager, _, _ = self._context.open(restaurant_id, table_ref, caller)
        manager.clear()
        return to_cart_response(manager)
