from __future__ import annotations

from datetime import datetime
from typing import Protocol

from tableorder.domain.common.ids import OrderId, RestaurantId, TableId, UserId
from tableorder.domain.menu.entities import Menu
from tableorder.domain.order.entities import Order, OrderLine, OrderStatus
from tableorder.domain.table.entities import Table


class MenuRepository(Protocol):
    def get_menu_by_restaurant_id(self, restaurant_id: RestaurantId) -> Menu | None: ...


class TableRepository(Protocol):
    def get(self, table_ref: str) -> Table | None: ...

    def restaurant_exists(self, restaurant_id: RestaurantId) -> bool: ...


class OrderRepository(Protocol):
    def create(self, order: Order) -> None: ...

    def insert_lines(self, order_id: OrderId, lines: list[OrderLine]) -> None: ...

    def delete(self, order_id: OrderId) -> None: ...

    def get(self, order_id: OrderId) -> Order | None: ...

    def find_latest_pending(
        self,
        restaurant_id: RestaurantId,
        table_id: TableId,
    ) -> Order | None: ...

    def replace_lines_with_version(self, order: Order, expected_version: int) -> Order: ...

    def update_status_with_version(
        self,
        order_id: OrderId,
        new_status: OrderStatus,
        expected_version: int,
        updated_at: datetime,
    ) -> Order: ...

    def list_for_restaurant(
        self,
        restaurant_id: RestaurantId,
        status: OrderStatus | None,
        limit: int,
        cursor: str | None,
    ) -> tuple[list[Order], str | None]: ...


class AccessRepository(Protocol):
    def restaurant_ids_for_user(self, user_id: UserId) -> frozenset[str]: ...

    def is_super_admin(self, user_id: UserId) -> bool: ...


class OptimisticConcurrencyError(Exception):
    pass


class InvalidCursorError(Exception):
    pass
