from __future__ import annotations

from uuid import uuid4

from tableorder.application.dto.requests import OrderLineRequest
from tableorder.application.errors import NotFoundError, ValidationError
from tableorder.application.ports.repositories import MenuRepository, TableRepository
from tableorder.domain.common.ids import OrderLineId, RestaurantId
from tableorder.domain.menu.entities import Menu
from tableorder.domain.order.entities import OrderLine, create_order_line
from tableorder.domain.table.entities import Table, TableOwnershipError


def load_table(
    table_repository: TableRepository,
    restaurant_id: RestaurantId,
    table_ref: str,
) -> Table:
    """Resolve a table by id or public identifier and check it belongs to the tenant."""
    if not restaurant_id or not table_ref:
        raise ValidationError("restaurant and table are required to order")
    if not table_repository.restaurant_exists(restaurant_id):
        raise NotFoundError(f"restaurant {restaurant_id} not found", resource="restaurant")

    table = table_repository.get(table_ref)
    if table is None:
        raise NotFoundError(f"table {table_ref} not found", resource="table")
    try:
        table.ensure_belongs_to(restaurant_id)
    except TableOwnershipError as exc:
        raise ValidationError(str(exc)) from exc
    return table


def load_menu(menu_repository: MenuRepository, restaurant_id: RestaurantId) -> Menu:
    menu = menu_repository.get_menu_by_restaurant_id(restaurant_id)
    if menu is None:
        raise NotFoundError(f"menu not found for restaurant_id={restaurant_id}", resource="menu")
    return menu


def resolve_order_lines(menu: Menu, request_lines: list[OrderLineRequest]) -> list[OrderLine]:
    """Snapshot name and price of every requested item from the live menu."""
    if not request_lines:
        raise ValidationError("order must contain at least one line")

    order_lines: list[OrderLine] = []
    for request_line in request_lines:
        if request_line.quantity < 1:
            raise ValidationError(
                "quantity must be >= 1",
                details={"itemId": request_line.item_id},
            )
        menu_item = menu.item(request_line.item_id)
        if menu_item is None:
            raise NotFoundError(
                f"menu item {request_line.item_id} does not exist",
                resource="menu_item",
            )
        if not menu_item.is_available:
            raise ValidationError(
                f"menu item {request_line.item_id} is unavailable",
                details={"itemId": request_line.item_id},
            )
        order_lines.append(
            create_order_line(
                line_id=OrderLineId(f"orl_{uuid4().hex[:12]}"),
                item_id=menu_item.item_id,
                name=menu_item.name,
                quantity=request_line.quantity,
                unit_price=menu_item.price_money,
                notes=request_line.notes,
            )
        )
    return order_lines
