from __future__ import annotations

from tableorder.application.dto.responses import (
    MenuCategoryResponse,
    MenuItemResponse,
    MenuResponse,
)
from tableorder.application.mappers.money_mapper import to_money_response
from tableorder.domain.menu.entities import Menu, MenuItem


def _to_item_response(item: MenuItem) -> MenuItemResponse:
    return MenuItemResponse(
        itemId=str(item.item_id),
        name=item.name,
        description=item.description,
        priceMoney=to_money_response(item.price_money),
        isAvailable=item.is_available,
        categoryId=str(item.category_id) if item.category_id else None,
        position=item.position,
    )


def to_menu_response(menu: Menu) -> MenuResponse:
    groups, uncategorized = menu.grouped()
    return MenuResponse(
        restaurantId=str(menu.restaurant_id),
        currency=menu.currency,
        categories=[
            MenuCategoryResponse(
                categoryId=str(category.category_id),
                name=category.name,
                position=category.position,
                items=[_to_item_response(item) for item in items],
            )
            for category, items in groups
        ],
        uncategorizedItems=[_to_item_response(item) for item in uncategorized],
    )
