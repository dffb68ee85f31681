from __future__ import annotations

from dataclasses import dataclass, field

from tableorder.domain.common.ids import CategoryId, MenuItemId, RestaurantId
from tableorder.domain.common.money import Money


@dataclass(frozen=True)
class MenuItem:
    item_id: MenuItemId
    name: str
    description: str | None
    price_money: Money
    is_available: bool
    category_id: CategoryId | None = None
    position: int = 0

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("name must be non-empty")


@dataclass(frozen=True)
class Category:
    category_id: CategoryId
    name: str
    position: int = 0


@dataclass(frozen=True)
class Menu:
    restaurant_id: RestaurantId
    currency: str
    categories: list[Category] = field(default_factory=list)
    items: list[MenuItem] = field(default_factory=list)

    def item(self, item_id: str) -> MenuItem | None:
        for item in self.items:
            if str(item.item_id) == item_id:
                return item
        return None

    def grouped(self) -> tuple[list[tuple[Category, list[MenuItem]]], list[MenuItem]]:
        """Items grouped under their category, plus items without one.

        Items pointing at a category that no longer exists are treated as
        uncategorized, matching the ``ON DELETE SET NULL`` detach.
        """
        known = {str(category.category_id) for category in self.categories}
        groups = [
            (
                category,
                [item for item in self.items if item.category_id == category.category_id],
            )
            for category in sorted(self.categories, key=lambda c: c.position)
        ]
        uncategorized = [
            item
            for item in self.items
            if item.category_id is None or str(item.category_id) not in known
        ]
        return groups, uncategorized
