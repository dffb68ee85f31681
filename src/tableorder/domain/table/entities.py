from __future__ import annotations

from dataclasses import dataclass

from tableorder.domain.common.ids import RestaurantId, TableId


@dataclass(frozen=True)
class Table:
    table_id: TableId
    restaurant_id: RestaurantId
    name: str
    table_uuid: str

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("name must be non-empty")

    def belongs_to(self, restaurant_id: RestaurantId) -> bool:
        return str(self.restaurant_id) == str(restaurant_id)

    def ensure_belongs_to(self, restaurant_id: RestaurantId) -> None:
        if not self.belongs_to(restaurant_id):
            raise TableOwnershipError(
                f"table {self.table_id} does not belong to restaurant {restaurant_id}"
            )


class TableOwnershipError(Exception):
    pass
