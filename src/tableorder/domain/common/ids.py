from __future__ import annotations

from typing import NewType

RestaurantId = NewType("RestaurantId", str)
CategoryId = NewType("CategoryId", str)
MenuItemId = NewType("MenuItemId", str)
TableId = NewType("TableId", str)
OrderId = NewType("OrderId", str)
OrderLineId = NewType("OrderLineId", str)
UserId = NewType("UserId", str)
