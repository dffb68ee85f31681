from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from tableorder.domain.common.ids import OrderId, RestaurantId, TableId
from tableorder.domain.common.money import Money
from tableorder.domain.order.entities import OrderStatus


@dataclass(frozen=True)
class OrderPlaced:
    order_id: OrderId
    restaurant_id: RestaurantId
    table_id: TableId
    total: Money
    created_at: datetime


@dataclass(frozen=True)
class OrderLinesReplaced:
    order_id: OrderId
    restaurant_id: RestaurantId
    table_id: TableId
    total: Money
    version: int
    occurred_at: datetime


@dataclass(frozen=True)
class OrderStatusChanged:
    order_id: OrderId
    restaurant_id: RestaurantId
    table_id: TableId
    from_status: OrderStatus
    to_status: OrderStatus
    occurred_at: datetime
