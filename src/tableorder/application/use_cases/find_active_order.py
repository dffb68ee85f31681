from __future__ import annotations

from tableorder.application.dto.responses import ActiveOrderResponse
from tableorder.application.mappers.order_mapper import to_order_response
from tableorder.application.ports.repositories import OrderRepository, TableRepository
from tableorder.application.use_cases.lookups import load_table
from tableorder.domain.common.ids import RestaurantId
from tableorder.domain.order.entities import Order


class FindActiveOrder:
    """Most recent pending order of a table session, if there is one."""

    def __init__(
        self,
        table_repository: TableRepository,
        order_repository: OrderRepository,
    ) -> None:
        self._table_repository = table_repository
        self._order_repository = order_repository

    def find(self, restaurant_id: RestaurantId, table_ref: str) -> Order | None:
        table = load_table(self._table_repository, restaurant_id, table_ref)
        return self._order_repository.find_latest_pending(
            restaurant_id=restaurant_id,
            table_id=table.table_id,
        )

    def execute(self, restaurant_id: RestaurantId, table_ref: str) -> ActiveOrderResponse:
        order = self.find(restaurant_id, table_ref)
        return ActiveOrderResponse(order=to_order_response(order) if order else None)
