from __future__ import annotations

from tableorder.application.dto.responses import OrderResponse
from tableorder.application.errors import NotFoundError
from tableorder.application.mappers.order_mapper import to_order_response
from tableorder.application.ports.repositories import OrderRepository
from tableorder.domain.common.ids import OrderId


class GetOrder:
    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(self, order_id: OrderId) -> OrderResponse:
        order = self._order_repository.get(order_id)
        if order is None:
            raise NotFoundError(f"order {order_id} not found", resource="order")
        return to_order_response(order)
