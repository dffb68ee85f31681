from __future__ import annotations

from tableorder.application.callers import Caller
from tableorder.application.dto.responses import OrderListResponse
from tableorder.application.errors import ValidationError
from tableorder.application.mappers.order_mapper import to_order_response
from tableorder.application.ports.repositories import InvalidCursorError, OrderRepository
from tableorder.domain.common.ids import RestaurantId
from tableorder.domain.order.entities import OrderStatus

_STATUS_MAP: dict[str, OrderStatus | None] = {"all": None} | {
    status.value: status for status in OrderStatus
}


class ListOrders:
    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(
        self,
        restaurant_id: RestaurantId,
        caller: Caller,
        status: str = "all",
        limit: int = 50,
        cursor: str | None = None,
    ) -> OrderListResponse:
        caller.require_restaurant_access(restaurant_id)

        normalized_status = status.lower()
        if normalized_status not in _STATUS_MAP:
            raise ValidationError(f"invalid order status filter: {status}")
        if limit < 1 or limit > 200:
            raise ValidationError("limit must be between 1 and 200")

        try:
            orders, next_cursor = self._order_repository.list_for_restaurant(
                restaurant_id=restaurant_id,
                status=_STATUS_MAP[normalized_status],
                limit=limit,
                cursor=cursor,
            )
        except InvalidCursorError as exc:
            raise ValidationError("invalid cursor") from exc

        return OrderListResponse(
            orders=[to_order_response(order) for order in orders],
            nextCursor=next_cursor,
        )
