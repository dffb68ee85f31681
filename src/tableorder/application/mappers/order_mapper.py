from __future__ import annotations

from tableorder.application.dto.responses import OrderLineResponse, OrderResponse
from tableorder.application.mappers.money_mapper import to_money_response
from tableorder.domain.order.entities import Order


def to_order_response(order: Order) -> OrderResponse:
    return OrderResponse(
        orderId=str(order.order_id),
        restaurantId=str(order.restaurant_id),
        tableId=str(order.table_id),
        status=order.status.value,
        editable=order.is_editable,
        lines=[
            OrderLineResponse(
                lineId=str(line.line_id),
                itemId=str(line.item_id) if line.item_id is not None else None,
                name=line.name,
                quantity=line.quantity,
                unitPrice=to_money_response(line.unit_price),
                lineTotal=to_money_response(line.line_total),
                notes=line.notes,
            )
            for line in order.lines
        ],
        total=to_money_response(order.total),
        version=order.version,
        createdAt=order.created_at,
        updatedAt=order.updated_at,
    )
