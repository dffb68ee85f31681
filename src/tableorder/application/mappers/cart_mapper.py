from __future__ import annotations

from tableorder.application.cart import CartManager
from tableorder.application.dto.responses import CartLineResponse, CartResponse
from tableorder.application.mappers.money_mapper import to_money_response


def to_cart_response(manager: CartManager) -> CartResponse:
    cart = manager.cart
    return CartResponse(
        restaurantId=str(manager.key.tenant_id),
        tableId=str(manager.key.table_id),
        lines=[
            CartLineResponse(
                menuItemId=str(line.menu_item_id),
                name=line.name,
                unitPrice=to_money_response(line.unit_price),
                quantity=line.quantity,
                notes=line.notes,
                lineTotal=to_money_response(line.line_total),
            )
            for line in cart.lines
        ],
        total=to_money_response(manager.total()),
        count=manager.count(),
        orderId=str(cart.order_id) if cart.order_id else None,
    )
