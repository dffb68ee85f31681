from __future__ import annotations

import logging
from dataclasses import replace

from tableorder.application.callers import Caller
from tableorder.application.cart import CartManager
from tableorder.application.dto.requests import (
    OrderLineRequest,
    PlaceOrderRequest,
    SubmitCartRequest,
    UpdateOrderRequest,
)
from tableorder.application.dto.responses import PlaceOrderResponse, TableSessionResponse
from tableorder.application.errors import ValidationError
from tableorder.application.mappers.cart_mapper import to_cart_response
from tableorder.application.mappers.order_mapper import to_order_response
from tableorder.application.mappers.table_mapper import to_table_response
from tableorder.application.ports.repositories import OrderRepository
from tableorder.application.table_sessions import TableSessionIssuer
from tableorder.application.use_cases.context import TraceContext
from tableorder.application.use_cases.modify_cart import CartContext, ensure_cart_unlocked
from tableorder.application.use_cases.place_order import PlaceOrder
from tableorder.application.use_cases.update_order import UpdateOrder, can_edit_order
from tableorder.domain.common.ids import OrderId, RestaurantId
from tableorder.domain.order.entities import Order

logger = logging.getLogger(__name__)


def _own_pending_order(
    order_repository: OrderRepository,
    manager: CartManager,
    caller: Caller,
) -> Order | None:
    """The pending order this session may still edit, preferring the one its cart was submitted as."""
    submitted_id = manager.cart.order_id
    if submitted_id is not None:
        submitted = order_repository.get(submitted_id)
        if submitted is not None and submitted.is_editable and can_edit_order(submitted, caller):
            return submitted
    latest = order_repository.find_latest_pending(
        restaurant_id=manager.key.tenant_id,
        table_id=manager.key.table_id,
    )
    if latest is not None and can_edit_order(latest, caller):
        return latest
    return None


class LoadTableSession:
    """Page-load flow of the customer app.

    Drops a cart whose submitted order has been locked by the restaurant,
    then seeds an empty cart from the session's own pending order.
    """

    def __init__(
        self,
        cart_context: CartContext,
        order_repository: OrderRepository,
        session_issuer: TableSessionIssuer,
    ) -> None:
        self._cart_context = cart_context
        self._order_repository = order_repository
        self._session_issuer = session_issuer

    def execute(
        self,
        restaurant_id: RestaurantId,
        table_ref: str,
        caller: Caller,
    ) -> TableSessionResponse:
        table, menu = self._cart_context.resolve(restaurant_id, table_ref)
        session = caller.session_for(restaurant_id, table.table_id)
        if session is None:
            session = self._session_issuer.issue(restaurant_id, table.table_id)
            caller = replace(caller, table_session=session)
        manager = self._cart_context.manager_for(session, menu)

        locked = False
        submitted_order_id = manager.cart.order_id
        if submitted_order_id is not None:
            submitted = self._order_repository.get(submitted_order_id)
            locked = manager.sync_with_order_status(submitted)

        token = manager.guard.begin()
        active = _own_pending_order(self._order_repository, manager, caller)
        if active is not None:
            manager.reconcile_with_order(active.lines, order_id=active.order_id, token=token)

        logger.info(
            "table_session_loaded",
            extra={
                "restaurant_id": str(restaurant_id),
                "table_id": str(table.table_id),
                "has_active_order": active is not None,
                "order_locked": locked,
            },
        )
        return TableSessionResponse(
            table=to_table_response(table),
            cart=to_cart_response(manager),
            activeOrder=to_order_response(active) if active else None,
            orderLocked=locked,
            sessionToken=session.token,
        )


class SubmitCart:
    """Turns a session's cart into a new order or into the lines of its pending order."""

    def __init__(
        self,
        cart_context: CartContext,
        order_repository: OrderRepository,
        place_order: PlaceOrder,
        update_order: UpdateOrder,
    ) -> None:
        self._cart_context = cart_context
        self._order_repository = order_repository
        self._place_order = place_order
        self._update_order = update_order

    def execute(
        self,
        restaurant_id: RestaurantId,
        table_ref: str,
        request_dto: SubmitCartRequest,
        caller: Caller,
        trace_ctx: TraceContext,
    ) -> PlaceOrderResponse:
        manager, _, _ = self._cart_context.open(restaurant_id, table_ref, caller)
        ensure_cart_unlocked(self._order_repository, manager)
        if manager.cart.is_empty:
            raise ValidationError("cart is empty")

        table_id = manager.key.table_id
        lines = [
            OrderLineRequest(
                item_id=str(line.menu_item_id),
                quantity=line.quantity,
                notes=line.notes or None,
            )
            for line in manager.cart.lines
        ]

        active = _own_pending_order(self._order_repository, manager, caller)
        if active is not None:
            updated = self._update_order.execute(
                order_id=active.order_id,
                request_dto=UpdateOrderRequest(
                    lines=lines,
                    expected_version=request_dto.expected_version,
                ),
                caller=caller,
                trace_ctx=trace_ctx,
            )
            manager.mark_submitted(active.order_id)
            session = caller.session_for(restaurant_id, table_id)
            return PlaceOrderResponse(
                order=updated,
                sessionToken=session.token if session else None,
            )

        placed = self._place_order.execute(
            restaurant_id=restaurant_id,
            table_ref=str(table_id),
            request_dto=PlaceOrderRequest(lines=lines),
            caller=caller,
            trace_ctx=trace_ctx,
        )
        manager.mark_submitted(OrderId(placed.order.orderId))
        return placed
