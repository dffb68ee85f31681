from __future__ import annotations

import logging
from datetime import datetime, timezone
from uuid import uuid4

from tableorder.application.callers import Caller, TableSession
from tableorder.application.dto.requests import PlaceOrderRequest
from tableorder.application.dto.responses import PlaceOrderResponse
from tableorder.application.errors import TransportError, ValidationError
from tableorder.application.mappers.order_mapper import to_order_response
from tableorder.application.metrics.order_lifecycle import record_order_cleanup, record_order_status
from tableorder.application.ports.publisher import EventPublisher
from tableorder.application.ports.repositories import (
    MenuRepository,
    OrderRepository,
    TableRepository,
)
from tableorder.application.table_sessions import TableSessionIssuer, hash_session_token
from tableorder.application.use_cases.context import TraceContext
from tableorder.application.use_cases.lookups import load_menu, load_table, resolve_order_lines
from tableorder.application.use_cases.notify import publish_order_change
from tableorder.domain.common.ids import OrderId, RestaurantId
from tableorder.domain.order.entities import Order, create_pending_order
from tableorder.domain.order.events import OrderPlaced

logger = logging.getLogger(__name__)


class PlaceOrder:
    def __init__(
        self,
        menu_repository: MenuRepository,
        table_repository: TableRepository,
        order_repository: OrderRepository,
        publisher: EventPublisher,
        session_issuer: TableSessionIssuer,
    ) -> None:
        self._menu_repository = menu_repository
        self._table_repository = table_repository
        self._order_repository = order_repository
        self._publisher = publisher
        self._session_issuer = session_issuer

    def execute(
        self,
        restaurant_id: RestaurantId,
        table_ref: str,
        request_dto: PlaceOrderRequest,
        caller: Caller,
        trace_ctx: TraceContext,
    ) -> PlaceOrderResponse:
        if not request_dto.lines:
            raise ValidationError("order must contain at least one line")
        table = load_table(self._table_repository, restaurant_id, table_ref)
        menu = load_menu(self._menu_repository, restaurant_id)
        order_lines = resolve_order_lines(menu, request_dto.lines)

        now = datetime.now(timezone.utc)
        session: TableSession | None = caller.session_for(restaurant_id, table.table_id)
        if session is None and not caller.has_restaurant_access(restaurant_id):
            session = self._session_issuer.issue(restaurant_id, table.table_id, now=now)

        order = create_pending_order(
            order_id=OrderId(f"ord_{uuid4().hex[:12]}"),
            restaurant_id=restaurant_id,
            table_id=table.table_id,
            lines=order_lines,
            now=now,
            session_token_hash=hash_session_token(session.token) if session else None,
        )
        self._order_repository.create(order)
        try:
            self._order_repository.insert_lines(order.order_id, order.lines)
        except Exception as exc:
            self._discard(order)
            raise TransportError("failed to add order items") from exc

        event = OrderPlaced(
            order_id=order.order_id,
            restaurant_id=order.restaurant_id,
            table_id=order.table_id,
            total=order.total,
            created_at=order.created_at,
        )
        logger.info(
            "order_placed",
            extra={
                "order_id": str(event.order_id),
                "restaurant_id": str(event.restaurant_id),
                "table_id": str(event.table_id),
                "total_cents": event.total.amount_cents,
            },
        )
        record_order_status(order)
        publish_order_change(
            self._publisher,
            event_type="order.placed",
            order=order,
            occurred_at=event.created_at,
            trace_ctx=trace_ctx,
        )
        return PlaceOrderResponse(
            order=to_order_response(order),
            sessionToken=session.token if session else None,
        )

    def _discard(self, order: Order) -> None:
        try:
            self._order_repository.delete(order.order_id)
        except Exception:
            record_order_cleanup(restaurant_id=str(order.restaurant_id), outcome="failed")
            logger.exception(
                "order_cleanup_failed",
                extra={"order_id": str(order.order_id)},
            )
            return
        record_order_cleanup(restaurant_id=str(order.restaurant_id), outcome="removed")
        logger.warning(
            "order_cleanup_after_failed_lines",
            extra={"order_id": str(order.order_id)},
        )
