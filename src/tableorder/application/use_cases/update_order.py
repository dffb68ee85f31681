from __future__ import annotations

import hmac
import logging
from datetime import datetime, timezone

from tableorder.application.callers import Caller
from tableorder.application.dto.requests import UpdateOrderRequest
from tableorder.application.dto.responses import OrderResponse
from tableorder.application.errors import (
    AuthorizationError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from tableorder.application.mappers.order_mapper import to_order_response
from tableorder.application.metrics.order_lifecycle import record_conflict, record_line_replacement
from tableorder.application.ports.publisher import EventPublisher
from tableorder.application.ports.repositories import (
    MenuRepository,
    OptimisticConcurrencyError,
    OrderRepository,
)
from tableorder.application.table_sessions import hash_session_token
from tableorder.application.use_cases.context import TraceContext
from tableorder.application.use_cases.lookups import load_menu, resolve_order_lines
from tableorder.application.use_cases.notify import publish_order_change
from tableorder.domain.common.ids import OrderId
from tableorder.domain.order.entities import Order, OrderNotEditableError
from tableorder.domain.order.events import OrderLinesReplaced

logger = logging.getLogger(__name__)


def can_edit_order(order: Order, caller: Caller) -> bool:
    """Admins of the tenant, or the customer session that placed the order."""
    if caller.has_restaurant_access(order.restaurant_id):
        return True
    session = caller.session_for(order.restaurant_id, order.table_id)
    if session is None or order.session_token_hash is None:
        return False
    return hmac.compare_digest(hash_session_token(session.token), order.session_token_hash)


class UpdateOrder:
    def __init__(
        self,
        menu_repository: MenuRepository,
        order_repository: OrderRepository,
        publisher: EventPublisher,
    ) -> None:
        self._menu_repository = menu_repository
        self._order_repository = order_repository
        self._publisher = publisher

    def execute(
        self,
        order_id: OrderId,
        request_dto: UpdateOrderRequest,
        caller: Caller,
        trace_ctx: TraceContext,
    ) -> OrderResponse:
        order = self._order_repository.get(order_id)
        if order is None:
            raise NotFoundError(f"order {order_id} not found", resource="order")
        if not can_edit_order(order, caller):
            raise AuthorizationError(f"not allowed to edit order {order_id}")
        if not order.is_editable:
            raise InvalidStateError(
                f"order {order_id} cannot be edited in status={order.status.value}",
                status=order.status.value,
            )
        expected_version = request_dto.expected_version
        if expected_version is not None and expected_version != order.version:
            record_conflict(operation="update_order")
            raise ConflictError(
                f"order {order_id} version conflict",
                current_version=order.version,
            )
        if not request_dto.lines:
            raise ValidationError("order must contain at least one line")

        menu = load_menu(self._menu_repository, order.restaurant_id)
        order_lines = resolve_order_lines(menu, request_dto.lines)
        now = datetime.now(timezone.utc)
        try:
            updated = order.replace_lines(order_lines, now)
        except OrderNotEditableError as exc:
            raise InvalidStateError(str(exc), status=order.status.value) from exc

        try:
            persisted = self._order_repository.replace_lines_with_version(
                updated,
                expected_version=order.version,
            )
        except OptimisticConcurrencyError:
            record_conflict(operation="update_order")
            current = self._order_repository.get(order_id)
            if current is None:
                raise NotFoundError(f"order {order_id} not found", resource="order")
            if not current.is_editable:
                raise InvalidStateError(
                    f"order {order_id} cannot be edited in status={current.status.value}",
                    status=current.status.value,
                )
            raise ConflictError(
                f"order {order_id} line update conflict",
                current_version=current.version,
            )

        event = OrderLinesReplaced(
            order_id=persisted.order_id,
            restaurant_id=persisted.restaurant_id,
            table_id=persisted.table_id,
            total=persisted.total,
            version=persisted.version,
            occurred_at=now,
        )
        logger.info(
            "order_lines_replaced",
            extra={
                "order_id": str(event.order_id),
                "version": event.version,
                "total_cents": event.total.amount_cents,
            },
        )
        record_line_replacement(restaurant_id=str(persisted.restaurant_id))
        publish_order_change(
            self._publisher,
            event_type="order.updated",
            order=persisted,
            occurred_at=event.occurred_at,
            trace_ctx=trace_ctx,
        )
        return to_order_response(persisted)
