from __future__ import annotations

import logging
from datetime import datetime, timezone

from tableorder.application.callers import Caller
from tableorder.application.dto.requests import SetOrderStatusRequest
from tableorder.application.dto.responses import OrderResponse
from tableorder.application.errors import ConflictError, InvalidStateError, NotFoundError
from tableorder.application.mappers.order_mapper import to_order_response
from tableorder.application.metrics.order_lifecycle import (
    record_conflict,
    record_order_status,
    record_time_to_accept,
    record_transition,
)
from tableorder.application.ports.publisher import EventPublisher
from tableorder.application.ports.repositories import OptimisticConcurrencyError, OrderRepository
from tableorder.application.use_cases.context import TraceContext
from tableorder.application.use_cases.notify import publish_order_change
from tableorder.domain.common.ids import OrderId
from tableorder.domain.order.entities import OrderStatus, OrderTransitionError
from tableorder.domain.order.events import OrderStatusChanged

logger = logging.getLogger(__name__)


class SetOrderStatus:
    def __init__(self, order_repository: OrderRepository, publisher: EventPublisher) -> None:
        self._order_repository = order_repository
        self._publisher = publisher

    def execute(
        self,
        order_id: OrderId,
        request_dto: SetOrderStatusRequest,
        caller: Caller,
        trace_ctx: TraceContext,
    ) -> OrderResponse:
        order = self._order_repository.get(order_id)
        if order is None:
            raise NotFoundError(f"order {order_id} not found", resource="order")
        caller.require_restaurant_access(order.restaurant_id)

        new_status = request_dto.status
        expected_version = request_dto.expected_version
        if expected_version is not None and expected_version != order.version:
            record_conflict(operation="set_status")
            raise ConflictError(
                f"order {order_id} version conflict",
                current_version=order.version,
            )
        if order.status == new_status:
            return to_order_response(order)

        now = datetime.now(timezone.utc)
        try:
            transitioned = order.transition_to(new_status, now)
        except OrderTransitionError as exc:
            raise InvalidStateError(str(exc), status=order.status.value) from exc

        try:
            persisted = self._order_repository.update_status_with_version(
                order_id=order.order_id,
                new_status=transitioned.status,
                expected_version=order.version,
                updated_at=transitioned.updated_at,
            )
        except OptimisticConcurrencyError:
            record_conflict(operation="set_status")
            current = self._order_repository.get(order_id)
            if current is None:
                raise NotFoundError(f"order {order_id} not found", resource="order")
            if current.status == new_status:
                return to_order_response(current)
            raise ConflictError(
                f"order {order_id} status update conflict",
                current_version=current.version,
            )

        event = OrderStatusChanged(
            order_id=persisted.order_id,
            restaurant_id=persisted.restaurant_id,
            table_id=persisted.table_id,
            from_status=order.status,
            to_status=persisted.status,
            occurred_at=now,
        )
        logger.info(
            "order_status_changed",
            extra={
                "order_id": str(event.order_id),
                "from_status": event.from_status.value,
                "to_status": event.to_status.value,
            },
        )
        record_transition(from_status=event.from_status, to_status=event.to_status)
        record_order_status(persisted)
        if event.to_status == OrderStatus.ACCEPTED:
            record_time_to_accept(persisted, now=event.occurred_at)
        publish_order_change(
            self._publisher,
            event_type="order.status_changed",
            order=persisted,
            occurred_at=event.occurred_at,
            trace_ctx=trace_ctx,
            previous_status=event.from_status.value,
        )
        return to_order_response(persisted)
