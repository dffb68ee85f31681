from __future__ import annotations

import logging
from datetime import datetime

from tableorder.application.mappers.event_envelope import serialize_order_event
from tableorder.application.ports.publisher import EventPublisher
from tableorder.application.use_cases.context import TraceContext
from tableorder.domain.order.entities import Order

logger = logging.getLogger(__name__)


def restaurant_channel(restaurant_id: str) -> str:
    return f"events:{restaurant_id}"


def order_channel(order_id: str) -> str:
    return f"orders:{order_id}"


def publish_order_change(
    publisher: EventPublisher,
    *,
    event_type: str,
    order: Order,
    occurred_at: datetime,
    trace_ctx: TraceContext,
    previous_status: str | None = None,
) -> None:
    """Broadcast an order change to the tenant feed and the order's own feed.

    Delivery is best effort: a failed publish is logged and never surfaces
    to the caller.
    """
    message = serialize_order_event(
        event_type=event_type,
        occurred_at=occurred_at,
        order=order,
        trace_id=trace_ctx.trace_id,
        request_id=trace_ctx.request_id,
        previous_status=previous_status,
    )
    for channel in (
        restaurant_channel(str(order.restaurant_id)),
        order_channel(str(order.order_id)),
    ):
        try:
            publisher.publish(channel=channel, message=message)
        except Exception:
            logger.warning(
                "event_publish_failed",
                extra={"channel": channel, "event_type": event_type},
                exc_info=True,
            )
