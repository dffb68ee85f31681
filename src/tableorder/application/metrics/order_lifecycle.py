from __future__ import annotations

from datetime import datetime, timezone

from prometheus_client import Counter, Histogram

from tableorder.domain.order.entities import Order, OrderStatus

ORDERS_TOTAL = Counter(
    "tableorder_orders_total",
    "Total number of orders observed by status.",
    ["restaurant_id", "status"],
)

ORDER_TRANSITION_TOTAL = Counter(
    "tableorder_order_transition_total",
    "Total number of order lifecycle transitions.",
    ["from", "to"],
)

ORDER_TIME_TO_ACCEPT_SECONDS = Histogram(
    "tableorder_order_time_to_accept_seconds",
    "Time between order placement and acceptance.",
)

ORDER_LINE_REPLACEMENTS_TOTAL = Counter(
    "tableorder_order_line_replacements_total",
    "Total number of customer edits replacing the lines of a pending order.",
    ["restaurant_id"],
)

ORDER_CLEANUP_TOTAL = Counter(
    "tableorder_order_cleanup_total",
    "Total number of orders removed after their line items failed to persist.",
    ["restaurant_id", "outcome"],
)

ORDER_CONFLICTS_TOTAL = Counter(
    "tableorder_order_conflicts_total",
    "Total number of order updates rejected by the version check.",
    ["operation"],
)


def record_order_status(order: Order) -> None:
    ORDERS_TOTAL.labels(
        restaurant_id=str(order.restaurant_id),
        status=order.status.value,
    ).inc()


def record_transition(from_status: OrderStatus, to_status: OrderStatus) -> None:
    ORDER_TRANSITION_TOTAL.labels(**{"from": from_status.value, "to": to_status.value}).inc()


def record_time_to_accept(order: Order, now: datetime | None = None) -> None:
    current = now or datetime.now(timezone.utc)
    ORDER_TIME_TO_ACCEPT_SECONDS.observe(max((current - order.created_at).total_seconds(), 0.0))


def record_line_replacement(restaurant_id: str) -> None:
    ORDER_LINE_REPLACEMENTS_TOTAL.labels(restaurant_id=restaurant_id).inc()


def record_order_cleanup(restaurant_id: str, outcome: str) -> None:
    ORDER_CLEANUP_TOTAL.labels(restaurant_id=restaurant_id, outcome=outcome).inc()


def record_conflict(operation: str) -> None:
    ORDER_CONFLICTS_TOTAL.labels(operation=operation).inc()
