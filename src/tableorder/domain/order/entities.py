from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

from tableorder.domain.common.ids import MenuItemId, OrderId, OrderLineId, RestaurantId, TableId
from tableorder.domain.common.money import Money


class OrderStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    PREPARING = "preparing"
    READY = "ready"
    SERVED = "served"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({OrderStatus.SERVED, OrderStatus.CANCELLED})

ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset(
        {
            OrderStatus.ACCEPTED,
            OrderStatus.PREPARING,
            OrderStatus.READY,
            OrderStatus.SERVED,
            OrderStatus.CANCELLED,
        }
    ),
    OrderStatus.ACCEPTED: frozenset(
        {OrderStatus.PREPARING, OrderStatus.READY, OrderStatus.SERVED, OrderStatus.CANCELLED}
    ),
    OrderStatus.PREPARING: frozenset(
        {OrderStatus.READY, OrderStatus.SERVED, OrderStatus.CANCELLED}
    ),
    OrderStatus.READY: frozenset({OrderStatus.SERVED, OrderStatus.CANCELLED}),
    OrderStatus.SERVED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


@dataclass(frozen=True)
class OrderLine:
    line_id: OrderLineId
    item_id: MenuItemId | None
    name: str
    quantity: int
    unit_price: Money
    line_total: Money
    notes: str | None

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError("quantity must be >= 1")
        if self.unit_price.currency != self.line_total.currency:
            raise ValueError("line_total currency must match unit_price currency")
        expected_total = self.unit_price.amount_cents * self.quantity
        if self.line_total.amount_cents != expected_total:
            raise ValueError("line_total must equal unit_price * quantity")


def create_order_line(
    line_id: OrderLineId,
    item_id: MenuItemId | None,
    name: str,
    quantity: int,
    unit_price: Money,
    notes: str | None,
) -> OrderLine:
    return OrderLine(
        line_id=line_id,
        item_id=item_id,
        name=name,
        quantity=quantity,
        unit_price=unit_price,
        line_total=unit_price.times(quantity),
        notes=notes or None,
    )


@dataclass(frozen=True)
class Order:
    order_id: OrderId
    restaurant_id: RestaurantId
    table_id: TableId
    status: OrderStatus
    lines: list[OrderLine]
    total: Money
    created_at: datetime
    updated_at: datetime | None = None
    version: int = 1
    session_token_hash: str | None = None

    def __post_init__(self) -> None:
        if self.version < 1:
            raise ValueError("version must be >= 1")
        if not self.lines:
            return
        line_currency = self.lines[0].line_total.currency
        if self.total.currency != line_currency:
            raise ValueError("order total currency must match line currency")
        expected_total = sum(line.line_total.amount_cents for line in self.lines)
        if self.total.amount_cents != expected_total:
            raise ValueError("order total must equal sum of line totals")

    @property
    def is_editable(self) -> bool:
        return self.status == OrderStatus.PENDING

    def ensure_editable(self) -> None:
        if not self.is_editable:
            raise OrderNotEditableError(
                f"order {self.order_id} cannot be edited in status={self.status.value}"
            )

    def can_transition_to(self, new_status: OrderStatus) -> bool:
        return new_status in ALLOWED_TRANSITIONS[self.status]

    def transition_to(self, new_status: OrderStatus, now: datetime) -> Order:
        if not self.can_transition_to(new_status):
            raise OrderTransitionError(
                f"cannot move order from status={self.status.value} to {new_status.value}"
            )
        return replace(self, status=new_status, updated_at=now, version=self.version + 1)

    def replace_lines(self, lines: list[OrderLine], now: datetime) -> Order:
        self.ensure_editable()
        if not lines:
            raise ValueError("order must contain at least one line")
        return replace(
            self,
            lines=list(lines),
            total=_sum_lines(lines),
            updated_at=now,
            version=self.version + 1,
        )


def create_pending_order(
    order_id: OrderId,
    restaurant_id: RestaurantId,
    table_id: TableId,
    lines: list[OrderLine],
    now: datetime,
    session_token_hash: str | None = None,
) -> Order:
    if not lines:
        raise ValueError("order must contain at least one line")

    return Order(
        order_id=order_id,
        restaurant_id=restaurant_id,
        table_id=table_id,
        status=OrderStatus.PENDING,
        lines=lines,
        total=_sum_lines(lines),
        created_at=now,
        updated_at=now,
        version=1,
        session_token_hash=session_token_hash,
    )


def _sum_lines(lines: list[OrderLine]) -> Money:
    currency = lines[0].line_total.currency
    return Money(
        amount_cents=sum(line.line_total.amount_cents for line in lines),
        currency=currency,
    )


class OrderTransitionError(Exception):
    pass


class OrderNotEditableError(Exception):
    pass
