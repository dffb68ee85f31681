from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from fakes import (
    OTHER_RESTAURANT_ID,
    RESTAURANT_ID,
    TABLE_ID,
    TRACE,
    FakeOrderRepository,
    FakePublisher,
    admin_caller,
    session_issuer,
    usd,
)

from tableorder.application.callers import ANONYMOUS, Caller
from tableorder.application.dto.requests import SetOrderStatusRequest
from tableorder.application.errors import (
    AuthorizationError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
)
from tableorder.application.use_cases.set_order_status import SetOrderStatus
from tableorder.domain.common.ids import MenuItemId, OrderId, OrderLineId
from tableorder.domain.order.entities import OrderStatus, create_order_line, create_pending_order


def _seed(orders: FakeOrderRepository, order_id: str = "ord_001") -> OrderId:
    order = create_pending_order(
        order_id=OrderId(order_id),
        restaurant_id=RESTAURANT_ID,
        table_id=TABLE_ID,
        lines=[
            create_order_line(
                line_id=OrderLineId(f"orl_{order_id}"),
                item_id=MenuItemId("itm_001"),
                name="Burger",
                quantity=1,
                unit_price=usd(500),
                notes=None,
            )
        ],
        now=datetime.now(timezone.utc),
    )
    orders.add(order)
    return order.order_id


def _set(
    orders: FakeOrderRepository,
    order_id: OrderId,
    status: OrderStatus,
    caller: Caller | None = None,
    expected_version: int | None = None,
    publisher: FakePublisher | None = None,
):
    return SetOrderStatus(order_repository=orders, publisher=publisher or FakePublisher()).execute(
        order_id=order_id,
        request_dto=SetOrderStatusRequest(status=status, expected_version=expected_version),
        caller=caller or admin_caller(),
        trace_ctx=TRACE,
    )


def test_admin_moves_order_forward_and_event_is_published() -> None:
    orders = FakeOrderRepository()
    order_id = _seed(orders)
    publisher = FakePublisher()

    response = _set(orders, order_id, OrderStatus.ACCEPTED, publisher=publisher)

    assert response.status == "accepted"
    assert response.editable is False
    assert response.version == 2
    payload = publisher.calls[0].payload
    assert payload["event_type"] == "order.status_changed"
    assert payload["payload"]["previousStatus"] == "pending"
    assert payload["payload"]["status"] == "accepted"


def test_status_write_carries_the_transitioned_order() -> None:
    orders = FakeOrderRepository()
    order_id = _seed(orders)
    created = orders.get(order_id)

    response = _set(orders, order_id, OrderStatus.ACCEPTED)

    [(written_id, new_status, expected_version, updated_at)] = orders.status_writes
    assert written_id == order_id
    assert new_status == OrderStatus.ACCEPTED
    assert expected_version == created.version
    assert updated_at >= created.created_at
    assert response.updatedAt == updated_at
    assert response.version == created.version + 1


def test_same_status_is_idempotent() -> None:
    orders = FakeOrderRepository()
    order_id = _seed(orders)
    publisher = FakePublisher()

    response = _set(orders, order_id, OrderStatus.PENDING, publisher=publisher)

    assert response.version == 1
    assert publisher.calls == []


def test_cancelled_order_cannot_be_resurrected() -> None:
    orders = FakeOrderRepository()
    order_id = _seed(orders)
    _set(orders, order_id, OrderStatus.CANCELLED)

    with pytest.raises(InvalidStateError):
        _set(orders, order_id, OrderStatus.PENDING)

    assert orders.orders[str(order_id)].status == OrderStatus.CANCELLED


def test_customer_session_cannot_change_status() -> None:
    orders = FakeOrderRepository()
    order_id = _seed(orders)
    customer = Caller(table_session=session_issuer().issue(RESTAURANT_ID, TABLE_ID))

    with pytest.raises(AuthorizationError):
        _set(orders, order_id, OrderStatus.ACCEPTED, caller=customer)
    with pytest.raises(AuthorizationError):
        _set(orders, order_id, OrderStatus.ACCEPTED, caller=ANONYMOUS)


def test_admin_of_other_restaurant_is_forbidden() -> None:
    orders = FakeOrderRepository()
    order_id = _seed(orders)

    with pytest.raises(AuthorizationError):
        _set(orders, order_id, OrderStatus.ACCEPTED, caller=admin_caller(OTHER_RESTAURANT_ID))


def test_stale_expected_version_conflicts() -> None:
    orders = FakeOrderRepository()
    order_id = _seed(orders)
    _set(orders, order_id, OrderStatus.ACCEPTED)

    with pytest.raises(ConflictError):
        _set(orders, order_id, OrderStatus.READY, expected_version=1)


def test_concurrent_writer_wins_race() -> None:
    orders = FakeOrderRepository()
    order_id = _seed(orders)
    orders.before_write.append(str(order_id))

    with pytest.raises(ConflictError):
        _set(orders, order_id, OrderStatus.ACCEPTED)


def test_unknown_order_is_not_found() -> None:
    with pytest.raises(NotFoundError):
        _set(FakeOrderRepository(), OrderId("ord_404"), OrderStatus.ACCEPTED)
