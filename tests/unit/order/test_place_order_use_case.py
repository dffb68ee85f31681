from __future__ import annotations

import sys
from dataclasses import replace
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from fakes import (
    RESTAURANT_ID,
    TABLE_UUID,
    TRACE,
    FakeMenuRepository,
    FakeOrderRepository,
    FakePublisher,
    FakeTableRepository,
    admin_caller,
    sample_menu,
    sample_table,
    session_issuer,
)

from tableorder.application.callers import ANONYMOUS, Caller
from tableorder.application.dto.requests import OrderLineRequest, PlaceOrderRequest
from tableorder.application.errors import NotFoundError, TransportError, ValidationError
from tableorder.application.table_sessions import hash_session_token
from tableorder.application.use_cases.place_order import PlaceOrder
from tableorder.domain.common.ids import RestaurantId, TableId
from tableorder.domain.order.entities import OrderStatus


def _use_case(
    menu_repository: FakeMenuRepository | None = None,
    order_repository: FakeOrderRepository | None = None,
    publisher: FakePublisher | None = None,
) -> PlaceOrder:
    return PlaceOrder(
        menu_repository=menu_repository or FakeMenuRepository(sample_menu()),
        table_repository=FakeTableRepository([sample_table()]),
        order_repository=order_repository or FakeOrderRepository(),
        publisher=publisher or FakePublisher(),
        session_issuer=session_issuer(),
    )


def _request() -> PlaceOrderRequest:
    return PlaceOrderRequest(
        lines=[
            OrderLineRequest(item_id="itm_001", quantity=2),
            OrderLineRequest(item_id="itm_002", quantity=1, notes="no ice"),
        ]
    )


def test_place_order_snapshots_lines_and_totals_12_50() -> None:
    menu_repository = FakeMenuRepository(sample_menu())
    orders = FakeOrderRepository()

    result = _use_case(menu_repository=menu_repository, order_repository=orders).execute(
        restaurant_id=RESTAURANT_ID,
        table_ref="tbl_001",
        request_dto=_request(),
        caller=ANONYMOUS,
        trace_ctx=TRACE,
    )

    assert len(orders.orders) == 1
    stored = orders.orders[result.order.orderId]
    assert stored.status == OrderStatus.PENDING
    assert stored.total.amount_cents == 1250
    assert result.order.total.amount == "12.50"
    assert [(line.name, line.unit_price.amount_cents) for line in stored.lines] == [
        ("Burger", 500),
        ("Lemonade", 250),
    ]

    renamed = replace(
        menu_repository.menu.items[0],
        name="Cheeseburger",
        price_money=replace(menu_repository.menu.items[0].price_money, amount_cents=900),
    )
    menu_repository.menu.items[0] = renamed
    assert orders.orders[result.order.orderId].lines[0].name == "Burger"
    assert orders.orders[result.order.orderId].lines[0].unit_price.amount_cents == 500


def test_place_order_issues_session_token_bound_to_order() -> None:
    orders = FakeOrderRepository()

    result = _use_case(order_repository=orders).execute(
        restaurant_id=RESTAURANT_ID,
        table_ref="tbl_001",
        request_dto=_request(),
        caller=ANONYMOUS,
        trace_ctx=TRACE,
    )

    assert result.sessionToken
    stored = orders.orders[result.order.orderId]
    assert stored.session_token_hash == hash_session_token(result.sessionToken)


def test_place_order_reuses_existing_table_session() -> None:
    session = session_issuer().issue(RESTAURANT_ID, TableId("tbl_001"))
    orders = FakeOrderRepository()

    result = _use_case(order_repository=orders).execute(
        restaurant_id=RESTAURANT_ID,
        table_ref=TABLE_UUID,
        request_dto=_request(),
        caller=Caller(table_session=session),
        trace_ctx=TRACE,
    )

    assert result.sessionToken == session.token
    assert result.order.tableId == "tbl_001"


def test_admin_placed_order_has_no_session_binding() -> None:
    orders = FakeOrderRepository()

    result = _use_case(order_repository=orders).execute(
        restaurant_id=RESTAURANT_ID,
        table_ref="tbl_001",
        request_dto=_request(),
        caller=admin_caller(),
        trace_ctx=TRACE,
    )

    assert result.sessionToken is None
    assert orders.orders[result.order.orderId].session_token_hash is None


def test_place_order_publishes_to_restaurant_and_order_channels() -> None:
    publisher = FakePublisher()

    result = _use_case(publisher=publisher).execute(
        restaurant_id=RESTAURANT_ID,
        table_ref="tbl_001",
        request_dto=_request(),
        caller=ANONYMOUS,
        trace_ctx=TRACE,
    )

    assert [call.channel for call in publisher.calls] == [
        "events:rst_001",
        f"orders:{result.order.orderId}",
    ]
    payload = publisher.calls[0].payload
    assert payload["event_type"] == "order.placed"
    assert payload["request_id"] == "req_test"
    assert payload["payload"]["totalMoney"]["amountCents"] == 1250


def test_publish_failure_does_not_fail_order() -> None:
    orders = FakeOrderRepository()

    result = _use_case(order_repository=orders, publisher=FakePublisher(fail=True)).execute(
        restaurant_id=RESTAURANT_ID,
        table_ref="tbl_001",
        request_dto=_request(),
        caller=ANONYMOUS,
        trace_ctx=TRACE,
    )

    assert result.order.orderId in orders.orders


def test_empty_cart_is_rejected_without_creating_order() -> None:
    orders = FakeOrderRepository()

    with pytest.raises(ValidationError):
        _use_case(order_repository=orders).execute(
            restaurant_id=RESTAURANT_ID,
            table_ref="tbl_001",
            request_dto=PlaceOrderRequest(lines=[]),
            caller=ANONYMOUS,
            trace_ctx=TRACE,
        )

    assert orders.orders == {}


def test_failed_line_insertion_leaves_no_orphan_order() -> None:
    orders = FakeOrderRepository()
    orders.fail_insert_lines = True
    before = orders.snapshot()
    publisher = FakePublisher()

    with pytest.raises(TransportError):
        _use_case(order_repository=orders, publisher=publisher).execute(
            restaurant_id=RESTAURANT_ID,
            table_ref="tbl_001",
            request_dto=_request(),
            caller=ANONYMOUS,
            trace_ctx=TRACE,
        )

    assert orders.snapshot() == before
    assert publisher.calls == []


def test_unavailable_item_is_rejected() -> None:
    with pytest.raises(ValidationError):
        _use_case().execute(
            restaurant_id=RESTAURANT_ID,
            table_ref="tbl_001",
            request_dto=PlaceOrderRequest(lines=[OrderLineRequest(item_id="itm_003", quantity=1)]),
            caller=ANONYMOUS,
            trace_ctx=TRACE,
        )


def test_unknown_item_is_not_found() -> None:
    with pytest.raises(NotFoundError):
        _use_case().execute(
            restaurant_id=RESTAURANT_ID,
            table_ref="tbl_001",
            request_dto=PlaceOrderRequest(lines=[OrderLineRequest(item_id="itm_404", quantity=1)]),
            caller=ANONYMOUS,
            trace_ctx=TRACE,
        )


def test_table_of_another_restaurant_is_rejected() -> None:
    use_case = PlaceOrder(
        menu_repository=FakeMenuRepository(sample_menu()),
        table_repository=FakeTableRepository(
            [sample_table(RestaurantId("rst_002"))],
            restaurants={"rst_001", "rst_002"},
        ),
        order_repository=FakeOrderRepository(),
        publisher=FakePublisher(),
        session_issuer=session_issuer(),
    )

    with pytest.raises(ValidationError):
        use_case.execute(
            restaurant_id=RESTAURANT_ID,
            table_ref="tbl_001",
            request_dto=_request(),
            caller=ANONYMOUS,
            trace_ctx=TRACE,
        )


def test_unknown_restaurant_is_not_found() -> None:
    with pytest.raises(NotFoundError):
        _use_case().execute(
            restaurant_id=RestaurantId("rst_404"),
            table_ref="tbl_001",
            request_dto=_request(),
            caller=ANONYMOUS,
            trace_ctx=TRACE,
        )
