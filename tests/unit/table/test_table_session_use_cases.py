from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from fakes import (
    RESTAURANT_ID,
    TABLE_ID,
    TABLE_UUID,
    TRACE,
    FakeMenuRepository,
    FakeOrderRepository,
    FakePublisher,
    FakeTableRepository,
    InMemoryKeyValueStore,
    admin_caller,
    sample_menu,
    sample_table,
    session_issuer,
)

from tableorder.application.callers import ANONYMOUS, Caller
from tableorder.application.dto.requests import SubmitCartRequest
from tableorder.application.errors import (
    AuthorizationError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from tableorder.application.use_cases.modify_cart import CartContext, ModifyCart
from tableorder.application.use_cases.place_order import PlaceOrder
from tableorder.application.use_cases.table_session import LoadTableSession, SubmitCart
from tableorder.application.use_cases.update_order import UpdateOrder
from tableorder.domain.common.ids import OrderId
from tableorder.domain.order.entities import OrderStatus


class World:
    def __init__(self) -> None:
        self.menus = FakeMenuRepository(sample_menu())
        self.tables = FakeTableRepository([sample_table()])
        self.orders = FakeOrderRepository()
        self.store = InMemoryKeyValueStore()
        self.publisher = FakePublisher()
        self.issuer = session_issuer()
        self.context = CartContext(
            menu_repository=self.menus,
            table_repository=self.tables,
            store=self.store,
        )
        self.cart = ModifyCart(context=self.context, order_repository=self.orders)
        self.load_session = LoadTableSession(
            cart_context=self.context,
            order_repository=self.orders,
            session_issuer=self.issuer,
        )
        self.submit = SubmitCart(
            cart_context=self.context,
            order_repository=self.orders,
            place_order=PlaceOrder(
                menu_repository=self.menus,
                table_repository=self.tables,
                order_repository=self.orders,
                publisher=self.publisher,
                session_issuer=self.issuer,
            ),
            update_order=UpdateOrder(
                menu_repository=self.menus,
                order_repository=self.orders,
                publisher=self.publisher,
            ),
        )

    def customer(self) -> Caller:
        session = self.load_session.execute(RESTAURANT_ID, "tbl_001", ANONYMOUS).sessionToken
        return Caller(table_session=self.issuer.verify(session))

    def submit_cart(self, caller: Caller):
        return self.submit.execute(
            restaurant_id=RESTAURANT_ID,
            table_ref="tbl_001",
            request_dto=SubmitCartRequest(),
            caller=caller,
            trace_ctx=TRACE,
        )

    def accept(self, order_id: str) -> None:
        stored = self.orders.get(OrderId(order_id))
        self.orders.add(stored.transition_to(OrderStatus.ACCEPTED, datetime.now(timezone.utc)))


def test_cart_edits_through_use_case() -> None:
    world = World()
    customer = world.customer()

    world.cart.add_item(RESTAURANT_ID, TABLE_UUID, customer, "itm_001")
    world.cart.add_item(RESTAURANT_ID, "tbl_001", customer, "itm_001")
    world.cart.update_item(RESTAURANT_ID, "tbl_001", customer, "itm_001", notes="medium rare")
    response = world.cart.add_item(RESTAURANT_ID, "tbl_001", customer, "itm_002")

    assert response.tableId == "tbl_001"
    assert response.count == 3
    assert response.total.amount == "12.50"
    assert response.lines[0].notes == "medium rare"

    response = world.cart.update_item(RESTAURANT_ID, "tbl_001", customer, "itm_001", delta=-2)
    assert [line.menuItemId for line in response.lines] == ["itm_002"]

    response = world.cart.clear(RESTAURANT_ID, "tbl_001", customer)
    assert response.count == 0


def test_cart_requires_a_session_for_the_table() -> None:
    world = World()

    with pytest.raises(AuthorizationError):
        world.cart.add_item(RESTAURANT_ID, "tbl_001", ANONYMOUS, "itm_001")
    with pytest.raises(AuthorizationError):
        world.cart.get(RESTAURANT_ID, "tbl_001", admin_caller())
    with pytest.raises(AuthorizationError):
        world.submit_cart(ANONYMOUS)

    assert world.store.values == {}


def test_sessions_at_the_same_table_have_separate_carts() -> None:
    world = World()
    first = world.customer()
    second = world.customer()

    world.cart.add_item(RESTAURANT_ID, "tbl_001", first, "itm_001")

    assert world.cart.get(RESTAURANT_ID, "tbl_001", second).count == 0
    assert world.cart.get(RESTAURANT_ID, "tbl_001", first).count == 1


def test_adding_unknown_or_unavailable_item_fails() -> None:
    world = World()
    customer = world.customer()

    with pytest.raises(NotFoundError):
        world.cart.add_item(RESTAURANT_ID, "tbl_001", customer, "itm_404")
    with pytest.raises(ValidationError):
        world.cart.add_item(RESTAURANT_ID, "tbl_001", customer, "itm_003")


def test_update_item_needs_delta_or_notes() -> None:
    world = World()

    with pytest.raises(ValidationError):
        world.cart.update_item(RESTAURANT_ID, "tbl_001", world.customer(), "itm_001")


def test_session_load_issues_token_for_table() -> None:
    world = World()

    response = world.load_session.execute(RESTAURANT_ID, TABLE_UUID, ANONYMOUS)

    session = world.issuer.verify(response.sessionToken)
    assert session is not None
    assert session.table_id == TABLE_ID
    assert response.table.name == "Table 1"
    assert response.activeOrder is None
    assert response.orderLocked is False


def test_submit_empty_cart_is_rejected() -> None:
    world = World()

    with pytest.raises(ValidationError):
        world.submit_cart(world.customer())

    assert world.orders.orders == {}


def test_submit_places_order_then_updates_it() -> None:
    world = World()
    customer = world.customer()
    world.cart.add_item(RESTAURANT_ID, "tbl_001", customer, "itm_001")

    placed = world.submit_cart(customer)

    assert placed.order.status == "pending"
    assert placed.sessionToken == customer.table_session.token
    assert world.cart.get(RESTAURANT_ID, "tbl_001", customer).orderId == placed.order.orderId

    world.cart.add_item(RESTAURANT_ID, "tbl_001", customer, "itm_002")
    updated = world.submit_cart(customer)

    assert updated.order.orderId == placed.order.orderId
    assert updated.order.version == 2
    assert updated.order.total.amount == "7.50"
    assert len(world.orders.orders) == 1


def test_other_session_cannot_resubmit_a_submitted_cart() -> None:
    world = World()
    first = world.customer()
    world.cart.add_item(RESTAURANT_ID, "tbl_001", first, "itm_001")
    world.submit_cart(first)

    second = world.customer()
    response = world.load_session.execute(RESTAURANT_ID, "tbl_001", second)

    assert response.cart.count == 0
    assert response.activeOrder is None
    with pytest.raises(ValidationError):
        world.submit_cart(second)
    assert len(world.orders.orders) == 1


def test_other_session_orders_its_own_items_separately() -> None:
    world = World()
    first = world.customer()
    world.cart.add_item(RESTAURANT_ID, "tbl_001", first, "itm_001")
    first_order = world.submit_cart(first)

    second = world.customer()
    world.cart.add_item(RESTAURANT_ID, "tbl_001", second, "itm_002")
    second_order = world.submit_cart(second)

    assert second_order.order.orderId != first_order.order.orderId
    assert [line.itemId for line in second_order.order.lines] == ["itm_002"]
    assert len(world.orders.orders) == 2


def test_resubmit_updates_own_order_when_another_is_newer() -> None:
    world = World()
    first = world.customer()
    world.cart.add_item(RESTAURANT_ID, "tbl_001", first, "itm_001")
    first_order = world.submit_cart(first)
    second = world.customer()
    world.cart.add_item(RESTAURANT_ID, "tbl_001", second, "itm_002")
    world.submit_cart(second)

    world.cart.add_item(RESTAURANT_ID, "tbl_001", first, "itm_001")
    updated = world.submit_cart(first)

    assert updated.order.orderId == first_order.order.orderId
    assert updated.order.version == 2
    assert len(world.orders.orders) == 2


def test_session_load_seeds_empty_cart_from_own_pending_order() -> None:
    world = World()
    customer = world.customer()
    world.cart.add_item(RESTAURANT_ID, "tbl_001", customer, "itm_002")
    placed = world.submit_cart(customer)
    world.cart.clear(RESTAURANT_ID, "tbl_001", customer)

    response = world.load_session.execute(RESTAURANT_ID, "tbl_001", customer)

    assert response.activeOrder is not None
    assert response.activeOrder.orderId == placed.order.orderId
    assert [line.menuItemId for line in response.cart.lines] == ["itm_002"]
    assert response.sessionToken == customer.table_session.token


def test_session_load_keeps_local_cart_over_pending_order() -> None:
    world = World()
    customer = world.customer()
    world.cart.add_item(RESTAURANT_ID, "tbl_001", customer, "itm_002")
    world.submit_cart(customer)
    world.cart.add_item(RESTAURANT_ID, "tbl_001", customer, "itm_001")

    first = world.load_session.execute(RESTAURANT_ID, "tbl_001", customer)
    second = world.load_session.execute(RESTAURANT_ID, "tbl_001", customer)

    assert first.cart == second.cart
    assert first.cart.count == 2


def test_session_load_drops_cart_of_accepted_order() -> None:
    world = World()
    customer = world.customer()
    world.cart.add_item(RESTAURANT_ID, "tbl_001", customer, "itm_001")
    placed = world.submit_cart(customer)
    world.accept(placed.order.orderId)

    response = world.load_session.execute(RESTAURANT_ID, "tbl_001", customer)

    assert response.orderLocked is True
    assert response.cart.count == 0
    assert response.activeOrder is None


def test_cart_edits_are_rejected_once_order_is_locked() -> None:
    world = World()
    customer = world.customer()
    world.cart.add_item(RESTAURANT_ID, "tbl_001", customer, "itm_001")
    placed = world.submit_cart(customer)
    world.cart.add_item(RESTAURANT_ID, "tbl_001", customer, "itm_002")
    world.accept(placed.order.orderId)

    with pytest.raises(InvalidStateError) as exc_info:
        world.cart.add_item(RESTAURANT_ID, "tbl_001", customer, "itm_002")
    assert exc_info.value.details == {"status": "accepted"}
    with pytest.raises(InvalidStateError):
        world.cart.update_item(RESTAURANT_ID, "tbl_001", customer, "itm_001", delta=1)
    with pytest.raises(InvalidStateError):
        world.cart.remove_item(RESTAURANT_ID, "tbl_001", customer, "itm_002")
    with pytest.raises(InvalidStateError):
        world.submit_cart(customer)
    assert world.cart.get(RESTAURANT_ID, "tbl_001", customer).count == 2

    world.load_session.execute(RESTAURANT_ID, "tbl_001", customer)
    response = world.cart.add_item(RESTAURANT_ID, "tbl_001", customer, "itm_002")

    assert response.count == 1
    assert response.orderId is None
