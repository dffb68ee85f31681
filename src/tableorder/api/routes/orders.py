from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from tableorder.api.dependencies import (
    current_trace_context,
    find_active_order_use_case,
    get_order_use_case,
    list_orders_use_case,
    place_order_use_case,
    resolve_caller,
    set_order_status_use_case,
    update_order_use_case,
)
from tableorder.application.callers import Caller
from tableorder.application.dto.requests import (
    PlaceOrderRequest,
    SetOrderStatusRequest,
    UpdateOrderRequest,
)
from tableorder.application.dto.responses import (
    ActiveOrderResponse,
    OrderListResponse,
    OrderResponse,
    PlaceOrderResponse,
)
from tableorder.application.use_cases.context import TraceContext
from tableorder.application.use_cases.find_active_order import FindActiveOrder
from tableorder.application.use_cases.get_order import GetOrder
from tableorder.application.use_cases.list_orders import ListOrders
from tableorder.application.use_cases.place_order import PlaceOrder
from tableorder.application.use_cases.set_order_status import SetOrderStatus
from tableorder.application.use_cases.update_order import UpdateOrder
from tableorder.domain.common.ids import OrderId, RestaurantId

router = APIRouter()


@router.post(
    "/v1/restaurants/{restaurant_id}/tables/{table_id}/orders",
    response_model=PlaceOrderResponse,
    status_code=status.HTTP_201_CREATED,
)
def place_order(
    restaurant_id: str,
    table_id: str,
    request_dto: PlaceOrderRequest,
    caller: Caller = Depends(resolve_caller),
    trace_ctx: TraceContext = Depends(current_trace_context),
    use_case: PlaceOrder = Depends(place_order_use_case),
) -> PlaceOrderResponse:
    return use_case.execute(
        restaurant_id=RestaurantId(restaurant_id),
        table_ref=table_id,
        request_dto=request_dto,
        caller=caller,
        trace_ctx=trace_ctx,
    )


@router.get(
    "/v1/restaurants/{restaurant_id}/tables/{table_id}/orders/active",
    response_model=ActiveOrderResponse,
)
def get_active_order(
    restaurant_id: str,
    table_id: str,
    use_case: FindActiveOrder = Depends(find_active_order_use_case),
) -> ActiveOrderResponse:
    return use_case.execute(RestaurantId(restaurant_id), table_id)


@router.get("/v1/restaurants/{restaurant_id}/orders", response_model=OrderListResponse)
def list_orders(
    restaurant_id: str,
    status_filter: str = Query(default="all", alias="status"),
    limit: int = Query(default=50),
    cursor: str | None = Query(default=None),
    caller: Caller = Depends(resolve_caller),
    use_case: ListOrders = Depends(list_orders_use_case),
) -> OrderListResponse:
    return use_case.execute(
        restaurant_id=RestaurantId(restaurant_id),
        caller=caller,
        status=status_filter,
        limit=limit,
        cursor=cursor,
    )


@router.get("/v1/orders/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: str,
    use_case: GetOrder = Depends(get_order_use_case),
) -> OrderResponse:
    return use_case.execute(order_id=OrderId(order_id))


@router.put("/v1/orders/{order_id}/lines", response_model=OrderResponse)
def update_order_lines(
    order_id: str,
    request_dto: UpdateOrderRequest,
    caller: Caller = Depends(resolve_caller),
    trace_ctx: TraceContext = Depends(current_trace_context),
    use_case: UpdateOrder = Depends(update_order_use_case),
) -> OrderResponse:
    return use_case.execute(
        order_id=OrderId(order_id),
        request_dto=request_dto,
        caller=caller,
        trace_ctx=trace_ctx,
    )


@router.post("/v1/orders/{order_id}/status", response_model=OrderResponse)
def set_order_status(
    order_id: str,
    request_dto: SetOrderStatusRequest,
    caller: Caller = Depends(resolve_caller),
    trace_ctx: TraceContext = Depends(current_trace_context),
    use_case: SetOrderStatus = Depends(set_order_status_use_case),
) -> OrderResponse:
    return use_case.execute(
        order_id=OrderId(order_id),
        request_dto=request_dto,
        caller=caller,
        trace_ctx=trace_ctx,
    )
