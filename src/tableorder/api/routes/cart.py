from __future__ import annotations

from fastapi import APIRouter, Depends, status

from tableorder.api.dependencies import (
    current_trace_context,
    load_table_session_use_case,
    modify_cart_use_case,
    resolve_caller,
    submit_cart_use_case,
)
from tableorder.application.callers import Caller
from tableorder.application.dto.requests import (
    AddCartItemRequest,
    SubmitCartRequest,
    UpdateCartItemRequest,
)
from tableorder.application.dto.responses import (
    CartResponse,
    PlaceOrderResponse,
    TableSessionResponse,
)
from tableorder.application.use_cases.context import TraceContext
from tableorder.application.use_cases.modify_cart import ModifyCart
from tableorder.application.use_cases.table_session import LoadTableSession, SubmitCart
from tableorder.domain.common.ids import RestaurantId

router = APIRouter(prefix="/v1/restaurants/{restaurant_id}/tables/{table_id}")


@router.get("/session", response_model=TableSessionResponse)
def load_session(
    restaurant_id: str,
    table_id: str,
    caller: Caller = Depends(resolve_caller),
    use_case: LoadTableSession = Depends(load_table_session_use_case),
) -> TableSessionResponse:
    return use_case.execute(
        restaurant_id=RestaurantId(restaurant_id),
        table_ref=table_id,
        caller=caller,
    )


@router.get("/cart", response_model=CartResponse)
def get_cart(
    restaurant_id: str,
    table_id: str,
    caller: Caller = Depends(resolve_caller),
    use_case: ModifyCart = Depends(modify_cart_use_case),
) -> CartResponse:
    return use_case.get(RestaurantId(restaurant_id), table_id, caller)


@router.delete("/cart", response_model=CartResponse)
def clear_cart(
    restaurant_id: str,
    table_id: str,
    caller: Caller = Depends(resolve_caller),
    use_case: ModifyCart = Depends(modify_cart_use_case),
) -> CartResponse:
    return use_case.clear(RestaurantId(restaurant_id), table_id, caller)


@router.post("/cart/items", response_model=CartResponse)
def add_cart_item(
    restaurant_id: str,
    table_id: str,
    request_dto: AddCartItemRequest,
    caller: Caller = Depends(resolve_caller),
    use_case: ModifyCart = Depends(modify_cart_use_case),
) -> CartResponse:
    return use_case.add_item(RestaurantId(restaurant_id), table_id, caller, request_dto.item_id)


@router.patch("/cart/items/{item_id}", response_model=CartResponse)
def update_cart_item(
    restaurant_id: str,
    table_id: str,
    item_id: str,
    request_dto: UpdateCartItemRequest,
    caller: Caller = Depends(resolve_caller),
    use_case: ModifyCart = Depends(modify_cart_use_case),
) -> CartResponse:
    return use_case.update_item(
        RestaurantId(restaurant_id),
        table_id,
        caller,
        item_id,
        delta=request_dto.delta,
        notes=request_dto.notes,
    )


@router.delete("/cart/items/{item_id}", response_model=CartResponse)
def remove_cart_item(
    restaurant_id: str,
    table_id: str,
    item_id: str,
    caller: Caller = Depends(resolve_caller),
    use_case: ModifyCart = Depends(modify_cart_use_case),
) -> CartResponse:
    return use_case.remove_item(RestaurantId(restaurant_id), table_id, caller, item_id)


@router.post(
    "/cart/submit",
    response_model=PlaceOrderResponse,
    status_code=status.HTTP_201_CREATED,
)
def submit_cart(
    restaurant_id: str,
    table_id: str,
    request_dto: SubmitCartRequest | None = None,
    caller: Caller = Depends(resolve_caller),
    trace_ctx: TraceContext = Depends(current_trace_context),
    use_case: SubmitCart = Depends(submit_cart_use_case),
) -> PlaceOrderResponse:
    return use_case.execute(
        restaurant_id=RestaurantId(restaurant_id),
        table_ref=table_id,
        request_dto=request_dto or SubmitCartRequest(),
        caller=caller,
        trace_ctx=trace_ctx,
    )
