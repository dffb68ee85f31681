from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from tableorder.domain.order.entities import OrderStatus


def _to_camel(value: str) -> str:
    parts = value.split("_")
    return parts[0] + "".join(part.capitalize() for part in parts[1:])


class CamelBaseModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=_to_camel,
        populate_by_name=True,
    )


class OrderLineRequest(CamelBaseModel):
    item_id: str
    quantity: int
    notes: str | None = None


class PlaceOrderRequest(CamelBaseModel):
    lines: list[OrderLineRequest] = Field(default_factory=list)


class UpdateOrderRequest(CamelBaseModel):
    lines: list[OrderLineRequest] = Field(default_factory=list)
    expected_version: int | None = None


class SetOrderStatusRequest(CamelBaseModel):
    status: OrderStatus
    expected_version: int | None = None


class AddCartItemRequest(CamelBaseModel):
    item_id: str


class UpdateCartItemRequest(CamelBaseModel):
    delta: int | None = None
    notes: str | None = None


class SubmitCartRequest(CamelBaseModel):
    expected_version: int | None = None
