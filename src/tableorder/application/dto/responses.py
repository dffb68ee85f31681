from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class MoneyResponse(BaseModel):
    amountCents: int
    currency: str
    amount: str


class MenuItemResponse(BaseModel):
    itemId: str
    name: str
    description: str | None = None
    priceMoney: MoneyResponse
    isAvailable: bool
    categoryId: str | None = None
    position: int = 0


class MenuCategoryResponse(BaseModel):
    categoryId: str
    name: str
    position: int = 0
    items: list[MenuItemResponse] = Field(default_factory=list)


class MenuResponse(BaseModel):
    restaurantId: str
    currency: str
    categories: list[MenuCategoryResponse] = Field(default_factory=list)
    uncategorizedItems: list[MenuItemResponse] = Field(default_factory=list)


class OrderLineResponse(BaseModel):
    lineId: str
    itemId: str | None = None
    name: str
    quantity: int
    unitPrice: MoneyResponse
    lineTotal: MoneyResponse
    notes: str | None = None


class OrderResponse(BaseModel):
    orderId: str
    restaurantId: str
    tableId: str
    status: str
    editable: bool
    lines: list[OrderLineResponse] = Field(default_factory=list)
    total: MoneyResponse
    version: int
    createdAt: datetime
    updatedAt: datetime | None = None


class PlaceOrderResponse(BaseModel):
    order: OrderResponse
    sessionToken: str | None = None


class OrderListResponse(BaseModel):
    orders: list[OrderResponse] = Field(default_factory=list)
    nextCursor: str | None = None


class ActiveOrderResponse(BaseModel):
    order: OrderResponse | None = None


class CartLineResponse(BaseModel):
    menuItemId: str
    name: str
    unitPrice: MoneyResponse
    quantity: int
    notes: str = ""
    lineTotal: MoneyResponse


class CartResponse(BaseModel):
    restaurantId: str
    tableId: str
    lines: list[CartLineResponse] = Field(default_factory=list)
    total: MoneyResponse
    count: int
    orderId: str | None = None


class TableResponse(BaseModel):
    tableId: str
    restaurantId: str
    name: str


class TableSessionResponse(BaseModel):
    table: TableResponse
    cart: CartResponse
    activeOrder: OrderResponse | None = None
    orderLocked: bool = False
    sessionToken: str
