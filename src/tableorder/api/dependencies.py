from __future__ import annotations

import os
from functools import lru_cache

from fastapi import Header
from opentelemetry import trace

from tableorder.api.middleware.request_id import get_request_id
from tableorder.application.callers import Caller, Principal
from tableorder.application.cart import DEFAULT_CART_TTL_SECONDS
from tableorder.application.errors import AuthorizationError
from tableorder.application.table_sessions import DEFAULT_TTL_SECONDS, TableSessionIssuer
from tableorder.application.use_cases.context import TraceContext
from tableorder.application.use_cases.find_active_order import FindActiveOrder
from tableorder.application.use_cases.get_menu import GetMenu
from tableorder.application.use_cases.get_order import GetOrder
from tableorder.application.use_cases.list_orders import ListOrders
from tableorder.application.use_cases.modify_cart import CartContext, ModifyCart
from tableorder.application.use_cases.place_order import PlaceOrder
from tableorder.application.use_cases.set_order_status import SetOrderStatus
from tableorder.application.use_cases.table_session import LoadTableSession, SubmitCart
from tableorder.application.use_cases.update_order import UpdateOrder
from tableorder.infrastructure.cache.cache_store import RedisKeyValueStore
from tableorder.infrastructure.db.repositories.access_repo import SqlAlchemyAccessRepository
from tableorder.infrastructure.db.repositories.menu_repo import SqlAlchemyMenuRepository
from tableorder.infrastructure.db.repositories.order_repo import SqlAlchemyOrderRepository
from tableorder.infrastructure.db.repositories.table_repo import SqlAlchemyTableRepository
from tableorder.infrastructure.identity.http_identity import HttpIdentityProvider
from tableorder.infrastructure.messaging.redis_publisher import RedisEventPublisher

TABLE_SESSION_HEADER = "X-Table-Session"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    return int(raw)


@lru_cache(maxsize=4)
def _build_session_issuer(secret: str, ttl_seconds: int) -> TableSessionIssuer:
    return TableSessionIssuer(secret=secret, ttl_seconds=ttl_seconds)


def session_issuer() -> TableSessionIssuer:
    secret = os.getenv("TABLE_SESSION_SECRET")
    if not secret:
        raise RuntimeError("TABLE_SESSION_SECRET is not set")
    return _build_session_issuer(
        secret,
        _int_env("TABLE_SESSION_TTL_SECONDS", DEFAULT_TTL_SECONDS),
    )


def current_trace_context() -> TraceContext:
    span_context = trace.get_current_span().get_span_context()
    trace_id = format(span_context.trace_id, "032x") if span_context.is_valid else None
    return TraceContext(trace_id=trace_id, request_id=get_request_id())


def resolve_caller(
    authorization: str | None = Header(default=None),
    table_session: str | None = Header(default=None, alias=TABLE_SESSION_HEADER),
) -> Caller:
    principal: Principal | None = None
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token:
            raise AuthorizationError("malformed Authorization header")
        user_id = HttpIdentityProvider().resolve_user(token)
        if user_id is None:
            raise AuthorizationError("invalid bearer token")
        access = SqlAlchemyAccessRepository()
        principal = Principal(
            user_id=user_id,
            restaurant_ids=access.restaurant_ids_for_user(user_id),
            is_super_admin=access.is_super_admin(user_id),
        )

    session = session_issuer().verify(table_session) if table_session else None
    return Caller(principal=principal, table_session=session)


def get_menu_use_case() -> GetMenu:
    return GetMenu(
        repository=SqlAlchemyMenuRepository(),
        cache=RedisKeyValueStore(),
        ttl_seconds=60,
    )


def cart_context() -> CartContext:
    return CartContext(
        menu_repository=SqlAlchemyMenuRepository(),
        table_repository=SqlAlchemyTableRepository(),
        store=RedisKeyValueStore(),
        ttl_seconds=_int_env("CART_TTL_SECONDS", DEFAULT_CART_TTL_SECONDS),
    )


def modify_cart_use_case() -> ModifyCart:
    return ModifyCart(context=cart_context(), order_repository=SqlAlchemyOrderRepository())


def place_order_use_case() -> PlaceOrder:
    return PlaceOrder(
        menu_repository=SqlAlchemyMenuRepository(),
        table_repository=SqlAlchemyTableRepository(),
        order_repository=SqlAlchemyOrderRepository(),
        publisher=RedisEventPublisher(),
        session_issuer=session_issuer(),
    )


def update_order_use_case() -> UpdateOrder:
    return UpdateOrder(
        menu_repository=SqlAlchemyMenuRepository(),
        order_repository=SqlAlchemyOrderRepository(),
        publisher=RedisEventPublisher(),
    )


def set_order_status_use_case() -> SetOrderStatus:
    return SetOrderStatus(
        order_repository=SqlAlchemyOrderRepository(),
        publisher=RedisEventPublisher(),
    )


def load_table_session_use_case() -> LoadTableSession:
    return LoadTableSession(
        cart_context=cart_context(),
        order_repository=SqlAlchemyOrderRepository(),
        session_issuer=session_issuer(),
    )


def submit_cart_use_case() -> SubmitCart:
    return SubmitCart(
        cart_context=cart_context(),
        order_repository=SqlAlchemyOrderRepository(),
        place_order=place_order_use_case(),
        update_order=update_order_use_case(),
    )


def get_order_use_case() -> GetOrder:
    return GetOrder(order_repository=SqlAlchemyOrderRepository())


def find_active_order_use_case() -> FindActiveOrder:
    return FindActiveOrder(
        table_repository=SqlAlchemyTableRepository(),
        order_repository=SqlAlchemyOrderRepository(),
    )


def list_orders_use_case() -> ListOrders:
    return ListOrders(order_repository=SqlAlchemyOrderRepository())
