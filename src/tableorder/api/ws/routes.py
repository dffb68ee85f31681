from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from starlette.concurrency import run_in_threadpool

from tableorder.api.dependencies import resolve_caller
from tableorder.api.ws.manager import ConnectionManager
from tableorder.application.errors import AuthorizationError, TransportError
from tableorder.application.use_cases.notify import order_channel, restaurant_channel
from tableorder.domain.common.ids import RestaurantId

router = APIRouter()
logger = logging.getLogger(__name__)


async def _serve(websocket: WebSocket, topic: str, role: str) -> None:
    manager: ConnectionManager = websocket.app.state.ws_manager
    await manager.register(websocket=websocket, topic=topic, role=role)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        await manager.unregister(websocket)
    except Exception:
        logger.exception("ws_connection_error", extra={"channel": topic})
        await manager.unregister(websocket)


@router.websocket("/ws")
async def restaurant_feed(websocket: WebSocket) -> None:
    """Admin feed of every order change of one restaurant.

    Browsers cannot set headers on WebSocket upgrades, so the bearer token
    travels in the ``access_token`` query parameter.
    """
    restaurant_id = websocket.query_params.get("restaurant_id")
    access_token = websocket.query_params.get("access_token")
    if not restaurant_id:
        await websocket.close(code=1008, reason="restaurant_id query parameter is required")
        return
    if not access_token:
        await websocket.close(code=1008, reason="access_token query parameter is required")
        return

    try:
        caller = await run_in_threadpool(
            resolve_caller,
            authorization=f"Bearer {access_token}",
            table_session=None,
        )
        caller.require_restaurant_access(RestaurantId(restaurant_id))
    except AuthorizationError as exc:
        await websocket.close(code=1008, reason=str(exc))
        return
    except TransportError:
        logger.warning("ws_auth_unavailable", extra={"restaurant_id": restaurant_id})
        await websocket.close(code=1011, reason="identity provider unavailable")
        return

    await _serve(websocket, restaurant_channel(restaurant_id), role="admin")


@router.websocket("/ws/orders/{order_id}")
async def order_feed(websocket: WebSocket, order_id: str) -> None:
    await _serve(websocket, order_channel(order_id), role="customer")
