from __future__ import annotations

import asyncio
import logging
import os
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tableorder.api.error_handling import register_exception_handlers
from tableorder.api.middleware.access_log import AccessLogMiddleware
from tableorder.api.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware
from tableorder.api.routes.cart import router as cart_router
from tableorder.api.routes.health import router as health_router
from tableorder.api.routes.menu import router as menu_router
from tableorder.api.routes.metrics import router as metrics_router
from tableorder.api.routes.orders import router as orders_router
from tableorder.api.ws.manager import ConnectionManager
from tableorder.api.ws.routes import router as ws_router
from tableorder.infrastructure.messaging.redis_ws_fanout import start_redis_fanout
from tableorder.infrastructure.observability.logging_config import configure_logging
from tableorder.infrastructure.observability.otel import configure_otel

logger = logging.getLogger(__name__)

ROUTERS = (health_router, metrics_router, menu_router, cart_router, orders_router, ws_router)
OPEN_CORS_ENVIRONMENTS = frozenset({"dev", "test"})


def _cors_allow_origins() -> list[str]:
    env = os.getenv("APP_ENV", "dev").lower()
    if env in OPEN_CORS_ENVIRONMENTS:
        return ["*"]

    raw_value = os.getenv("CORS_ALLOW_ORIGINS")
    if not raw_value:
        raise RuntimeError(f"CORS_ALLOW_ORIGINS is required when APP_ENV={env}")
    return [origin.strip() for origin in raw_value.split(",") if origin.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.ws_manager = ConnectionManager()
    fanout_task = asyncio.create_task(start_redis_fanout(app.state))
    logger.info("app_started")
    try:
        yield
    finally:
        fanout_task.cancel()
        with suppress(asyncio.CancelledError):
            await fanout_task
        logger.info("app_stopped")


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(title="Table Order Backend", version="0.1.0", lifespan=lifespan)
    register_exception_handlers(app)
    for router in ROUTERS:
        app.include_router(router)

    # Outermost last: CORS wraps request ids, which wrap access logging.
    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_allow_origins(),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )

    configure_otel(app)
    return app


app = create_app()
