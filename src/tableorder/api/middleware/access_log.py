from __future__ import annotations

import logging
import time

from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("tableorder.api.access")

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "route", "status_code"],
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "route"],
)

UNMATCHED_ROUTE = "<unmatched>"


def _route_label(request: Request) -> str:
    """Templated path of the matched route, so ids never become label values."""
    route = request.scope.get("route")
    path_format = getattr(route, "path_format", None) or getattr(route, "path", None)
    return path_format or UNMATCHED_ROUTE


class AccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        except Exception:
            logger.exception(
                "request_error",
                extra={"method": request.method, "path": request.url.path, "status_code": 500},
            )
            raise
        finally:
            elapsed = time.perf_counter() - started
            route = _route_label(request)
            REQUEST_COUNT.labels(
                method=request.method,
                route=route,
                status_code=str(status_code),
            ).inc()
            REQUEST_LATENCY.labels(method=request.method, route=route).observe(elapsed)
            if status_code < 500:
                logger.info(
                    "request_complete",
                    extra={
                        "method": request.method,
                        "path": request.url.path,
                        "route": route,
                        "status_code": status_code,
                        "duration_ms": round(elapsed * 1000, 2),
                    },
                )
