from __future__ import annotations

import logging
from typing import Any, cast

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tableorder.api.middleware.request_id import get_request_id
from tableorder.application.errors import (
    AuthorizationError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    TransportError,
    ValidationError,
)

logger = logging.getLogger(__name__)

APPLICATION_ERRORS: tuple[tuple[type[Exception], int, str], ...] = (
    (ValidationError, 400, "VALIDATION_ERROR"),
    (AuthorizationError, 403, "FORBIDDEN"),
    (NotFoundError, 404, "NOT_FOUND"),
    (InvalidStateError, 409, "INVALID_ORDER_STATE"),
    (ConflictError, 409, "CONFLICT"),
    (TransportError, 503, "TRANSPORT_ERROR"),
)

HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
}


def error_body(code: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    return {
        "error": {"code": code, "message": message, "details": details or {}},
        "requestId": get_request_id(),
    }


def _application_error_handler(status_code: int, code: str):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        if status_code >= 500:
            logger.warning(
                "request_dependency_failed",
                extra={"path": request.url.path, "status_code": status_code},
                exc_info=exc,
            )
        details = getattr(exc, "details", None)
        return JSONResponse(
            status_code=status_code,
            content=error_body(code, str(exc), details if isinstance(details, dict) else None),
        )

    return handler


async def _http_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    http_exc = cast(StarletteHTTPException, exc)
    return JSONResponse(
        status_code=http_exc.status_code,
        content=error_body(
            HTTP_ERROR_CODES.get(http_exc.status_code, "HTTP_ERROR"),
            str(http_exc.detail) if http_exc.detail else "request failed",
        ),
        headers=getattr(http_exc, "headers", None),
    )


async def _validation_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    validation_exc = cast(RequestValidationError, exc)
    return JSONResponse(
        status_code=400,
        content=error_body(
            "INVALID_REQUEST",
            "request validation failed",
            {"errors": validation_exc.errors()},
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    for exc_cls, status_code, code in APPLICATION_ERRORS:
        app.add_exception_handler(exc_cls, _application_error_handler(status_code, code))

    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
