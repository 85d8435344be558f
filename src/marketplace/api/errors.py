"""Domain error → HTTP response translation.

Starlette resolves handlers along the exception's MRO, so the specific
classes below win over the ValidationError / ObjectNotFoundError bases.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ProteanException, ValidationError

from marketplace.exceptions import (
    CarrierError,
    GatewayError,
    InsufficientStock,
    ShipmentCreationError,
    UnauthorizedAccess,
    WebhookVerificationError,
    error_messages,
    first_message,
)

logger = structlog.get_logger(__name__)

STATUS_BY_ERROR: dict[type[ProteanException], int] = {
    ValidationError: 400,
    InvalidOperationError: 400,
    InsufficientStock: 409,
    ObjectNotFoundError: 404,
    UnauthorizedAccess: 403,
    WebhookVerificationError: 401,
    ShipmentCreationError: 422,
    GatewayError: 502,
    CarrierError: 502,
}


def error_body(exc: ProteanException) -> dict:
    return {
        "error": type(exc).__name__,
        "detail": first_message(exc),
        "messages": error_messages(exc),
    }


def _handler_for(status_code: int):
    async def handle(request: Request, exc: ProteanException) -> JSONResponse:
        log = logger.error if status_code >= 500 else logger.info
        log(
            "request_failed",
            path=request.url.path,
            method=request.method,
            status_code=status_code,
            error=type(exc).__name__,
        )
        return JSONResponse(status_code=status_code, content=error_body(exc))

    return handle


def register_exception_handlers(app: FastAPI) -> None:
    for exc_class, status_code in STATUS_BY_ERROR.items():
        app.add_exception_handler(exc_class, _handler_for(status_code))
