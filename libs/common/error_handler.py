"""Global exception handlers for consistent error responses.

Every error body has the shape ``{"code": <http status>, "kind": <stable
machine-readable kind>, "message": <human readable text>}``.
"""

from http import HTTPStatus

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException

from libs.common.errors import StoreError
from libs.common.logging import get_logger

logger = get_logger(__name__)

_KIND_BY_STATUS = {
    400: "ValidationError",
    401: "Unauthorized",
    403: "Forbidden",
    404: "NotFound",
    405: "MethodNotAllowed",
    409: "Conflict",
}


def _error_response(
    status_code: int, kind: str, message: str, headers: dict | None = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"code": status_code, "kind": kind, "message": message},
        headers=headers,
    )


async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    return _error_response(exc.status_code, exc.kind, exc.message, exc.headers)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    kind = _KIND_BY_STATUS.get(exc.status_code)
    if kind is None:
        kind = "ServerFault" if exc.status_code >= 500 else "ClientError"
    message = exc.detail if isinstance(exc.detail, str) else HTTPStatus(
        exc.status_code
    ).phrase
    return _error_response(exc.status_code, kind, message, exc.headers)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    if location:
        message = f"{location}: {message}"
    return _error_response(status.HTTP_400_BAD_REQUEST, "ValidationError", message)


async def store_fault_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(
        "Store fault on %s %s: %s",
        request.method,
        request.url.path,
        exc.__class__.__name__,
        exc_info=exc,
    )
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "StoreFault",
        "Storage backend unavailable, nothing was changed",
    )


def add_exception_handlers(app: FastAPI) -> None:
    """Register the store's exception handlers on ``app``."""
    app.add_exception_handler(StoreError, store_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, store_fault_handler)
