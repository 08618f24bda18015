"""Maps application errors to HTTP responses."""

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from server.models.responses import ErrorResponse
from shared.errors.exceptions import (
    AuthenticationError,
    ConfigurationError,
    EfactureError,
    PlatformError,
    TokenNotFoundError,
    TokenStoreError,
    ValidationError,
    WorkflowNotFoundError,
    WorkflowStateError,
)

# most specific first
ERROR_STATUS: list[tuple[type[Exception], int]] = [
    (ConfigurationError, 500),
    (ValidationError, 422),
    (TokenNotFoundError, 401),
    (AuthenticationError, 401),
    (WorkflowNotFoundError, 404),
    (WorkflowStateError, 409),
    (TokenStoreError, 502),
    (PlatformError, 502),
]


def get_status_code(error: Exception) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(error, error_type):
            return status_code
    return 500


async def handle_application_error(request: Request, exc: EfactureError) -> JSONResponse:
    status_code = get_status_code(exc)
    request.app.state.logging.warning("%s %s -> %d %s: %s", request.method, request.url.path, status_code, type(exc).__name__, exc)
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=type(exc).__name__, detail=str(exc)).model_dump())


async def handle_transport_error(request: Request, exc: httpx.HTTPError) -> JSONResponse:
    request.app.state.logging.error("%s %s -> backend unreachable: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=502, content=ErrorResponse(error=type(exc).__name__, detail=str(exc) or "Backend unreachable").model_dump())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(EfactureError, handle_application_error)
    app.add_exception_handler(httpx.HTTPError, handle_transport_error)
