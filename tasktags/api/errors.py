"""
Exception handlers for the API.

Known errors leave the API in the same ErrorResponse envelope:
1. Service errors (NotFound, ValidationFailed, ReferenceViolation, Storage)
2. Pydantic request validation errors (422)
3. Anything unexpected is left to Starlette (plain 500, logged by the middleware)

How it works:
1. A service raises an exception
2. FastAPI looks up the handler registered for its type
3. The handler turns it into an HTTP response
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..core.errors import (
    NotFoundError,
    ReferenceViolationError,
    ServiceError,
    StorageError,
    ValidationFailedError,
)
from .schemas import ErrorBody, ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)

# Seconds a client should wait before retrying after a storage failure
STORAGE_RETRY_AFTER = 1

# Unprocessable request body or query
HTTP_422_UNPROCESSABLE = 422

_STATUS_BY_ERROR: dict[type[ServiceError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ValidationFailedError: status.HTTP_400_BAD_REQUEST,
    ReferenceViolationError: status.HTTP_409_CONFLICT,
    StorageError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _error_response(
    status_code: int,
    code: str,
    message: str,
    details: list[ErrorDetail] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorResponse(error=ErrorBody(code=code, message=message, details=details))
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)


def status_for(exc: ServiceError) -> int:
    """HTTP status for a service error (500 for unknown subclasses)."""
    for error_type, status_code in _STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """
    Handler for service-layer errors.

    StorageError is the only retryable one: it gets 503 and a Retry-After
    header, and the rolled-back request is logged at ERROR.
    """
    status_code = status_for(exc)
    headers = None

    if isinstance(exc, StorageError):
        logger.error(
            f"Storage failure: {exc.message}",
            extra={"path": request.url.path},
            exc_info=exc.__cause__ is not None,
        )
        headers = {"Retry-After": str(STORAGE_RETRY_AFTER)}
    else:
        logger.warning(f"Service error: {exc.code} - {exc.message}")

    details = None
    field = getattr(exc, "field", None)
    if field:
        details = [ErrorDetail(field=field, message=exc.message)]

    return _error_response(status_code, exc.code, exc.message, details, headers)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handler for Pydantic validation errors (422).

    Pydantic reports errors in its own format:
    {"detail": [{"type": "string_too_short", "loc": ["body", "name"], "msg": "..."}]}

    They are rewritten into ours:
    {"error": {"code": "VALIDATION_ERROR", "message": "...",
               "details": [{"field": "name", "message": "..."}]}}
    """
    logger.warning(f"Validation Error: {exc.errors()}")

    details = []
    for error in exc.errors():
        # loc is the path to the field, e.g. ["body", "name"] or ["query", "tagIds", 0]
        field_path = error.get("loc", [])
        field_name = field_path[-1] if field_path else "unknown"

        if len(field_path) > 1 and field_path[0] in ("body", "query", "path"):
            field_name = ".".join(str(p) for p in field_path[1:])

        details.append(
            ErrorDetail(field=str(field_name), message=error.get("msg", "Invalid value"))
        )

    return _error_response(
        HTTP_422_UNPROCESSABLE,
        "VALIDATION_ERROR",
        "Request validation failed",
        details,
    )


def register_error_handlers(app: FastAPI) -> None:
    """
    Register every error handler on the application.

    Called from main.py:
        register_error_handlers(app)
    """
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    logger.info("Error handlers registered")
