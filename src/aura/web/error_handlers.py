from typing import Any

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse, Response

from aura.errors import (
    AccessDeniedError,
    AllocationExhaustedError,
    AuthenticationError,
    FanoutIncompleteError,
    NotFoundError,
    PreconditionFailedError,
    UserError,
    ValidationError,
)

logger = structlog.get_logger(__name__)

# Checked in order, first isinstance match wins
USER_ERROR_STATUS: tuple[tuple[type[UserError], int, str], ...] = (
    (AuthenticationError, 401, "authentication_error"),
    (AccessDeniedError, 403, "access_denied"),
    (NotFoundError, 404, "not_found"),
    (PreconditionFailedError, 409, "precondition_failed"),
    (ValidationError, 400, "validation_error"),
)


def error_body(status_code: int, message: str, error_type: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message, "type": error_type, **extra})


def classify_user_error(exc: Exception) -> tuple[int, str]:
    for error_cls, status_code, error_type in USER_ERROR_STATUS:
        if isinstance(exc, error_cls):
            return status_code, error_type
    return 400, "bad_request"


async def user_error_handler(_: Request, exc: Exception) -> Response:
    status_code, error_type = classify_user_error(exc)
    return error_body(status_code, str(exc), error_type)


async def service_error_handler(_: Request, exc: Exception) -> Response:
    """Temporary backend failures map to 503 so that clients retry.

    A partial fan-out also lists which participants were and were not updated.
    """
    if isinstance(exc, FanoutIncompleteError):
        return error_body(503, str(exc), "fanout_incomplete", succeeded=exc.succeeded, failed=exc.failed)

    error_type = "allocation_exhausted" if isinstance(exc, AllocationExhaustedError) else "storage_unavailable"
    logger.warning("service_error", error=str(exc), type=error_type)
    return error_body(503, str(exc), error_type)


async def connection_failure_handler(_: Request, exc: Exception) -> Response:
    logger.error("storage_unavailable", error=str(exc))
    return error_body(503, "Storage is unavailable", "storage_unavailable")


async def general_exception_handler(request: Request, exc: Exception) -> Response:
    request_id = getattr(request.state, "request_id", None)
    logger.exception("unexpected_error", error=str(exc))
    return error_body(500, "An unexpected error occurred.", "internal_server_error", request_id=request_id)
