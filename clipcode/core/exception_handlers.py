"""Maps failures to the JSON error envelope.

Every error body is {"error": {"code", "message", "request_id", "details"?}}.

- AppError subclasses -> their HTTP status (400, 404, 413, 429, 500)
- Store failures and unexpected exceptions -> generic 500, nothing leaked
- Request body/query validation failures -> 400
- Request ids are echoed so a client report can be matched to server logs
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from clipcode.core.config import settings
from clipcode.core.errors import (
    AppError,
    NotFoundAppError,
    PayloadTooLargeAppError,
    RateLimitedAppError,
    StoreUnavailableError,
    ValidationAppError,
)
from clipcode.core.logging import get_request_id

logger = logging.getLogger(__name__)

GENERIC_ERROR_CODE = "internal_server_error"
GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."


def _status_for(exc: AppError) -> int:
    # Order matters: PayloadTooLargeAppError is a ValidationAppError
    if isinstance(exc, PayloadTooLargeAppError):
        return 413
    if isinstance(exc, ValidationAppError):
        return 400
    if isinstance(exc, NotFoundAppError):
        return 404
    if isinstance(exc, RateLimitedAppError):
        return 429
    # CodeGenerationExhaustedAppError and anything else is a server fault
    return 500


def _rate_limit_headers(exc: RateLimitedAppError) -> dict[str, str]:
    headers = {"Retry-After": str(exc.reset_seconds)}
    if settings.app.rate_limit_include_headers:
        headers["X-RateLimit-Limit"] = str(exc.limit)
        headers["X-RateLimit-Remaining"] = "0"
        headers["X-RateLimit-Reset"] = str(exc.reset_at)
    return headers


def _error_response(status_code: int, content: dict, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": content}, headers=headers)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Answer an AppError with the status its class maps to.

    Store failures get the generic internal error body; 429 answers carry
    Retry-After and, when enabled, the X-RateLimit-* headers.
    """
    if isinstance(exc, StoreUnavailableError):
        logger.error(
            "store_error_handled",
            extra={
                "error_code": exc.code,
                "request_method": request.method,
                "request_id": get_request_id(),
            },
        )
        return _error_response(
            500,
            {
                "code": GENERIC_ERROR_CODE,
                "message": GENERIC_ERROR_MESSAGE,
                "request_id": get_request_id(),
            },
        )

    status_code = _status_for(exc)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_id": get_request_id(),
        },
    )

    error_content = {
        "code": exc.code,
        "message": exc.message,
        "request_id": get_request_id(),
    }
    if exc.details:
        error_content["details"] = exc.details

    headers = _rate_limit_headers(exc) if isinstance(exc, RateLimitedAppError) else None
    return _error_response(status_code, error_content, headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Answer malformed bodies and query strings with 400.

    Only error locations and types are returned; the offending input may be
    clip content and is never echoed.
    """
    fields = [
        {"loc": [str(part) for part in error.get("loc", ())], "type": error.get("type")}
        for error in exc.errors()
    ]
    logger.warning(
        "request_validation_failed",
        extra={"error_count": len(fields), "request_id": get_request_id()},
    )
    return _error_response(
        400,
        {
            "code": "invalid_request",
            "message": "Request body or parameters are malformed",
            "request_id": get_request_id(),
            "details": {"context": {"fields": fields}},
        },
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort for anything not raised as an AppError.

    The exception type goes to the log; the client only sees the generic body.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_method": request.method,
            "request_id": get_request_id(),
        },
    )

    return _error_response(
        500,
        {
            "code": GENERIC_ERROR_CODE,
            "message": GENERIC_ERROR_MESSAGE,
            "request_id": get_request_id(),
        },
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register the handlers on ``app``."""
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(Exception)(general_exception_handler)
