"""FastAPI exception handlers for converting domain errors to HTTP responses.

Every error body has the ToolError shape:
    {"success": false, "error_code", "message", "recovery", "details"}

Status mapping:
- 400 Bad Request: invalid booking or malformed webhook body
- 401 Unauthorized: webhook signature missing or invalid
- 502 Bad Gateway: Paystack declined or was unreachable
- 500 Internal Server Error: configuration or unexpected failures
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_502_BAD_GATEWAY,
)

from chezvous.config import ConfigurationError
from chezvous.models.errors import BookingError, ErrorCode, ToolError

logger = logging.getLogger(__name__)

ERROR_CODE_TO_HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.INVALID_BOOKING: HTTP_400_BAD_REQUEST,
    ErrorCode.MALFORMED_EVENT: HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_WEBHOOK_SIGNATURE: HTTP_401_UNAUTHORIZED,
    ErrorCode.GATEWAY_ERROR: HTTP_502_BAD_GATEWAY,
    ErrorCode.CONFIGURATION_ERROR: HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_http_status_for_error(code: ErrorCode) -> int:
    """Get HTTP status code for an ErrorCode, defaulting to 400."""
    return ERROR_CODE_TO_HTTP_STATUS.get(code, HTTP_400_BAD_REQUEST)


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    """Convert a BookingError to a ToolError JSON response."""
    return JSONResponse(
        status_code=get_http_status_for_error(exc.code),
        content=exc.to_tool_error().model_dump(mode="json"),
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report request validation failures as INVALID_BOOKING (400)."""
    fields = [
        ".".join(str(part) for part in err["loc"] if part != "body") or "body"
        for err in exc.errors()
    ]
    details = {
        "fields": fields,
        "errors": [
            {"field": field, "message": err["msg"]}
            for field, err in zip(fields, exc.errors())
        ],
    }
    return JSONResponse(
        status_code=HTTP_400_BAD_REQUEST,
        content=ToolError.from_code(ErrorCode.INVALID_BOOKING, details).model_dump(mode="json"),
    )


async def configuration_error_handler(
    request: Request, exc: ConfigurationError
) -> JSONResponse:
    """Report missing configuration without leaking values."""
    logger.error("Configuration error: %s", exc)
    details = {"missing": exc.missing} if exc.missing else None
    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content=ToolError.from_code(ErrorCode.CONFIGURATION_ERROR, details).model_dump(mode="json"),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback for uncaught exceptions; internal details are only logged."""
    logger.exception("Unhandled exception: %s", exc)

    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error_code": "ERR_INTERNAL",
            "message": "An unexpected error occurred",
            "recovery": "Please try again later or contact support",
            "details": None,
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(BookingError, booking_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(ConfigurationError, configuration_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)
