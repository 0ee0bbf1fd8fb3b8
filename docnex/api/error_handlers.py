"""Error handlers for API routes.

Every error leaves the service as an ErrorResponse. AI failures carry their
own status code and are rendered with the Spanish message shown to end users;
rate limits add a Retry-After header.
"""

from __future__ import annotations

import math

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from docnex.core.exceptions import (
    AgentExecutionError,
    AIError,
    AIRateLimitError,
    DatabaseClientError,
    RecordNotFoundError,
    get_user_friendly_message,
)
from docnex.core.logging import get_logger


logger = get_logger(__name__)


# =============================================================================
# Error Response Model
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response model.

    Attributes:
        error: Error type/category
        detail: Human-readable error description
        code: Optional machine-readable error code
        path: Optional request path that caused the error
    """

    error: str = Field(
        ...,
        description="Error type or category",
    )
    detail: str = Field(
        ...,
        description="Human-readable error description",
    )
    code: str | None = Field(
        default=None,
        description="Machine-readable error code",
    )
    path: str | None = Field(
        default=None,
        description="Request path that caused the error",
    )


_ERROR_TYPES: dict[int, str] = {
    400: "BadRequest",
    401: "Unauthorized",
    403: "Forbidden",
    404: "NotFound",
    408: "RequestTimeout",
    422: "ValidationError",
    429: "TooManyRequests",
    500: "InternalServerError",
    502: "BadGateway",
    503: "ServiceUnavailable",
}


def _error_response(
    request: Request,
    status_code: int,
    detail: str,
    code: str | None = None,
    error: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=error or _ERROR_TYPES.get(status_code, "Error"),
            detail=detail,
            code=code,
            path=str(request.url.path),
        ).model_dump(),
        headers=headers,
    )


# =============================================================================
# Exception Handlers
# =============================================================================

async def http_exception_handler(
    request: Request,
    exc: HTTPException,
) -> JSONResponse:
    """Handle HTTPException with ErrorResponse schema."""
    return _error_response(request, exc.status_code, str(exc.detail))


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Handle Pydantic validation errors.

    Args:
        request: FastAPI request object
        exc: RequestValidationError raised

    Returns:
        JSONResponse with ErrorResponse format and field details
    """
    field_errors = []
    for error in exc.errors():
        loc = ".".join(str(x) for x in error.get("loc", []))
        msg = error.get("msg", "Invalid value")
        field_errors.append(f"{loc}: {msg}")

    detail = "; ".join(field_errors) if field_errors else "Validation error"
    return _error_response(request, 422, detail, code="VALIDATION_ERROR", error="ValidationError")


async def ai_error_handler(
    request: Request,
    exc: AIError,
) -> JSONResponse:
    """Handle AI failures with their status code and the end-user message.

    Args:
        request: FastAPI request object
        exc: AIError raised

    Returns:
        JSONResponse with the error's status, plus Retry-After on rate limits
    """
    status_code = exc.status_code or 500
    headers = None
    if isinstance(exc, AIRateLimitError):
        headers = {"Retry-After": str(math.ceil(exc.retry_after))}

    if isinstance(exc, AgentExecutionError):
        logger.error(
            "Agent execution failed",
            agent=exc.agent_name,
            step=exc.step,
            error=exc.message,
            path=str(request.url.path),
        )
    else:
        logger.warning("AI request failed", code=exc.code, error=exc.message, path=str(request.url.path))

    return _error_response(
        request,
        status_code,
        get_user_friendly_message(exc),
        code=exc.code,
        headers=headers,
    )


async def record_not_found_handler(
    request: Request,
    exc: RecordNotFoundError,
) -> JSONResponse:
    """Handle RecordNotFoundError.

    Returns:
        JSONResponse with 404 status
    """
    return _error_response(request, 404, str(exc), code="RECORD_NOT_FOUND")


async def database_error_handler(
    request: Request,
    exc: DatabaseClientError,
) -> JSONResponse:
    """Handle DatabaseClientError.

    Errors the backend answered with (a status or error code) are reported
    as 502; connection failures as 503.
    """
    logger.error(
        "Database request failed",
        table=exc.table,
        status_code=exc.status_code,
        code=exc.code,
        error=str(exc),
        path=str(request.url.path),
    )
    answered = exc.status_code is not None or exc.code is not None
    status_code = 502 if answered else 503
    return _error_response(request, status_code, "Database request failed", code="DATABASE_ERROR")


async def generic_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle uncaught exceptions.

    Args:
        request: FastAPI request object
        exc: Exception raised

    Returns:
        JSONResponse with 500 status
    """
    logger.exception(
        "Unhandled exception",
        path=str(request.url.path),
        error_type=type(exc).__name__,
    )
    return _error_response(request, 500, "An unexpected error occurred", code="INTERNAL_ERROR")


# =============================================================================
# Registration Function
# =============================================================================

def register_error_handlers(app: FastAPI) -> None:
    """Register all error handlers with the FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(
        HTTPException,
        http_exception_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(
        RequestValidationError,
        validation_exception_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(
        AIError,
        ai_error_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(
        RecordNotFoundError,
        record_not_found_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(
        DatabaseClientError,
        database_error_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(
        Exception,
        generic_exception_handler,
    )


__all__ = [
    "ErrorResponse",
    "register_error_handlers",
]
