"""Global exception handlers for FastAPI application."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from catalog_service.core.exceptions import AppException, RateLimitException
from catalog_service.core.schemas import FieldError, ProblemDetails, ValidationProblemDetails
from catalog_service.infra.metrics import tracking

logger = logging.getLogger(__name__)

_JSON_SCALARS = (str, int, float, bool, type(None))


def _get_request_id(request: Request) -> str | None:
    """Extract request ID from request state."""
    return getattr(request.state, "request_id", None)


def problem_content(exc: AppException, *, instance: str, request_id: str | None) -> dict[str, Any]:
    """Render an application exception as an RFC 7807 document.

    Args:
        exc: The application exception.
        instance: URI identifying this occurrence.
        request_id: Request ID for log correlation.

    Returns:
        Dictionary representing the problem detail.
    """
    problem = ProblemDetails(
        type=exc.type,
        title=exc.title,
        status=exc.status_code,
        detail=exc.detail,
        instance=exc.instance or instance,
        request_id=request_id,
    )
    content = problem.model_dump(exclude_none=True)
    if exc.extra:
        content.update(exc.extra)
    return content


async def app_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Convert AppException instances into RFC 7807 responses."""
    assert isinstance(exc, AppException)
    request_id = _get_request_id(request)

    tracking.track_error(
        error_type=exc.type,
        endpoint=request.url.path,
        status_code=exc.status_code,
        extra={"detail": exc.detail},
    )

    logger.warning(
        "Application exception occurred",
        extra={
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
            "exception_type": exc.type,
            "status_code": exc.status_code,
            "detail": exc.detail,
        },
    )

    headers = {}
    if isinstance(exc, RateLimitException) and exc.retry_after is not None:
        headers["Retry-After"] = str(exc.retry_after)

    return JSONResponse(
        status_code=exc.status_code,
        content=problem_content(exc, instance=request.url.path, request_id=request_id),
        headers=headers or None,
    )


async def validation_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Convert request validation errors into RFC 7807 responses with field details."""
    assert isinstance(exc, RequestValidationError)
    request_id = _get_request_id(request)

    errors = []
    for error in exc.errors():
        value = error.get("input")
        errors.append(
            FieldError(
                field=".".join(str(loc) for loc in error["loc"]),
                message=error["msg"],
                type=error["type"],
                value=value if isinstance(value, _JSON_SCALARS) else str(value),
            )
        )

    tracking.track_error(
        error_type="validation-error",
        endpoint=request.url.path,
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    logger.warning(
        "Request validation failed",
        extra={
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
            "error_count": len(errors),
        },
    )

    problem = ValidationProblemDetails(
        type="validation-error",
        title="Validation Error",
        status=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=f"Request validation failed for {len(errors)} field(s)",
        instance=request.url.path,
        request_id=request_id,
        errors=errors,
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=problem.model_dump(mode="json", exclude_none=True),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected exceptions with traceback and return a generic 500."""
    request_id = _get_request_id(request)

    tracking.track_unhandled_exception(
        exception_type=type(exc).__name__,
        endpoint=request.url.path,
    )
    logger.error(
        "Unexpected exception occurred",
        extra={
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
            "exception_type": type(exc).__name__,
            "exception_message": str(exc),
        },
        exc_info=exc,
    )

    # Don't expose internal details
    problem = ProblemDetails(
        type="internal-error",
        title="Internal Server Error",
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="An unexpected error occurred while processing your request",
        instance=request.url.path,
        request_id=request_id,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=problem.model_dump(exclude_none=True),
    )


def configure_exception_handlers(app: FastAPI) -> None:
    """Register the handlers that render every error as RFC 7807 problem details.

    Example:
            app = FastAPI()
        configure_exception_handlers(app)
    """
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
