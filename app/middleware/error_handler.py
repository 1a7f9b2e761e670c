"""Error handling middleware."""

from typing import Any

import structlog
from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.exceptions import AppException, MissingRelation

logger = structlog.get_logger(__name__)


def _error_body(request: Request, error: str, message: Any, **extra: Any) -> dict[str, Any]:
    return {"error": error, "message": message, **extra, "path": request.url.path}


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Handle application and scheduling exceptions.

    Domain errors (``SlotConflict``, ``PastDateNotAllowed`` and friends) keep
    their class name as the ``error`` code. A ``MissingRelation`` also reports
    which relation was absent and is logged, since it points at broken data
    rather than a bad request.

    Args:
        request: Request object
        exc: Application exception

    Returns:
        JSON error response
    """
    extra: dict[str, Any] = {}
    if isinstance(exc, MissingRelation):
        extra["relation"] = exc.relation

    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(
            "application_error",
            error=exc.__class__.__name__,
            message=exc.message,
            method=request.method,
            path=request.url.path,
            **extra,
        )

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.__class__.__name__, exc.message, **extra),
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Handle HTTP exceptions raised by routing and the auth dependencies."""
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, "HTTPException", exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """
    Handle request validation errors.

    Args:
        request: Request object
        exc: Validation exception

    Returns:
        JSON error response with validation details
    """
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body(
            request,
            "ValidationError",
            "Request validation failed",
            details=jsonable_encoder(exc.errors()),
        ),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Log an unexpected failure with its traceback and answer with a generic 500.

    The response never carries exception details; the request id bound by the
    logging middleware ties the log entry to the ``X-Request-ID`` header.
    """
    logger.error(
        "unhandled_exception",
        error=exc.__class__.__name__,
        method=request.method,
        path=request.url.path,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(request, "InternalServerError", "An unexpected error occurred"),
    )
