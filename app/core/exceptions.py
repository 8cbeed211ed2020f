"""Application-wide exception classes and handlers.

Every error leaves the API in the same envelope as successful responses::

    {"success": false, "message": "...", "error": "..."}

``message`` is the fixed, user-facing text; ``error`` carries the underlying
detail for diagnostics and is omitted when there is none.
"""

from typing import Any

import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = structlog.get_logger(__name__)


class AppError(Exception):
    """Base exception for application errors.

    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: str = "INTERNAL_ERROR",
        error: str | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.error = error
        super().__init__(message)


class UnauthorizedError(AppError):
    """Authentication required error (401)."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code="UNAUTHORIZED",
        )


class ForbiddenError(AppError):
    """Access forbidden error (403)."""

    def __init__(self, message: str = "Access denied. Insufficient permissions."):
        super().__init__(
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            error_code="FORBIDDEN",
        )


class DashboardQueryError(AppError):
    """A dashboard aggregation could not be computed (500).

    Raised by the dashboard routes when the store fails; no partial payload
    is ever returned alongside it.
    """

    def __init__(self, message: str, error: str | None = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code="DASHBOARD_QUERY_FAILED",
            error=error,
        )


def _envelope(message: str, error: str | None) -> dict[str, Any]:
    content: dict[str, Any] = {"success": False, "message": message}
    if error:
        content["error"] = error
    return content


async def app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle AppError and return the standard failure envelope."""
    logger.error(
        "app_error",
        message=exc.message,
        code=exc.error_code,
        status=exc.status_code,
        error=exc.error,
        path=request.url.path,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=_envelope(exc.message, exc.error),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unhandled exceptions with a generic error response."""
    logger.exception("unhandled_exception", path=request.url.path)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_envelope("Server Error", None),
    )


def register_exception_handlers(app: FastAPI, *, debug: bool = False) -> None:
    """Register exception handlers with the FastAPI app.

    Args:
        app: The FastAPI application instance.
        debug: If True, unhandled exceptions propagate with stack traces.
    """
    app.add_exception_handler(AppError, app_exception_handler)  # type: ignore[arg-type]
    if not debug:
        app.add_exception_handler(Exception, unhandled_exception_handler)
