import logging
import sys
import time
import uuid
from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import settings

REQUEST_ID_HEADER = "X-Request-ID"

# RequestLoggingMiddleware already writes one line per request; SQL echo is
# only wanted when LOG_LEVEL is DEBUG.
DUPLICATE_LOGGERS = ("uvicorn.access",)
SQL_LOGGERS = ("sqlalchemy.engine",)


def _renderer() -> Any:
    if settings.DEBUG or settings.LOG_FORMAT.lower() == "console":
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


def _log_level() -> int:
    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging() -> None:
    """Route structlog and stdlib records through one formatter.

    Values bound with ``structlog.contextvars`` (the request id) end up on
    every record, including those from libraries that use stdlib logging.
    """
    pre_chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, _renderer()],
        )
    )

    level = _log_level()
    sql_level = logging.INFO if level <= logging.DEBUG else logging.WARNING
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in DUPLICATE_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    for name in SQL_LOGGERS:
        logging.getLogger(name).setLevel(sql_level)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tag the request with an id, echo it back and log the outcome."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)
        logger = structlog.get_logger("http").bind(
            method=request.method,
            path=request.url.path,
            query=request.url.query or None,
        )

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            await logger.aexception("request_failed", duration_ms=_elapsed_ms(start))
            raise

        response.headers[REQUEST_ID_HEADER] = request_id
        await logger.ainfo(
            "request",
            status=response.status_code,
            duration_ms=_elapsed_ms(start),
            client=request.client.host if request.client else "unknown",
        )
        return response


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)
