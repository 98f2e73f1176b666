"""Request logging middleware."""

import time
from typing import Awaitable, Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()

SESSION_CONTEXT_HEADERS = (("X-Event-Id", "event_id"), ("X-Session-Id", "session_id"))


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every request with timing and the anonymous session it came from."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start_time = time.perf_counter()
        request_id = getattr(request.state, "request_id", "unknown")

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        for header, key in SESSION_CONTEXT_HEADERS:
            value = request.headers.get(header)
            if value:
                structlog.contextvars.bind_contextvars(**{key: value})

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                error=str(e),
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )
            raise

        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        if response.status_code >= 500:
            logger.warning(
                "request_completed", status_code=response.status_code, duration_ms=duration_ms
            )
        else:
            logger.info(
                "request_completed", status_code=response.status_code, duration_ms=duration_ms
            )
        return response
