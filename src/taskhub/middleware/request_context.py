"""Request context middleware: request IDs and the access log.

Every request gets an ID, taken from an incoming X-Request-ID header or
generated. It is bound to structlog's contextvars so all log lines of the
request carry it, and it is echoed back in the response header.

One "http.request" event per request records method, path, status and
duration. Query strings are left out since they can carry filters only
meaningful to the caller.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a request ID to the log context and log each request once."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        started = time.perf_counter()
        response: Response = await call_next(request)
        duration_ms = round((time.perf_counter() - started) * 1000, 2)

        logger.info(
            "http.request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=duration_ms,
            client=request.client.host if request.client else None,
        )
        response.headers["X-Request-ID"] = request_id
        return response
