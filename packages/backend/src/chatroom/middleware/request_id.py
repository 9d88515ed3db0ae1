"""Request ID + access logging middleware.

Learn: Every HTTP request gets an ID: the caller's X-Request-ID if it sent
one, otherwise a fresh UUID. The ID is bound to structlog's contextvars so
every log entry emitted while handling the request carries it, and it is
echoed back in the response header. One ``http.request`` entry is logged
per request with status and duration.

Starlette's BaseHTTPMiddleware only sees HTTP scopes; WebSocket and
Socket.IO traffic passes straight through.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag each request with an ID and log its outcome."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        started = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        response.headers["X-Request-ID"] = request_id
        logger.debug(
            "http.request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round(elapsed_ms, 2),
        )
        return response
