"""Request correlation and access logging middleware.

:class:`RequestIdMiddleware` preserves an incoming ``X-Request-ID`` header
(or generates a UUID-4), echoes it on the response, and binds it into the
structlog context so every event logged while serving the request carries
it.  :class:`AccessLogMiddleware` emits one ``http_request`` event per
request with method, path, status and duration.
"""
from __future__ import annotations

import time
import uuid
from typing import Awaitable, Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger("guardrails.access")

REQUEST_ID_HEADER = "X-Request-ID"

CallNext = Callable[[Request], Awaitable[Response]]


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Attach a correlation id to the request, its logs, and its response."""

    async def dispatch(self, request: Request, call_next: CallNext) -> Response:  # type: ignore[override]
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        structlog.contextvars.bind_contextvars(request_id=request_id)
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Log every request with timing; level follows the status class."""

    async def dispatch(self, request: Request, call_next: CallNext) -> Response:  # type: ignore[override]
        start = time.perf_counter()
        response = await call_next(request)

        fields: dict[str, object] = {
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round((time.perf_counter() - start) * 1000, 2),
        }
        if request.url.query:
            fields["query"] = str(request.url.query)

        if response.status_code >= 500:
            logger.error("http_request", **fields)
        elif response.status_code >= 400:
            logger.warning("http_request", **fields)
        else:
            logger.info("http_request", **fields)
        return response
