# src/studiorank/middleware/logging.py

"""Request/response logging middleware for the StudioRank API."""

import logging
import os
import time
import uuid
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("studiorank.api")

REQUEST_ID_HEADER = "X-Request-ID"

# Computation requests above this duration are logged at WARNING
SLOW_REQUEST_MS = float(os.getenv("SLOW_REQUEST_MS", "2000"))


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request with a correlation id and its duration.

    An inbound X-Request-ID header is reused so a scheduler can correlate
    its own logs with a computation run; otherwise a short id is generated.
    The id is echoed back on the response.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
        request.state.request_id = request_id
        started = time.perf_counter()
        context = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "client_ip": request.client.host if request.client else "unknown",
        }

        logger.info(
            "[%s] %s %s", request_id, request.method, request.url.path, extra=context
        )

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - started) * 1000
            logger.error(
                "[%s] %s %s -> ERROR (%.2fms): %s",
                request_id,
                request.method,
                request.url.path,
                duration_ms,
                e,
                extra={**context, "duration_ms": round(duration_ms, 2)},
                exc_info=True,
            )
            raise

        duration_ms = (time.perf_counter() - started) * 1000
        level = logging.WARNING if duration_ms > SLOW_REQUEST_MS else logging.INFO
        logger.log(
            level,
            "[%s] %s %s -> %d (%.2fms)",
            request_id,
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra={
                **context,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response  # type: ignore[no-any-return]
