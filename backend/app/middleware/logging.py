"""
Site Content API — Request Logging Middleware
==============================================

What:  One access-log line per request with method, path, status, duration,
       request id and client address.
Why:   Uvicorn's access log has no request id and no duration; this line is
       what gets correlated with the dispatcher's own log entries.

Level by status:
    5xx → ERROR     (upload or database failures need a look)
    4xx → WARNING   (bad form input, missing rows, wrong verb)
    else → INFO

Request bodies and files are never logged.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.middleware.request_id import request_id_var

logger = logging.getLogger("sitecontent.access")

# Polled every few seconds by the load balancer
_QUIET_PATHS = frozenset({"/health"})


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each completed request on the `sitecontent.access` logger."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in _QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")
        status = response.status_code
        logger.log(
            level_for_status(status),
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
