"""
Site Content API — Request ID Middleware
=========================================

What:  Tags every request with a short correlation id.
How:   Reuses the client's X-Request-ID header when present (the admin panel
       sends one per action), otherwise generates 8 hex characters. The id
       lives in a ContextVar for loggers and exception handlers, on
       request.state for handlers, and is echoed in the response header.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one thread each see their own id
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "X-Request-ID"


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Assigns request ids and propagates them to the response."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER) or new_request_id()
        request_id_var.set(rid)
        request.state.request_id = rid
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
