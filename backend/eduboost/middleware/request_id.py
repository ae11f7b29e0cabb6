"""
EduBoost Gateway — Request ID Middleware
=========================================

What:  Assigns a correlation ID to each request and returns it in X-Request-ID.
Why:   Ties together every log line written while serving one request.
How:   Reuses a client-provided X-Request-ID or generates a short UUID, stores
       it in a ContextVar for loggers and in request.state for handlers.

Not to be confused with `requestId` in error bodies: that one is the upstream
AI API's own correlation id, useful when talking to the provider's support.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own value
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Client-supplied IDs longer than this are replaced (keeps log lines bounded)
MAX_REQUEST_ID_LENGTH = 64


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID", "")
        if not rid or len(rid) > MAX_REQUEST_ID_LENGTH:
            rid = uuid.uuid4().hex[:8]

        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers["X-Request-ID"] = rid
        return response
