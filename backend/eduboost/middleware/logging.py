"""
EduBoost Gateway — Request Logging Middleware
==============================================

What:  One access log line per request: method, path, status, duration,
       request ID and client IP.
Why:   Upstream calls dominate latency (summaries 2-10s, speech up to ~40s);
       durations per path show where time goes.

What we log vs what we DON'T log (privacy):
    ✅ Log: method, path, status, duration, IP, request ID
    ❌ Don't log: request bodies (course material, passwords), Authorization headers
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from eduboost.middleware.request_id import request_id_var

logger = logging.getLogger("eduboost.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request at a level chosen by status class (5xx ERROR, 4xx WARNING)."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()
        client_ip = getattr(request.client, "host", "unknown") if request.client else "unknown"
        method = request.method
        path = request.url.path

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        rid = request_id_var.get("")
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        # Health probes are frequent; keep them out of INFO logs
        if path.endswith("/health") and log_level == logging.INFO:
            log_level = logging.DEBUG

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )

        return response
