"""
EduBoost Gateway — Rate Limiting Middleware
============================================

What:  Applies the per-IP fixed window limiter to every request under the
       API prefix, before authentication or any other processing.
Why:   Login attempts and health probes count too: the limiter is also the
       only brake on password guessing.
How:   Reads the shared RateLimiter from app.state. On denial, answers with
       the normalized RATE_LIMITED error and a Retry-After header without
       calling the route.

Limitations:
    State is per process. Several workers or instances each keep their own
    buckets, so the effective limit grows with the number of processes.
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from eduboost.config import Settings
from eduboost.exceptions import ApiError, normalize_error
from eduboost.services.rate_limiter import RateLimiter


def client_identifier(request: Request, trust_forwarded_for: bool = False) -> str:
    """Client IP used as the rate-limit key."""
    if trust_forwarded_for:
        forwarded = request.headers.get("X-Forwarded-For", "")
        # Left-most entry is the original client
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return getattr(request.client, "host", "unknown") if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        settings: Settings = request.app.state.settings
        if not request.url.path.startswith(settings.api_prefix):
            return await call_next(request)

        limiter: RateLimiter = request.app.state.rate_limiter
        client_id = client_identifier(request, settings.trust_forwarded_for)
        decision = limiter.check_and_consume(client_id)

        if not decision.allowed:
            error = ApiError(
                429,
                "RATE_LIMITED",
                "Too many requests. Please retry later.",
                details={
                    "retryAfterSeconds": decision.retry_after_seconds,
                    "windowMs": settings.rate_limit_window_ms,
                    "maxRequests": settings.rate_limit_max_requests,
                },
            )
            normalized = normalize_error(error)
            return JSONResponse(
                status_code=normalized.status,
                content=normalized.body,
                headers={"Retry-After": str(decision.retry_after_seconds)},
            )

        return await call_next(request)
