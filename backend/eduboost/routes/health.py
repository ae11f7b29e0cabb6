"""
EduBoost Gateway — Health Check Route
======================================

What:  Liveness probe that also tells the client whether login is required
       and which rate limit applies.
Why:   The frontend reads authEnabled on boot to decide whether to show the
       password screen.

Unlike most health endpoints this one IS rate limited (it lives under the
API prefix like everything else). Probes from one load balancer IP at the
usual 10-30s interval stay far below the default cap.
"""

from fastapi import APIRouter, Depends

from eduboost.config import Settings
from eduboost.dependencies import get_settings
from eduboost.schemas.api import HealthResponse, RateLimitInfo

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check(settings: Settings = Depends(get_settings)) -> HealthResponse:
    return HealthResponse(
        ok=True,
        auth_enabled=settings.auth_enabled,
        rate_limit=RateLimitInfo(
            window_ms=settings.rate_limit_window_ms,
            max_requests=settings.rate_limit_max_requests,
        ),
    )
