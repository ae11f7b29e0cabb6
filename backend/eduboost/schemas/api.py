"""
EduBoost Gateway — Pydantic Response Schemas
=============================================

What:  Pydantic models defining the JSON the gateway returns.
Why:   One place for the wire contract with the browser client, and
       OpenAPI docs generated from it.
How:   Python attributes are snake_case; the wire names are the camelCase
       names the existing client reads (expiresInMs, audioDataUrl, ...).
       FastAPI serializes response models by alias.

Request bodies are deliberately NOT modelled here: they go through
services.validation.require_text() so failures keep the 400 error codes
the client understands instead of FastAPI's 422 shape.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictStr


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ══════════════════════════════════════════════════════════════════════════
# Auth
# ══════════════════════════════════════════════════════════════════════════


class LoginResponse(_CamelModel):
    token: str = Field(description="Bearer token (64 hex chars)")
    role: str = Field(description="student or professor")
    expires_in_ms: int = Field(alias="expiresInMs", description="Session lifetime in ms")


class AuthStatusResponse(_CamelModel):
    """
    Who:   Returned by GET /api/auth/status on app load.
    role is omitted when the caller is not authenticated.
    """
    auth_enabled: bool = Field(alias="authEnabled")
    authenticated: bool
    role: Optional[str] = None


# ══════════════════════════════════════════════════════════════════════════
# Study tools
# ══════════════════════════════════════════════════════════════════════════


class Flashcard(BaseModel):
    """One card; mirrors the strict JSON schema sent to the upstream model."""
    id: StrictStr
    question: StrictStr
    answer: StrictStr


class SummaryResponse(BaseModel):
    summary: str


class FlashcardsResponse(BaseModel):
    flashcards: List[Flashcard]


class PodcastResponse(_CamelModel):
    audio_data_url: str = Field(alias="audioDataUrl", description="data:audio/mp3;base64,...")


# ══════════════════════════════════════════════════════════════════════════
# Health
# ══════════════════════════════════════════════════════════════════════════


class RateLimitInfo(_CamelModel):
    window_ms: int = Field(alias="windowMs")
    max_requests: int = Field(alias="maxRequests")


class HealthResponse(_CamelModel):
    ok: bool
    auth_enabled: bool = Field(alias="authEnabled")
    rate_limit: RateLimitInfo = Field(alias="rateLimit")


# ══════════════════════════════════════════════════════════════════════════
# Errors
# ══════════════════════════════════════════════════════════════════════════


class ErrorDetail(_CamelModel):
    code: str = Field(description="Stable machine-readable code, e.g. RATE_LIMITED")
    message: str
    details: Optional[Dict[str, Any]] = None
    request_id: Optional[str] = Field(
        default=None,
        alias="requestId",
        description="Upstream correlation id, when the failure came from the AI API",
    )


class ErrorResponse(BaseModel):
    """
    Standardized error body for every failing call (documentation only;
    handlers build it through exceptions.normalize_error()).

    Example:
        {"error": {"code": "INVALID_INPUT", "message": "Field \"content\" cannot be empty.",
                   "details": null, "requestId": null}}
    """
    error: ErrorDetail
