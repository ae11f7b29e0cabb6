"""
EduBoost Gateway — FastAPI Dependencies
========================================

What:  Request-scoped accessors for shared state, the authentication gate and
       the JSON body reader.
Why:   Routes declare what they need; FastAPI resolves it in order, so
       router-level `require_auth` always runs before the body is parsed.
How:   Shared objects are created once in create_app() and stored on app.state.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

from fastapi import Request

from eduboost.config import Settings
from eduboost.exceptions import ApiError
from eduboost.services.llm_base import LLMService
from eduboost.services.session_store import ROLE_STUDENT, SessionStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthContext:
    """Who is calling. `token` is None in open mode."""

    role: str
    token: Optional[str] = None


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_llm_service(request: Request) -> LLMService:
    return request.app.state.llm_service


def get_bearer_token(request: Request) -> Optional[str]:
    """Token from `Authorization: Bearer <token>`, or None."""
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None
    token = header[len("Bearer "):].strip()
    return token or None


async def require_auth(request: Request) -> AuthContext:
    """
    Gate for protected routes.

    Open mode (no APP_PASSWORD): no-op, caller is treated as a student.
    Otherwise the bearer token must map to a live session. The Session is
    captured here, so a sweep later in the same request cannot undo it.

    Raises:
        ApiError(401, UNAUTHORIZED): token missing, unknown or expired.
    """
    settings = get_settings(request)
    if not settings.auth_enabled:
        return AuthContext(role=ROLE_STUDENT)

    token = get_bearer_token(request)
    session = get_session_store(request).lookup(token)
    if session is None:
        raise ApiError(401, "UNAUTHORIZED", "Password required or session expired.")

    return AuthContext(role=session.role, token=session.token)


async def json_body(request: Request) -> Any:
    """
    Decoded JSON request body.

    An empty body decodes to None so the validator reports INVALID_INPUT.

    Raises:
        ApiError(413, PAYLOAD_TOO_LARGE): body larger than max_body_bytes.
        ApiError(400, INVALID_JSON): body is not valid JSON.
    """
    settings = get_settings(request)

    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > settings.max_body_bytes:
        raise ApiError(413, "PAYLOAD_TOO_LARGE", "Request body is too large.")

    raw = await request.body()
    if len(raw) > settings.max_body_bytes:
        raise ApiError(413, "PAYLOAD_TOO_LARGE", "Request body is too large.")
    if not raw.strip():
        return None

    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError, RecursionError):
        # RecursionError: nesting deeper than the decoder can follow
        logger.info("Rejected malformed JSON body on %s", request.url.path)
        raise ApiError(400, "INVALID_JSON", "Malformed JSON payload.")
