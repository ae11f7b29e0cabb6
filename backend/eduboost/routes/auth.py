"""
EduBoost Gateway — Authentication Routes
=========================================

What:  Password login for the two roles and a session status probe.
How:   A correct shared password buys a bearer token from the SessionStore.
       These routes are NOT behind require_auth (they are how you get a token),
       but they are still rate limited, which throttles password guessing.

Route Inventory:
    POST /auth/login       student password → token
    POST /auth/prof-login  professor password → token
    GET  /auth/status      is my token still good?
"""

import logging
import secrets

from fastapi import APIRouter, Depends, Request

from eduboost.config import Settings
from eduboost.dependencies import get_bearer_token, get_session_store, get_settings, json_body
from eduboost.exceptions import ApiError
from eduboost.schemas.api import AuthStatusResponse, ErrorResponse, LoginResponse
from eduboost.services.session_store import ROLE_PROFESSOR, ROLE_STUDENT, SessionStore
from eduboost.services.validation import require_text

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


def _passwords_match(given: str, expected: str) -> bool:
    # Constant-time comparison; encode so non-ASCII passwords are accepted
    return secrets.compare_digest(given.encode("utf-8"), expected.encode("utf-8"))


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Student login",
)
async def login(
    body=Depends(json_body),
    settings: Settings = Depends(get_settings),
    sessions: SessionStore = Depends(get_session_store),
) -> LoginResponse:
    if not settings.auth_enabled:
        raise ApiError(500, "AUTH_NOT_CONFIGURED", "APP_PASSWORD is not configured on the server.")

    password = require_text(body, "password", settings.max_password_length)
    if not _passwords_match(password, settings.app_password):
        logger.warning("Failed student login attempt")
        raise ApiError(401, "INVALID_CREDENTIALS", "Incorrect password.")

    token = sessions.create_session(ROLE_STUDENT)
    return LoginResponse(token=token, role=ROLE_STUDENT, expires_in_ms=settings.session_ttl_ms)


@router.post(
    "/prof-login",
    response_model=LoginResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Professor login",
)
async def prof_login(
    body=Depends(json_body),
    settings: Settings = Depends(get_settings),
    sessions: SessionStore = Depends(get_session_store),
) -> LoginResponse:
    if not settings.auth_enabled:
        raise ApiError(500, "AUTH_NOT_CONFIGURED", "APP_PASSWORD is not configured on the server.")
    if not settings.prof_password:
        raise ApiError(
            500, "PROF_AUTH_NOT_CONFIGURED", "PROF_PASSWORD is not configured on the server."
        )

    password = require_text(body, "password", settings.max_password_length)
    if not _passwords_match(password, settings.prof_password):
        logger.warning("Failed professor login attempt")
        raise ApiError(401, "INVALID_CREDENTIALS", "Incorrect professor password.")

    token = sessions.create_session(ROLE_PROFESSOR)
    return LoginResponse(token=token, role=ROLE_PROFESSOR, expires_in_ms=settings.session_ttl_ms)


@router.get(
    "/status",
    response_model=AuthStatusResponse,
    response_model_exclude_none=True,
    summary="Current authentication state",
)
async def auth_status(
    request: Request,
    settings: Settings = Depends(get_settings),
    sessions: SessionStore = Depends(get_session_store),
) -> AuthStatusResponse:
    if not settings.auth_enabled:
        return AuthStatusResponse(auth_enabled=False, authenticated=True, role=ROLE_STUDENT)

    session = sessions.lookup(get_bearer_token(request))
    if session is None:
        return AuthStatusResponse(auth_enabled=True, authenticated=False)
    return AuthStatusResponse(auth_enabled=True, authenticated=True, role=session.role)
