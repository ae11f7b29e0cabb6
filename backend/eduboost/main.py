"""
EduBoost Gateway — FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes shared state, middleware registration, route mounting,
       error normalization and lifecycle management in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn (uvicorn eduboost.main:app) and by tests.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌──────────┐ ┌──────────────┐         │
    │  │  Req ID  │→│ Logging  │→│  Rate Limit  │         │
    │  └──────────┘ └──────────┘ └──────────────┘         │
    │                                                     │
    │  Per-route:  require_auth → json_body → validate    │
    │                                                     │
    │  Shared state (app.state):                          │
    │  settings │ session_store │ rate_limiter │          │
    │  llm_service │ sweeper                              │
    │                                                     │
    │  Exception Handlers → normalize_error()             │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, config check, start store sweeper
    Shutdown: stop sweeper, close upstream HTTP client
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from eduboost import __version__
from eduboost.config import Settings, settings as default_settings
from eduboost.exceptions import ApiError, normalize_error
from eduboost.middleware.logging import RequestLoggingMiddleware
from eduboost.middleware.rate_limit import RateLimitMiddleware
from eduboost.middleware.request_id import RequestIDMiddleware, request_id_var
from eduboost.routes import auth, health, study
from eduboost.services.llm_base import LLMService
from eduboost.services.openai_service import OpenAIService
from eduboost.services.rate_limiter import RateLimiter
from eduboost.services.session_store import SessionStore
from eduboost.services.sweeper import StoreSweeper

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str) -> None:
    """
    Configure logging for the whole process. Called once from the lifespan.

    Format: 2024-01-15T12:00:00 [INFO] eduboost.access: POST /api/summarize 200 ...
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-request lines from these libraries duplicate our access log
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    config: Settings = app.state.settings

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(config.log_level)
    logger.info("EduBoost gateway %s starting up...", __version__)

    try:
        config.validate_required_for_production()
    except ValueError as e:
        # Keep serving: health and auth still work, AI calls answer MISSING_API_KEY
        logger.error("Configuration error: %s", str(e))

    if not config.auth_enabled:
        logger.warning(
            "APP_PASSWORD is empty: authentication is DISABLED, every request is "
            "served as an authenticated student (open mode)"
        )

    app.state.sweeper.start()
    logger.info(
        "Rate limit: %d requests / %dms per client; session TTL %dms",
        config.rate_limit_max_requests,
        config.rate_limit_window_ms,
        config.session_ttl_ms,
    )

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("EduBoost gateway shutting down...")
    await app.state.sweeper.stop()
    await app.state.llm_service.aclose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(error, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    normalized = normalize_error(error)
    return JSONResponse(status_code=normalized.status, content=normalized.body, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Funnel every failure through normalize_error().

    Handler map:
        ApiError                → its own status/code
        HTTPException (404/405) → same status, NOT_FOUND / METHOD_NOT_ALLOWED
        RequestValidationError  → 400 INVALID_INPUT
        Exception (fallback)    → 500 INTERNAL_ERROR, details suppressed
    """

    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, exc: ApiError):
        rid = request_id_var.get("")
        log = logger.error if exc.status >= 500 else logger.info
        log("[%s] %s %s: %s", rid, exc.status, exc.code, exc.message)
        return _error_response(exc)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        codes = {404: "NOT_FOUND", 405: "METHOD_NOT_ALLOWED"}
        message = exc.detail if isinstance(exc.detail, str) else "Request failed."
        # exc.headers carries Allow on 405
        return _error_response(
            ApiError(exc.status_code, codes.get(exc.status_code, "HTTP_ERROR"), message),
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        return _error_response(ApiError(400, "INVALID_INPUT", "Request could not be validated."))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Stack trace goes to the server log only, never to the response."""
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return _error_response(exc)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    llm_service: Optional[LLMService] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings:     Defaults to the environment-loaded singleton.
        llm_service:  Defaults to an OpenAIService built from settings.
                      Tests inject a service over httpx.MockTransport.

    Each call builds fresh stores, so every app instance (and every test)
    has isolated sessions and rate buckets.
    """
    config = settings or default_settings

    app = FastAPI(
        title="EduBoost Gateway",
        description=(
            "Authenticated, rate-limited gateway between the EduBoost study app "
            "and an upstream generative-AI API."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Shared State ──────────────────────────────────────────────────────
    app.state.settings = config
    app.state.session_store = SessionStore(ttl_seconds=config.session_ttl_seconds)
    app.state.rate_limiter = RateLimiter(
        max_requests=config.rate_limit_max_requests,
        window_seconds=config.rate_limit_window_seconds,
    )
    app.state.llm_service = llm_service or OpenAIService(config)
    app.state.sweeper = StoreSweeper(
        app.state.session_store,
        app.state.rate_limiter,
        interval_seconds=config.sweep_interval_seconds,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added = first to execute: RequestID → Logging → RateLimit → GZip
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Outermost so rate-limited and error responses still carry CORS headers
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins_list,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )

    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(auth.router, prefix=config.api_prefix)
    app.include_router(study.router, prefix=config.api_prefix)
    app.include_router(health.router, prefix=config.api_prefix)

    return app


def run() -> None:
    """Console entry point: `eduboost-gateway`."""
    import uvicorn

    uvicorn.run(
        "eduboost.main:app",
        host=default_settings.backend_host,
        port=default_settings.backend_port,
    )


# uvicorn expects `eduboost.main:app` to be importable
app = create_app()
