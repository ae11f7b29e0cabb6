"""
EduBoost Gateway — Application Configuration
=============================================

What:  Centralized configuration management using Pydantic Settings.
Why:   Type-safe environment variable loading with validation on startup.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by main.py; everything else receives the Settings instance
       through app.state so tests can build isolated apps.
When:  Loaded once at module import time; validated before app starts.

Open mode:
    When APP_PASSWORD is empty, authentication is disabled entirely and every
    request is served as an authenticated student. This is a convenience switch
    for local development and demos. It is NOT a security feature: anyone who can
    reach the port can spend the upstream API quota.
"""

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Durations keep the millisecond units the browser client already uses
    (expiresInMs, windowMs) so values can be echoed without conversion.
    """

    # ── Upstream AI API ───────────────────────────────────────────────────
    # Required for every AI endpoint; missing key → MISSING_API_KEY (500)
    openai_api_key: str = Field(default="", description="Upstream API credential")
    openai_base_url: str = Field(default="https://api.openai.com/v1")
    summary_model: str = Field(default="gpt-4o-mini")
    flashcards_model: str = Field(default="gpt-4o-mini")
    tts_model: str = Field(default="gpt-4o-mini-tts")
    tts_voice: str = Field(default="alloy")

    # What: Total time budget for one upstream call (connect + read)
    # Speech synthesis of long texts is the slowest path (~20-40s)
    upstream_timeout_seconds: float = Field(default=60.0, gt=0, le=600)

    # ── Retry Configuration ───────────────────────────────────────────────
    # Only connection-establishment failures are retried (request never sent)
    retry_max_attempts: int = Field(default=2, ge=1, le=10)
    retry_min_wait: float = Field(default=0.5, ge=0, le=30)
    retry_max_wait: float = Field(default=4.0, ge=0, le=120)

    # ── Authentication ────────────────────────────────────────────────────
    # Empty app_password = open mode (see module docstring)
    app_password: str = Field(default="")
    prof_password: str = Field(default="")
    session_ttl_ms: int = Field(default=12 * 60 * 60 * 1000, ge=1_000)

    @field_validator("app_password", "prof_password")
    @classmethod
    def strip_password(cls, v: str) -> str:
        """Trailing newlines from secret files must not become part of the password."""
        return v.strip()

    # ── Rate Limiting ─────────────────────────────────────────────────────
    # What: Per-IP fixed window counter over every /api request
    rate_limit_window_ms: int = Field(default=60_000, ge=1_000)
    rate_limit_max_requests: int = Field(default=30, ge=1)

    # ── Payload Limits ────────────────────────────────────────────────────
    max_content_length: int = Field(default=12_000, ge=1)
    max_podcast_text_length: int = Field(default=8_000, ge=1)
    max_password_length: int = Field(default=256, ge=1)
    max_body_bytes: int = Field(default=1_048_576, ge=1_024)

    # ── HTTP Surface ──────────────────────────────────────────────────────
    api_prefix: str = Field(default="/api")

    # Honour X-Forwarded-For when running behind a reverse proxy (nginx, Vite dev server).
    # Leave off when exposed directly: clients could pick their own rate-limit key.
    trust_forwarded_for: bool = Field(default=False)
    cors_origins: str = Field(default="http://localhost:5173,http://localhost:3000")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8787, ge=1024, le=65535)
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    # ── Derived Values ────────────────────────────────────────────────────

    @property
    def auth_enabled(self) -> bool:
        return len(self.app_password) > 0

    @property
    def session_ttl_seconds(self) -> float:
        return self.session_ttl_ms / 1000

    @property
    def rate_limit_window_seconds(self) -> float:
        return self.rate_limit_window_ms / 1000

    @property
    def sweep_interval_seconds(self) -> float:
        """At least once per rate-limit window, never more often than every 30s."""
        return max(30.0, self.rate_limit_window_seconds)

    def validate_required_for_production(self) -> None:
        """
        What:  Validates that critical settings are configured.
        When:  Called during app startup (lifespan).
        Why:   Misconfiguration shows up in the logs at boot instead of on the
               first user request.
        """
        errors = []
        if not self.openai_api_key:
            errors.append(
                "OPENAI_API_KEY is not set. AI endpoints will answer MISSING_API_KEY."
            )
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


# Singleton instance used by the module-level app in main.py
settings = Settings()
