"""
EduBoost Gateway — OpenAI Upstream Service
===========================================

What:  LLMService implementation that calls the OpenAI HTTP API directly.
Why:   The browser never sees the API key; the gateway adds the credential,
       classifies upstream failures and unwraps successful payloads.
How:   One shared httpx.AsyncClient (connection pooling), JSON POSTs to
       /chat/completions and /audio/speech, tenacity retry for connection
       failures only.
Who:   Created in create_app(); called by the study routes.

Failure classification (non-2xx upstream):
    429      → UPSTREAM_RATE_LIMIT   (429)
    401/403  → UPSTREAM_AUTH_ERROR   (502) the client is authenticated to *us*;
                                     this is the gateway's key being rejected
    >= 500   → UPSTREAM_UNAVAILABLE  (502)
    other    → UPSTREAM_ERROR        (502)
    Every classified error carries the upstream x-request-id when present.

Retry policy:
    Only failures to *establish* a connection are retried (the request never
    reached OpenAI, so nothing was billed or generated). Timeouts after the
    request was sent and HTTP error statuses are never retried.
"""

import base64
import json
import logging
import time
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from eduboost.config import Settings
from eduboost.exceptions import ApiError
from eduboost.schemas.api import Flashcard
from eduboost.services.llm_base import LLMService

logger = logging.getLogger(__name__)

SUMMARY_FALLBACK = "Unable to generate a summary."

# Raised before any byte reaches the upstream: safe to retry
_RETRYABLE_ERRORS = (httpx.ConnectError, httpx.ConnectTimeout)


def _upstream_message(response: httpx.Response) -> str:
    """Best-effort human message from an upstream error response."""
    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            parsed = response.json()
        except (ValueError, RecursionError):
            parsed = None
        if isinstance(parsed, dict) and isinstance(parsed.get("error"), dict):
            message = parsed["error"].get("message")
            if isinstance(message, str) and message:
                return message
        return "OpenAI request failed."
    return response.text or "OpenAI request failed."


def classify_upstream_error(response: httpx.Response) -> ApiError:
    """Turn a non-2xx upstream response into a typed ApiError."""
    request_id = response.headers.get("x-request-id")
    details = {"upstreamMessage": _upstream_message(response)}
    status = response.status_code

    if status == 429:
        return ApiError(
            429, "UPSTREAM_RATE_LIMIT", "OpenAI rate limit reached. Retry later.",
            details, request_id,
        )
    if status in (401, 403):
        return ApiError(
            502, "UPSTREAM_AUTH_ERROR", "Upstream authentication failed.",
            details, request_id,
        )
    if status >= 500:
        return ApiError(
            502, "UPSTREAM_UNAVAILABLE", "OpenAI service is temporarily unavailable.",
            details, request_id,
        )
    return ApiError(502, "UPSTREAM_ERROR", "OpenAI request failed.", details, request_id)


def _first_message_content(data: Any) -> Any:
    """
    choices[0].message.content from a chat completion.

    A payload without a non-empty `choices` list is malformed; a choice
    without text is not (the model may legitimately answer nothing).
    """
    if not isinstance(data, dict):
        raise ApiError(502, "UPSTREAM_INVALID_RESPONSE", "OpenAI returned an unexpected payload.")
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        raise ApiError(502, "UPSTREAM_INVALID_RESPONSE", "OpenAI returned no choices.")
    message = choices[0].get("message")
    if not isinstance(message, dict):
        return None
    return message.get("content")


# ══════════════════════════════════════════════════════════════════════════
# OpenAI Service
# ══════════════════════════════════════════════════════════════════════════

class OpenAIService(LLMService):
    """
    OpenAI-backed study assistant.

    Args:
        settings: Application settings (credential, models, timeouts, retry)
        client:   Optional pre-built httpx.AsyncClient. Tests pass one built on
                  httpx.MockTransport; production lets the service own its client.
    """

    SUMMARY_SYSTEM_PROMPT = (
        "You are a patient tutor. You write clear, actionable summaries for students."
    )
    SUMMARY_USER_PROMPT = (
        "Summarize the following content for a student. Use bullet points and "
        "highlight the key concepts.\n\n{content}"
    )

    FLASHCARDS_SYSTEM_PROMPT = (
        "You create precise, concise flashcards for learning."
    )
    FLASHCARDS_USER_PROMPT = (
        "Generate 5 relevant flashcards from the text below. Each card must have an id, "
        "a short question and a concise answer.\n\nText:\n{content}"
    )

    SPEECH_PROMPT = (
        "Here is a course summary for a student. Read it in a calm, encouraging and "
        "professional tone, like a private tutor:\n\n{text}"
    )

    # Strict structured output: the model must return exactly this shape
    FLASHCARDS_RESPONSE_FORMAT: Dict[str, Any] = {
        "type": "json_schema",
        "json_schema": {
            "name": "flashcards_schema",
            "strict": True,
            "schema": {
                "type": "object",
                "properties": {
                    "flashcards": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "id": {"type": "string"},
                                "question": {"type": "string"},
                                "answer": {"type": "string"},
                            },
                            "required": ["id", "question", "answer"],
                            "additionalProperties": False,
                        },
                    },
                },
                "required": ["flashcards"],
                "additionalProperties": False,
            },
        },
    }

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.upstream_timeout_seconds),
            limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
        )
        logger.info(
            "OpenAIService initialized (base_url=%s, summary_model=%s, tts_model=%s)",
            settings.openai_base_url,
            settings.summary_model,
            settings.tts_model,
        )

    # ── Plumbing ──────────────────────────────────────────────────────────

    def _require_api_key(self) -> str:
        if not self.settings.openai_api_key:
            raise ApiError(500, "MISSING_API_KEY", "Missing OPENAI_API_KEY on server.")
        return self.settings.openai_api_key

    async def _post(self, endpoint: str, payload: Dict[str, Any]) -> httpx.Response:
        """
        POST to the upstream API and return a 2xx response.

        Raises:
            ApiError: MISSING_API_KEY before any I/O, classified UPSTREAM_*
                on non-2xx, UPSTREAM_UNAVAILABLE on transport failure.
        """
        api_key = self._require_api_key()
        url = f"{self.settings.openai_base_url.rstrip('/')}{endpoint}"
        headers = {"Authorization": f"Bearer {api_key}"}
        start_time = time.perf_counter()

        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(_RETRYABLE_ERRORS),
                stop=stop_after_attempt(self.settings.retry_max_attempts),
                wait=wait_exponential(
                    multiplier=self.settings.retry_min_wait,
                    max=self.settings.retry_max_wait,
                ) + wait_random(0, self.settings.retry_min_wait),
                before_sleep=before_sleep_log(logger, logging.WARNING),
                reraise=True,
            ):
                with attempt:
                    response = await self._client.post(url, json=payload, headers=headers)
        except httpx.TransportError as exc:
            logger.warning("Upstream %s unreachable: %s", endpoint, type(exc).__name__)
            raise ApiError(
                502,
                "UPSTREAM_UNAVAILABLE",
                "OpenAI service is temporarily unavailable.",
                {"upstreamMessage": str(exc) or type(exc).__name__},
            ) from exc

        duration_ms = (time.perf_counter() - start_time) * 1000

        if not response.is_success:
            error = classify_upstream_error(response)
            logger.warning(
                "Upstream %s failed: status=%d code=%s upstream_request_id=%s (%.0fms)",
                endpoint,
                response.status_code,
                error.code,
                error.request_id,
                duration_ms,
            )
            raise error

        logger.info("Upstream %s completed in %.0fms", endpoint, duration_ms)
        return response

    async def _chat_completion(self, payload: Dict[str, Any]) -> Any:
        response = await self._post("/chat/completions", payload)
        try:
            data = response.json()
        except (ValueError, RecursionError):
            data = None
        if not data:
            raise ApiError(502, "UPSTREAM_INVALID_RESPONSE", "OpenAI returned invalid JSON.")
        return data

    # ── Operations ────────────────────────────────────────────────────────

    async def summarize(self, content: str) -> str:
        data = await self._chat_completion({
            "model": self.settings.summary_model,
            "temperature": 0.3,
            "messages": [
                {"role": "system", "content": self.SUMMARY_SYSTEM_PROMPT},
                {"role": "user", "content": self.SUMMARY_USER_PROMPT.format(content=content)},
            ],
        })
        text = _first_message_content(data)
        summary = text.strip() if isinstance(text, str) else ""
        return summary or SUMMARY_FALLBACK

    async def generate_flashcards(self, content: str) -> List[Flashcard]:
        data = await self._chat_completion({
            "model": self.settings.flashcards_model,
            "temperature": 0.2,
            "messages": [
                {"role": "system", "content": self.FLASHCARDS_SYSTEM_PROMPT},
                {"role": "user", "content": self.FLASHCARDS_USER_PROMPT.format(content=content)},
            ],
            "response_format": self.FLASHCARDS_RESPONSE_FORMAT,
        })

        raw = _first_message_content(data)
        if raw is None or raw == "":
            raw = "{}"
        if not isinstance(raw, str):
            raise ApiError(502, "UPSTREAM_INVALID_RESPONSE", "Invalid flashcards payload from OpenAI.")

        try:
            parsed = json.loads(raw)
        except (json.JSONDecodeError, RecursionError):
            raise ApiError(502, "UPSTREAM_INVALID_RESPONSE", "Invalid flashcards payload from OpenAI.")

        items = parsed.get("flashcards") if isinstance(parsed, dict) else None
        if not isinstance(items, list):
            return []

        try:
            return [Flashcard.model_validate(item) for item in items]
        except PydanticValidationError:
            raise ApiError(502, "UPSTREAM_INVALID_RESPONSE", "Invalid flashcards payload from OpenAI.")

    async def synthesize_speech(self, text: str) -> str:
        response = await self._post("/audio/speech", {
            "model": self.settings.tts_model,
            "voice": self.settings.tts_voice,
            "input": self.SPEECH_PROMPT.format(text=text),
            "response_format": "mp3",
        })
        audio = response.content
        if not audio:
            raise ApiError(502, "UPSTREAM_INVALID_RESPONSE", "OpenAI returned empty audio.")
        return "data:audio/mp3;base64," + base64.b64encode(audio).decode("ascii")

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
