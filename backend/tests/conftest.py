"""
EduBoost Gateway — Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Provides reusable test infrastructure (isolated settings, a fake
       upstream AI API, an HTTP client bound to a fresh app).
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    ├── clock:          Controllable time source for the stores
    ├── fake_upstream:  httpx.MockTransport standing in for the OpenAI API
    └── gateway:        Factory → (app, AsyncClient) over ASGITransport
"""

import os
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Union

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Before any eduboost import: the module-level app must never see real keys
os.environ["OPENAI_API_KEY"] = "test-key-not-real"
os.environ["APP_PASSWORD"] = ""
os.environ["PROF_PASSWORD"] = ""
os.environ["LOG_LEVEL"] = "WARNING"

from eduboost.config import Settings  # noqa: E402
from eduboost.main import create_app  # noqa: E402
from eduboost.services.llm_base import LLMService  # noqa: E402
from eduboost.services.openai_service import OpenAIService  # noqa: E402


def make_settings(**overrides: Any) -> Settings:
    """Settings for tests: auth on, tiny retry waits, no .env file."""
    values = {
        "openai_api_key": "test-key-not-real",
        "app_password": "correct",
        "prof_password": "prof-secret",
        "retry_min_wait": 0,
        "retry_max_wait": 0,
        "log_level": "WARNING",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def chat_completion(content: Optional[str], request_id: str = "req_test") -> httpx.Response:
    """A successful /chat/completions response carrying `content`."""
    return httpx.Response(
        200,
        json={"id": "chatcmpl-1", "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}]},
        headers={"x-request-id": request_id},
    )


class FakeClock:
    """Manually advanced time source (seconds)."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


Reply = Union[httpx.Response, Exception, Callable[[httpx.Request], httpx.Response]]


class FakeUpstream:
    """
    Stand-in for the upstream AI API.

    Replies are consumed in order; when the queue is empty every request gets
    a default chat completion. Exceptions in the queue are raised, which is how
    httpx transports signal connection failures.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.replies: List[Reply] = []

    def queue(self, *replies: Reply) -> None:
        self.replies.extend(replies)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.replies:
            return chat_completion("- Key concept one\n- Key concept two")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(request)
        return reply

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    @property
    def request_count(self) -> int:
        return len(self.requests)


@dataclass
class Gateway:
    app: FastAPI
    client: AsyncClient
    settings: Settings


# ══════════════════════════════════════════════════════════════════════════
# Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_upstream():
    return FakeUpstream()


@pytest_asyncio.fixture
async def gateway(fake_upstream):
    """
    Factory for isolated gateway apps.

    Usage:
        async def test_x(gateway):
            gw = await gateway(rate_limit_max_requests=2)
            response = await gw.client.get("/api/health")
    """
    opened: List[AsyncClient] = []

    async def _make(
        llm_service: Optional[LLMService] = None,
        raise_app_exceptions: bool = True,
        **overrides: Any,
    ) -> Gateway:
        settings = make_settings(**overrides)
        service = llm_service or OpenAIService(settings, client=fake_upstream.client())
        app = create_app(settings=settings, llm_service=service)
        transport = ASGITransport(app=app, raise_app_exceptions=raise_app_exceptions)
        client = AsyncClient(transport=transport, base_url="http://test")
        opened.append(client)
        return Gateway(app=app, client=client, settings=settings)

    yield _make

    for client in opened:
        await client.aclose()
