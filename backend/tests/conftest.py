"""
Summarizer API — Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── clock:            Controllable time source for the security stores
    ├── secure_settings:  Production-mode Settings with a known secret/origin
    ├── browser_headers:  Headers a real browser would send
    ├── fake_llm:         LLMService stub returning a canned summary
    └── make_client:      Factory for an HTTPX AsyncClient bound to a fresh app
"""

import os

# Must run before any summarizer import: settings are read at import time.
os.environ["GEMINI_API_KEY"] = "test-key-not-real"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RETRY_MAX_ATTEMPTS"] = "1"
os.environ["REQUEST_SECRET"] = "test-secret"

from typing import Dict, Optional
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from summarizer.config import Settings
from summarizer.services.llm_base import LLMService

ALLOWED_ORIGIN = "https://summarizer.example.com"
SECRET = "test-secret"
BROWSER_UA = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/126.0.0.0 Safari/537.36"
)
SAMPLE_TEXT = (
    "The city council met on Tuesday to discuss the new transit plan. "
    "Members debated the cost of extending the light rail line to the airport, "
    "which staff estimate at 1.2 billion dollars over ten years. "
    "Residents spoke for and against the proposal during public comment."
)


class FakeClock:
    """Callable time source; advance() moves time forward."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    @property
    def millis(self) -> int:
        return int(self.now * 1000)


class FakeLLM(LLMService):
    def __init__(self, summary: str = "Council debated a 1.2 billion dollar light rail extension."):
        self.summary = summary
        self.summarize_mock = AsyncMock(return_value=summary)

    async def summarize(self, text: str, length: str) -> str:
        return await self.summarize_mock(text, length)

    async def health_check(self) -> bool:
        return True


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def secure_settings():
    """Production-mode settings: origin check on, local rate limiter."""
    return Settings(
        environment="production",
        cors_origins=ALLOWED_ORIGIN,
        request_secret=SECRET,
        rate_limit_requests=10,
        rate_limit_window_ms=60_000,
        shield_url="",
    )


@pytest.fixture
def browser_headers() -> Dict[str, str]:
    """Headers sent by a browser fetch() from the allowed origin, with a session."""
    return {
        "Origin": ALLOWED_ORIGIN,
        "User-Agent": BROWSER_UA,
        "Sec-Fetch-Mode": "cors",
        "Sec-Fetch-Site": "same-site",
        "Sec-Fetch-Dest": "empty",
        "Authorization": "Bearer session-token-123",
    }


@pytest.fixture
def fake_llm(monkeypatch):
    """Routes summarize calls to a stub instead of Gemini."""
    from summarizer.services.summary_service import summary_service

    llm = FakeLLM()
    monkeypatch.setattr(summary_service, "llm", llm)
    return llm


@pytest_asyncio.fixture
async def make_client():
    """
    Factory for test clients over fresh app instances.

    Usage:
        client = await make_client(settings, clock)
        response = await client.post("/api/summarize", ...)
    """
    from summarizer.main import create_app

    clients = []

    async def _make(config: Settings, clock=None, shield_provider=None, raise_app_exceptions=True):
        kwargs = {"shield_provider": shield_provider}
        if clock is not None:
            kwargs["clock"] = clock
        app = create_app(config, **kwargs)
        transport = ASGITransport(app=app, raise_app_exceptions=raise_app_exceptions)
        client = AsyncClient(transport=transport, base_url="http://test")
        client.app = app
        clients.append(client)
        return client

    yield _make

    for client in clients:
        await client.aclose()


def signed_headers(
    base: Dict[str, str],
    clock: FakeClock,
    nonce: Optional[str] = None,
    secret: str = SECRET,
    timestamp: Optional[int] = None,
) -> Dict[str, str]:
    """Base headers plus a signature envelope valid at the fake clock's time."""
    from summarizer.security.signature import sign_request

    envelope = sign_request(
        secret,
        timestamp=clock.millis if timestamp is None else timestamp,
        nonce=nonce,
    )
    return {**base, **envelope.headers()}
