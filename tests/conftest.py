# ==== SHARED TEST FIXTURES AND CONFIGURATION ==== #

"""
Shared test fixtures and configuration.

Provides a controllable clock, a stub upstream suggestion generator with call
counting, settings isolated from the developer's ``.env`` file and an HTTP
client bound to a freshly wired application.
"""

import asyncio
import os
from typing import Any, List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient


# ==== FORCE ENVIRONMENT SETUP BEFORE ANY IMPORTS ==== #

# Importing the main module builds the default application from the environment
os.environ.update({
    "APP_ENV": "test",
    "AI_PROVIDER_BASE_URL": "http://mock-ai-service",
    "AI_API_KEY": "test-key-12345",
    "AI_MODEL": "mock-model",
    "LOG_LEVEL": "WARNING",
})

from subject_analyzer.business.industries import Industry
from subject_analyzer.container import ServiceContainer
from subject_analyzer.main import create_app
from subject_analyzer.resilience.admission_gate import AdmissionGate, GateConfig
from subject_analyzer.settings import Settings


VALID_SUGGESTIONS = (
    '{"suggestions": ["Your 50% OFF ends tonight", "Grab 50% off today", '
    '"Today only: half price for you"], '
    '"insight": "Lead with the benefit and address the reader directly."}'
)


# ==== TEST DOUBLES ==== #


class FakeClock:
    """Manually advanced clock, callable like ``time.time``."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Async sleep replacement that records requested delays and returns at once."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class StubGenerator:
    """
    Upstream collaborator double.

    Each call pops the next scripted outcome: an exception instance is
    raised, anything else is returned. When the script runs out the default
    response is returned. ``block`` holds every call until it is set.
    """

    def __init__(
        self,
        response: str = VALID_SUGGESTIONS,
        outcomes: Optional[List[Any]] = None,
        enabled: bool = True
    ):
        self.response = response
        self.outcomes = list(outcomes or [])
        self.enabled = enabled
        self.calls: List[tuple] = []
        self.started = asyncio.Event()
        self.block: Optional[asyncio.Event] = None

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def generate_suggestions(self, subject: str, industry: Industry) -> str:
        self.calls.append((subject, industry))
        self.started.set()
        if self.block is not None:
            await self.block.wait()

        if self.outcomes:
            outcome = self.outcomes.pop(0)
            if isinstance(outcome, BaseException):
                raise outcome
            return outcome
        return self.response


# ==== BASIC FIXTURES ==== #


@pytest.fixture
def clock():
    """Fake clock starting at a fixed epoch second."""
    return FakeClock()


@pytest.fixture
def recording_sleep():
    """Sleep double recording backoff delays."""
    return RecordingSleep()


@pytest.fixture
def stub_generator():
    """Upstream stub returning well-formed suggestions."""
    return StubGenerator()


@pytest.fixture
def test_settings():
    """
    Settings isolated from the process environment file.

    Returns:
        Settings: Test configuration with the upstream enabled
    """
    return Settings(
        _env_file=None,
        APP_ENV="test",
        AI_PROVIDER_BASE_URL="http://mock-ai-service",
        AI_API_KEY="test-key-12345",
        AI_MODEL="mock-model",
        LOG_LEVEL="WARNING",
        RATE_LIMIT_REQUESTS=10,
        RATE_LIMIT_WINDOW_MS=60_000,
        GATE_MAX_CONCURRENT=5,
        GATE_RETRY_ATTEMPTS=2,
    )


# ==== APPLICATION FIXTURES ==== #


@pytest.fixture
def container(test_settings, stub_generator, recording_sleep):
    """
    Wired components with the stub upstream and instant backoff.

    Returns:
        ServiceContainer: Components shared by the app and the test
    """
    gate = AdmissionGate(GateConfig.from_settings(test_settings), sleep=recording_sleep)
    return ServiceContainer.build(test_settings, generator=stub_generator, gate=gate)


@pytest.fixture
def app(test_settings, container):
    """FastAPI application bound to the test container."""
    return create_app(settings=test_settings, container=container)


@pytest_asyncio.fixture
async def client(app):
    """
    Create test client.

    Returns:
        AsyncClient: HTTP client speaking ASGI to the application
    """
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
