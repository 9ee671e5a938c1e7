"""
Shared fixtures.

The orchestrator under test always gets a FakeGenerator, so nothing here makes
a real LLM call. The HTTP client fixture swaps in the app's dependencies and a
dummy API key so the chat endpoint doesn't short-circuit with 503.
"""
import httpx
import pytest
from fastapi.testclient import TestClient

from api.companion import CompanionOrchestrator
from api.companion.flight import FlightContext
from api.companion.state import EmotionalStateStore
from api.config import settings
from api.dependencies import get_http_client, get_orchestrator
from api.errors import UpstreamError
from api.main import app


class FakeGenerator:
    """Records every payload it receives; replies with fixed text or fails."""

    def __init__(self, text="I'm right here with you.", error=None):
        self.text = text
        self.error = error
        self.payloads = []

    async def generate(self, payload):
        self.payloads.append(payload)
        if self.error is not None:
            raise self.error
        return self.text


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def failing_generator():
    return FakeGenerator(error=UpstreamError("Generation call failed: APITimeoutError"))


@pytest.fixture
def timeout_generator():
    """A generator that blows up with something other than UpstreamError."""
    return FakeGenerator(error=TimeoutError())


@pytest.fixture
def store():
    return EmotionalStateStore(history_limit=50, idle_ttl_seconds=3600)


@pytest.fixture
def calm_flight():
    return FlightContext(phase="cruise", turbulence="none", altitude=35000)


@pytest.fixture
def orchestrator(store, generator):
    return CompanionOrchestrator(store=store, generator=generator)


def _unreachable(request):
    return httpx.Response(503)


@pytest.fixture
def upstream_handler():
    """Tests replace .handler to script the fake aviation APIs."""
    class Holder:
        handler = staticmethod(_unreachable)
    return Holder


@pytest.fixture
def client(orchestrator, upstream_handler, monkeypatch):
    monkeypatch.setattr(settings, "anthropic_api_key", "test-key")
    http_client = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: upstream_handler.handler(request))
    )
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_http_client] = lambda: http_client
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
