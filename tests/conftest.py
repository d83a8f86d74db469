"""Shared pytest fixtures for diagramgen tests."""

from __future__ import annotations

import copy
import json
from collections.abc import Callable, Generator, Iterator
from contextlib import AbstractContextManager, contextmanager

import httpx
import pytest
from fastapi.testclient import TestClient

from diagramgen.core.completion_client import GeminiClient
from diagramgen.core.config import DiagramgenConfig
from diagramgen.core.diagram_service import DiagramService
from diagramgen.core.prompt_template import EXAMPLE_DIAGRAM


def gemini_envelope(text: str) -> dict:
    """Wrap *text* in a ``generateContent`` response envelope.

    Args:
        text: The model text to return.

    Returns:
        Dictionary shaped like a Gemini API response.
    """
    return {
        "candidates": [
            {
                "content": {"role": "model", "parts": [{"text": text}]},
                "finishReason": "STOP",
            }
        ]
    }


class ProviderStub:
    """Scripted stand-in for the Gemini endpoint.

    Responses are consumed in order; the last one repeats once the script
    runs out.  Each entry is an ``httpx.Response``, a text string (wrapped
    in a 200 envelope), an exception instance to raise, or a callable that
    builds the response from the request.

    Attributes:
        requests: Every request the transport received.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._script: list = []

    def respond_with(self, *entries) -> "ProviderStub":
        self._script = list(entries)
        return self

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def last_body(self) -> dict:
        return json.loads(self.requests[-1].content)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._script:
            return httpx.Response(200, json=gemini_envelope(""))
        entry = self._script.pop(0) if len(self._script) > 1 else self._script[0]
        if isinstance(entry, Exception):
            raise entry
        if isinstance(entry, httpx.Response):
            # Fresh copy so a repeated entry is never re-sent after being closed.
            return httpx.Response(entry.status_code, headers=entry.headers, content=entry.content)
        if callable(entry):
            return entry(request)
        return httpx.Response(200, json=gemini_envelope(entry))

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def test_config() -> DiagramgenConfig:
    """Create a configuration with a dummy credential and no backoff delay.

    Returns:
        DiagramgenConfig instance for testing
    """
    return DiagramgenConfig(
        gemini_api_key="test-key",
        retry_attempts=3,
        backoff_seconds=0.0,
        request_timeout=5.0,
        _env_file=None,
    )


@pytest.fixture
def no_key_config() -> DiagramgenConfig:
    """Create a configuration without a provider credential."""
    return DiagramgenConfig(gemini_api_key=None, backoff_seconds=0.0, _env_file=None)


@pytest.fixture
def example_diagram() -> dict:
    """A fresh copy of the worked example shown to the model."""
    return copy.deepcopy(EXAMPLE_DIAGRAM)


@pytest.fixture
def example_text(example_diagram: dict) -> str:
    """The worked example serialised as provider text."""
    return json.dumps(example_diagram)


@pytest.fixture
def provider() -> ProviderStub:
    """A provider stub with an empty script."""
    return ProviderStub()


@pytest.fixture
def make_client(provider: ProviderStub) -> Callable[[DiagramgenConfig], GeminiClient]:
    """Factory for GeminiClient instances wired to the provider stub."""

    def _make(cfg: DiagramgenConfig) -> GeminiClient:
        return GeminiClient(cfg, transport=provider.transport)

    return _make


@pytest.fixture
def serve_stubbed(
    provider: ProviderStub,
) -> Callable[[DiagramgenConfig], AbstractContextManager[TestClient]]:
    """Factory for TestClients whose DiagramService talks to the provider stub.

    The lifespan runs normally; the service it creates is then swapped for
    one backed by the stub so no real network call is possible.  The
    swapped-in client is closed before the app shuts down.
    """
    from diagramgen.api.main import app

    @contextmanager
    def _serve(cfg: DiagramgenConfig) -> Iterator[TestClient]:
        with TestClient(app) as client:
            service = DiagramService(GeminiClient(cfg, transport=provider.transport))
            app.state.diagram_service = service
            try:
                yield client
            finally:
                client.portal.call(service.client.aclose)

    return _serve


@pytest.fixture
def test_client(
    test_config: DiagramgenConfig, serve_stubbed
) -> Generator[TestClient, None, None]:
    """FastAPI TestClient backed by the provider stub."""
    with serve_stubbed(test_config) as client:
        yield client


@pytest.fixture
def keyless_test_client(
    no_key_config: DiagramgenConfig, serve_stubbed
) -> Generator[TestClient, None, None]:
    """TestClient whose service has no credential configured."""
    with serve_stubbed(no_key_config) as client:
        yield client


@pytest.fixture
def envelope() -> Callable[[str], dict]:
    """Expose :func:`gemini_envelope` to test modules."""
    return gemini_envelope
