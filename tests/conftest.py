"""
Pytest configuration shared across unit and integration tests

Provides fake Gemini models and a TestClient with provider dependencies
overridden, so no test touches the network or needs a real API key.
"""

from __future__ import annotations

import os
from typing import Any
from unittest.mock import MagicMock

import pytest

# Limits are read at import time; keep the shared app's limiter out of the way
os.environ.setdefault("LESBOT_RATE_LIMIT_RPM", "100000")
os.environ.setdefault("LESBOT_RATE_LIMIT_RPH", "1000000")


class FakeResponse:
    """Stands in for a GenerateContentResponse (or one streamed chunk)."""

    def __init__(self, text: str = "", candidates: list[Any] | None = None):
        self.text = text
        self.candidates = candidates or []


class FakeModel:
    """
    Records generate_content calls.

    `errors` are raised in order before any response is returned; with
    stream=True the call returns one FakeResponse per entry in `chunks`.
    """

    def __init__(
        self,
        text: str = "Hallo! Waarmee kan ik je helpen?",
        chunks: list[str] | None = None,
        errors: list[Exception] | None = None,
        candidates: list[Any] | None = None,
    ):
        self.text = text
        self.chunks = chunks if chunks is not None else ["Hallo", "", " klas"]
        self.errors = list(errors or [])
        self.candidates = candidates
        self.calls: list[tuple[tuple, dict[str, Any]]] = []

    def generate_content(self, *args: Any, **kwargs: Any) -> Any:
        self.calls.append((args, kwargs))
        if self.errors:
            raise self.errors.pop(0)
        if kwargs.get("stream"):
            return iter([FakeResponse(chunk) for chunk in self.chunks])
        return FakeResponse(self.text, self.candidates)


@pytest.fixture(autouse=True)
def gemini_api_key(monkeypatch):
    """Every test runs with a (fake) key unless it removes it."""
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")


@pytest.fixture
def no_api_key(monkeypatch):
    from lesbot.llm import gemini

    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.setattr(gemini, "GEMINI_API_KEY", None)


@pytest.fixture
def fake_model() -> FakeModel:
    return FakeModel()


@pytest.fixture
def requested_models() -> list[str]:
    return []


@pytest.fixture
def tts_client() -> MagicMock:
    from lesbot.audio.wav import pcm_to_wav
    from lesbot.llm.tts import GeminiTTSClient

    client = MagicMock(spec=GeminiTTSClient)
    client.synthesize.return_value = pcm_to_wav(b"\x00\x01" * 240)
    return client


@pytest.fixture
def client(fake_model, requested_models, tts_client):
    """TestClient with the Gemini model factory and TTS client replaced."""
    from fastapi.testclient import TestClient

    from lesbot.api.app import app
    from lesbot.api.dependencies import get_model_factory, get_tts_client

    def factory(model_name: str) -> FakeModel:
        requested_models.append(model_name)
        return fake_model

    app.dependency_overrides[get_model_factory] = lambda: factory
    app.dependency_overrides[get_tts_client] = lambda: tts_client

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
