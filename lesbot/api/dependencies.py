"""FastAPI dependencies for provider access (overridden in tests)."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from lesbot.api.errors import missing_api_key_error
from lesbot.llm.gemini import get_api_key, get_generative_model, is_configured
from lesbot.llm.tts import GeminiTTSClient

ModelFactory = Callable[[str], Any]


def get_model_factory() -> ModelFactory:
    return get_generative_model


def get_tts_client() -> GeminiTTSClient:
    return GeminiTTSClient(api_key=get_api_key() or "")


def require_api_key(operation: str) -> None:
    """Raise the operation's 500 error when GEMINI_API_KEY is missing."""
    if not is_configured():
        raise missing_api_key_error(operation)
