"""
Gemini Model Manager - cached model instances per model name.

The chat endpoints switch between three models ("pro", "smart", "internet")
and transcription uses a fourth, so instances are cached per name instead of
the single shared instance a one-model app would keep.

Authentication is a Google AI Studio key (GEMINI_API_KEY) passed to the
google-generativeai SDK. The search-grounded "internet" model is served by
the REST client in lesbot.llm.search_chat, since the SDK cannot send the
`google_search` tool.
"""

from __future__ import annotations

import os
from functools import lru_cache

import google.generativeai as genai

from lesbot.infrastructure.settings import (
    GEMINI_API_KEY,
    GEMINI_INTERNET_MODEL,
    GEMINI_PRO_MODEL,
    GEMINI_SMART_MODEL,
)
from lesbot.llm.search_chat import GeminiSearchModel
from lesbot.observability.logging import get_logger

logger = get_logger(__name__)

_configured_key: str | None = None


class GeminiInitializationError(RuntimeError):
    """Raised when a Gemini model cannot be initialized."""


def get_api_key() -> str | None:
    # Read env fresh (settings may have been imported before load_dotenv ran)
    return os.getenv("GEMINI_API_KEY") or GEMINI_API_KEY


def is_configured() -> bool:
    """True when an API key is present. Does not contact the provider."""
    return bool(get_api_key())


def resolve_model_name(ai_model: str | None) -> str:
    """
    Map the client's model choice to a Gemini model name.

    "pro" and "smart" select the 2.5 models; every other value falls through
    to the 2.0 model, the only one offered with search grounding.
    """
    if ai_model == "pro":
        return GEMINI_PRO_MODEL
    if ai_model == "smart" or ai_model is None:
        return GEMINI_SMART_MODEL
    return GEMINI_INTERNET_MODEL


def _configure() -> None:
    global _configured_key

    api_key = get_api_key()
    if not api_key:
        raise GeminiInitializationError("GEMINI_API_KEY is not set")

    if api_key == _configured_key:
        return

    genai.configure(api_key=api_key)
    _configured_key = api_key


@lru_cache(maxsize=8)
def get_generative_model(model_name: str):
    """
    Get or create the shared GenerativeModel for a model name.

    Returns:
        GenerativeModel bound to model_name (a GeminiSearchModel for the
        internet model)

    Raises:
        GeminiInitializationError: If no API key is configured
    """
    _configure()
    if model_name == GEMINI_INTERNET_MODEL:
        model = GeminiSearchModel(model_name, api_key=get_api_key() or "")
    else:
        model = genai.GenerativeModel(model_name)
    logger.info("Initialized Gemini model: model=%s", model_name)
    return model


def clear_model_cache() -> None:
    """
    Clear cached model instances.

    Useful for testing or after rotating the API key.
    """
    global _configured_key

    get_generative_model.cache_clear()
    _configured_key = None
    logger.info("Cleared Gemini model cache")
