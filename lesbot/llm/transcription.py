"""Audio transcription with Gemini using inline (base64) audio data."""

from __future__ import annotations

import re
from typing import Any

from lesbot.observability.logging import get_logger
from lesbot.observability.telemetry import counter, time_block

logger = get_logger(__name__)

ALLOWED_AUDIO_TYPES = frozenset(
    {
        "audio/mpeg",
        "audio/mp3",
        "audio/wav",
        "audio/aiff",
        "audio/aac",
        "audio/ogg",
        "audio/flac",
    }
)
_AUDIO_EXTENSION = re.compile(r"\.(mp3|wav|aiff|aac|ogg|flac|mpeg|mpga)$", re.IGNORECASE)

DEFAULT_AUDIO_MIME = "audio/mpeg"

TRANSCRIPTION_PROMPT = (
    "Transcribeer deze audio naar Nederlandse tekst. "
    "Geef alleen de getranscribeerde tekst terug, zonder extra commentaar."
)

ENGINE_NAME = "Gemini 2.5 Flash"
METHOD_NAME = "Inline Data"


def is_supported_audio(content_type: str | None, filename: str | None) -> bool:
    """A file passes when either its MIME type or its extension is known."""
    if content_type in ALLOWED_AUDIO_TYPES:
        return True
    return bool(filename and _AUDIO_EXTENSION.search(filename))


def format_megabytes(size: int) -> str:
    return f"{size / 1024 / 1024:.1f}MB"


def transcribe_audio(model: Any, data: bytes, mime_type: str | None = None) -> str:
    """
    Transcribe audio bytes to Dutch text.

    Args:
        model: GenerativeModel that accepts audio input.
        data: Raw audio file bytes.
        mime_type: Upload MIME type, defaults to audio/mpeg.

    Returns:
        Transcribed text as returned by the model.
    """
    audio_part = {"mime_type": mime_type or DEFAULT_AUDIO_MIME, "data": data}

    with time_block("transcription.latency"):
        response = model.generate_content([TRANSCRIPTION_PROMPT, audio_part])

    text = response.text
    counter("transcription.completed")
    logger.info("Gemini audio transcription successful: chars=%d", len(text))
    return text
