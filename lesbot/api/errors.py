"""
API error type and provider error classification.

Provider failures arrive as SDK/HTTP exceptions whose only reliable signal is
the message text, so they are mapped to HTTP status codes by substring rules
per operation. User-facing messages are Dutch (the classroom UI language).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from lesbot.observability.logging import get_logger
from lesbot.observability.telemetry import counter

logger = get_logger(__name__)

_SECRET_PATTERNS = (
    re.compile(r"([?&]key=)[^&\s]+"),
    re.compile(r"AIza[0-9A-Za-z_-]{20,}"),
)


class ApiError(Exception):
    """Error rendered as {"error": ..., **extra} with the given status code."""

    def __init__(self, status_code: int, error: str, **extra: Any):
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.extra = extra

    def to_content(self) -> dict[str, Any]:
        return {"error": self.error, **self.extra}


@dataclass(frozen=True)
class ErrorRule:
    needles: tuple[str, ...]
    status_code: int
    error: str
    hint: str | None = None
    details: str | None = None
    include_details: bool = False


OPERATION_RULES: dict[str, tuple[ErrorRule, ...]] = {
    "chat": (),
    "tts": (
        ErrorRule(
            ("quota",),
            429,
            "API quota bereikt. Probeer het later opnieuw.",
            details="Rate limit exceeded",
        ),
        ErrorRule(
            ("not supported",),
            503,
            "TTS functionaliteit is momenteel niet beschikbaar.",
            include_details=True,
        ),
    ),
    "transcription": (
        ErrorRule(("quota",), 429, "Gemini API quota overschreden. Probeer later opnieuw."),
        ErrorRule(
            ("unsupported",),
            400,
            "Audio formaat niet ondersteund door Gemini. Probeer MP3, WAV of AAC.",
        ),
        ErrorRule(
            ("size", "too large"),
            413,
            "Audio bestand te groot voor Gemini transcriptie (max 25MB).",
            hint="Probeer een kleiner bestand of comprimeer de audio",
        ),
        ErrorRule(
            ("payload", "memory"),
            413,
            "Bestand te groot om te verwerken. Probeer een kleiner audio bestand.",
            hint="Voor bestanden >20MB kunnen er memory issues optreden",
        ),
    ),
}

# (message, hint) for failures no rule matched
FALLBACK_ERRORS: dict[str, tuple[str, str | None]] = {
    "chat": ("Er is een fout opgetreden bij het verwerken van je bericht", None),
    "tts": ("Er is een fout opgetreden bij het genereren van audio", None),
    "transcription": (
        "Fout bij audio transcriptie",
        "Controleer of het audio bestand geldig is en probeer een kleiner bestand",
    ),
}

MISSING_KEY_ERRORS: dict[str, tuple[str, str]] = {
    "chat": (
        "API configuratie ontbreekt. Check Environment Variables.",
        "Voeg GEMINI_API_KEY toe aan je environment variables",
    ),
    "tts": (
        "API configuratie ontbreekt. Check Environment Variables.",
        "Voeg GEMINI_API_KEY toe aan je environment variables",
    ),
    "transcription": (
        "Gemini API key niet geconfigureerd. Voeg GEMINI_API_KEY toe aan je environment variables.",
        "Voor audio transcriptie is een Gemini API key vereist",
    ),
}


def utc_timestamp() -> str:
    return datetime.now(UTC).isoformat()


def sanitize_details(message: str) -> str:
    """Strip API keys from provider messages before they reach the client."""
    for pattern in _SECRET_PATTERNS:
        message = pattern.sub(lambda m: (m.group(1) if m.groups() else "") + "***", message)
    return message


def missing_api_key_error(operation: str) -> ApiError:
    message, hint = MISSING_KEY_ERRORS[operation]
    logger.error("GEMINI_API_KEY not found in environment variables")
    return ApiError(500, message, hint=hint, debug="Environment variable GEMINI_API_KEY is not set")


def classify_provider_error(error: BaseException, operation: str) -> ApiError:
    """
    Map a provider exception to an ApiError for the given operation.

    Args:
        error: Exception raised while talking to Gemini.
        operation: "chat", "tts" or "transcription".

    Returns:
        ApiError with status 400/413/429/503 for recognised messages, else 500.
    """
    message = sanitize_details(str(error) or type(error).__name__)

    for rule in OPERATION_RULES[operation]:
        if any(needle in message for needle in rule.needles):
            counter(f"api.{operation}.provider_error.{rule.status_code}")
            extra: dict[str, Any] = {}
            if rule.details is not None:
                extra["details"] = rule.details
            elif rule.include_details:
                extra["details"] = message
            if rule.hint is not None:
                extra["hint"] = rule.hint
            return ApiError(rule.status_code, rule.error, **extra)

    counter(f"api.{operation}.provider_error.500")
    fallback, hint = FALLBACK_ERRORS[operation]
    extra = {"details": message, "timestamp": utc_timestamp()}
    if hint is not None:
        extra["hint"] = hint
    return ApiError(500, fallback, **extra)
