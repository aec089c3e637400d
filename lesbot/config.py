"""Centralized configuration for the Lesbot backend.

Re-exports everything from lesbot.infrastructure.settings so existing imports
continue to work, then adds typed constants for request limits, rate limiting
and CORS.  Environment variable overrides use safe defaults so the app starts
without extra env configuration.

Env vars use LESBOT_* as primary with CHATBOT_* fallback.
"""

from __future__ import annotations

import os

from lesbot.infrastructure.settings import *  # noqa: F401, F403 (re-export)


def _env(new_key: str, old_key: str, default: str) -> str:
    """Read env var with LESBOT_* primary and CHATBOT_* fallback."""
    return os.getenv(new_key, os.getenv(old_key, default))


# --- App ---
APP_VERSION: str = "1.0.0"
SERVICE_NAME: str = "Lesbot Classroom Chat API"

# --- Chat ---
CHAT_MAX_MESSAGE_CHARS: int = 100_000
CHAT_DEFAULT_AI_MODEL: str = "smart"

# --- TTS ---
TTS_MAX_TEXT_CHARS: int = 32_000
TTS_DEFAULT_VOICE: str = "Kore"
TTS_MAX_SPEAKERS: int = 2

# --- Audio transcription ---
AUDIO_MAX_BYTES: int = 25 * 1024 * 1024
AUDIO_WARN_BYTES: int = 20 * 1024 * 1024

# --- Documents ---
DOCUMENT_MAX_BYTES: int = 10 * 1024 * 1024
CSV_PREVIEW_ROWS: int = 10

# --- Rate Limiting ---
RATE_LIMIT_RPM: int = int(_env("LESBOT_RATE_LIMIT_RPM", "CHATBOT_RATE_LIMIT_RPM", "60"))
RATE_LIMIT_RPH: int = int(_env("LESBOT_RATE_LIMIT_RPH", "CHATBOT_RATE_LIMIT_RPH", "1000"))
RATE_LIMIT_MAX_IPS: int = 10000

# --- CORS ---
ALLOWED_ORIGINS: list[str] = [
    origin.strip()
    for origin in _env("LESBOT_ALLOWED_ORIGINS", "CHATBOT_ALLOWED_ORIGINS", "").split(",")
    if origin.strip()
]
DEV_ORIGINS: list[str] = [
    "http://localhost:3000",
    "http://localhost:8000",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:8000",
]
# Trust X-Forwarded-For from a reverse proxy (always trusted in development)
RATE_LIMIT_TRUST_PROXY: bool = _env("LESBOT_TRUST_PROXY", "CHATBOT_TRUST_PROXY", "false").lower() in (
    "1",
    "true",
    "yes",
)
