"""
Application-wide settings and environment configuration
"""

from __future__ import annotations

import os

# Environment (LESBOT_ENV with CHATBOT_ENV fallback)
ENV = os.getenv("LESBOT_ENV", os.getenv("CHATBOT_ENV", "development"))

# API Configuration
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))

# Gemini (Google AI Studio key, no Vertex project needed)
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GEMINI_PRO_MODEL = os.getenv("GEMINI_PRO_MODEL", "gemini-2.5-pro-preview-06-05")
GEMINI_SMART_MODEL = os.getenv("GEMINI_SMART_MODEL", "gemini-2.5-flash-preview-05-20")
GEMINI_INTERNET_MODEL = os.getenv("GEMINI_INTERNET_MODEL", "gemini-2.0-flash-exp")
GEMINI_TRANSCRIPTION_MODEL = os.getenv("GEMINI_TRANSCRIPTION_MODEL", "gemini-2.5-flash")
GEMINI_TTS_MODEL = os.getenv("GEMINI_TTS_MODEL", "gemini-2.5-flash-preview-tts")
GEMINI_API_BASE_URL = os.getenv(
    "GEMINI_API_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
)

# TTS output format (Gemini returns raw 16-bit mono PCM at 24 kHz)
TTS_SAMPLE_RATE = 24000
TTS_CHANNELS = 1
TTS_BITS_PER_SAMPLE = 16


def is_development() -> bool:
    """Check if running in development"""
    return ENV == "development"
