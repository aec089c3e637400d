"""Lesbot - classroom chat backend proxying the Gemini API"""

from __future__ import annotations

__version__ = "1.0.0"


# Lazy imports so `import lesbot` does not pull in the Gemini SDK or FastAPI
def __getattr__(name: str):
    if name == "pcm_to_wav":
        from lesbot.audio.wav import pcm_to_wav

        return pcm_to_wav

    if name == "extract_document":
        from lesbot.documents.extractor import extract_document

        return extract_document

    if name == "app":
        from lesbot.api.app import app

        return app

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)


__all__ = [
    "app",
    "extract_document",
    "pcm_to_wav",
]
