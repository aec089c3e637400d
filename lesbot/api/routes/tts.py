"""Text-to-speech endpoints backed by the Gemini TTS model."""

from __future__ import annotations

import json
from typing import Any

from fastapi import APIRouter, Depends, Response

from lesbot.api.dependencies import get_tts_client, require_api_key
from lesbot.api.errors import ApiError, classify_provider_error
from lesbot.api.models import TTSRequest
from lesbot.config import TTS_MAX_SPEAKERS, TTS_MAX_TEXT_CHARS
from lesbot.llm.tts import GeminiTTSClient, TTSNoAudioError, is_valid_voice, voice_catalog
from lesbot.observability.logging import get_logger
from lesbot.observability.telemetry import log_event

router = APIRouter(prefix="/api", tags=["tts"])
logger = get_logger(__name__)


@router.get("/generate-tts")
def list_voices() -> dict[str, Any]:
    """Voices, styles and limits for the client's settings menu."""
    return voice_catalog()


def _voice_label(voice_name: Any) -> str:
    # Non-string voices are echoed as JSON ("null", "42")
    return voice_name if isinstance(voice_name, str) else json.dumps(voice_name)


def _validate(request: TTSRequest) -> list[dict[str, str]] | None:
    """Check text, voice and speakers. Returns the speaker list to send, if any."""
    if not request.text or not isinstance(request.text, str):
        raise ApiError(400, "Tekst is vereist en moet een string zijn")

    if len(request.text) > TTS_MAX_TEXT_CHARS:
        raise ApiError(400, "Tekst mag maximaal 32.000 karakters bevatten")

    if not is_valid_voice(request.voice_name):
        raise ApiError(
            400,
            f"Ongeldige stem: {_voice_label(request.voice_name)}. "
            "Gebruik een van de beschikbare Gemini stemmen.",
        )

    if not (request.multi_speaker and request.speakers):
        return None

    if len(request.speakers) > TTS_MAX_SPEAKERS:
        raise ApiError(400, "Maximaal 2 sprekers worden ondersteund")

    for speaker in request.speakers:
        if not is_valid_voice(speaker.voice_name):
            raise ApiError(
                400, f"Ongeldige stem voor spreker {speaker.name}: {speaker.voice_name}"
            )

    return [{"name": s.name, "voiceName": s.voice_name} for s in request.speakers]


@router.post("/generate-tts")
def generate_tts(
    request: TTSRequest,
    client: GeminiTTSClient = Depends(get_tts_client),
) -> Response:
    """
    Synthesize speech and return it as a WAV file.

    All validation happens before the provider is contacted.
    """
    require_api_key("tts")
    speakers = _validate(request)

    log_event(
        "api.tts.request",
        chars=len(request.text or ""),
        voice=request.voice_name,
        style=request.style,
        speakers=len(speakers or []),
    )

    try:
        wav = client.synthesize(request.text, request.voice_name, request.style, speakers)
    except TTSNoAudioError:
        raise ApiError(500, "Geen audio data ontvangen van Gemini TTS") from None
    except Exception as e:
        logger.error("TTS API error: %s", e)
        raise classify_provider_error(e, "tts") from None

    return Response(
        content=wav,
        media_type="audio/wav",
        headers={"Cache-Control": "public, max-age=3600"},
    )
