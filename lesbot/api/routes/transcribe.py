"""Audio transcription endpoint (Gemini, inline audio)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, UploadFile
from starlette.concurrency import run_in_threadpool

from lesbot.api.dependencies import ModelFactory, get_model_factory, require_api_key
from lesbot.api.errors import ApiError, classify_provider_error
from lesbot.api.models import TranscriptionResponse
from lesbot.config import AUDIO_MAX_BYTES, AUDIO_WARN_BYTES, GEMINI_TRANSCRIPTION_MODEL
from lesbot.llm.transcription import (
    ENGINE_NAME,
    METHOD_NAME,
    format_megabytes,
    is_supported_audio,
    transcribe_audio,
)
from lesbot.observability.logging import get_logger
from lesbot.observability.telemetry import log_event

router = APIRouter(prefix="/api", tags=["transcription"])
logger = get_logger(__name__)


def _too_large(size: int) -> ApiError:
    return ApiError(
        400,
        "Audio bestand te groot. Maximum grootte is 25MB.",
        hint="Voor grotere bestanden hebben we Files API ondersteuning nodig",
        actualSize=format_megabytes(size),
    )


@router.post("/transcribe-audio", response_model=TranscriptionResponse)
async def transcribe(
    file: UploadFile | None = File(None),
    model_factory: ModelFactory = Depends(get_model_factory),
) -> TranscriptionResponse:
    """
    Transcribe an uploaded audio file to Dutch text.

    Files over 25MB are rejected before anything is sent to Gemini.
    """
    require_api_key("transcription")

    if file is None:
        raise ApiError(400, "Geen audio bestand ontvangen")

    if not is_supported_audio(file.content_type, file.filename):
        raise ApiError(
            400,
            "Niet ondersteund audio formaat. Ondersteunde formaten: MP3, WAV, AIFF, AAC, OGG, FLAC",
        )

    # Multipart parsing records the size; reject before buffering the upload
    if file.size is not None and file.size > AUDIO_MAX_BYTES:
        raise _too_large(file.size)

    data = await file.read()
    size = len(data)

    if size > AUDIO_MAX_BYTES:
        raise _too_large(size)

    if size > AUDIO_WARN_BYTES:
        logger.warning("Large audio file (%s), transcription may be slow", format_megabytes(size))

    log_event(
        "api.transcription.request",
        bytes=size,
        content_type=file.content_type,
    )

    try:
        model = model_factory(GEMINI_TRANSCRIPTION_MODEL)
        text = await run_in_threadpool(transcribe_audio, model, data, file.content_type)
    except Exception as e:
        logger.error("Gemini transcription error: %s", e)
        raise classify_provider_error(e, "transcription") from None

    return TranscriptionResponse(
        transcription=text,
        file_name=file.filename or "",
        file_size=size,
        engine=ENGINE_NAME,
        method=METHOD_NAME,
    )
