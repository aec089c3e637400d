"""
Gemini text-to-speech over the REST API.

The generative-ai SDK has no speech output, so the generateContent endpoint of
the TTS model is called directly with httpx. The model answers with base64
16-bit PCM, which is wrapped into a WAV file before it goes back to the client.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Any

import httpx

from lesbot.audio.wav import is_wav, pcm_to_wav
from lesbot.config import TTS_MAX_TEXT_CHARS
from lesbot.infrastructure.settings import (
    GEMINI_API_BASE_URL,
    GEMINI_TTS_MODEL,
    TTS_BITS_PER_SAMPLE,
    TTS_CHANNELS,
    TTS_SAMPLE_RATE,
)
from lesbot.observability.logging import get_logger
from lesbot.observability.telemetry import counter, time_block

logger = get_logger(__name__)

MAX_TTS_TEXT_LENGTH = TTS_MAX_TEXT_CHARS


@dataclass(frozen=True)
class Voice:
    name: str
    style: str


GEMINI_VOICES: tuple[Voice, ...] = (
    Voice("Zephyr", "Bright"),
    Voice("Puck", "Upbeat"),
    Voice("Charon", "Informative"),
    Voice("Kore", "Firm"),
    Voice("Fenrir", "Excitable"),
    Voice("Leda", "Youthful"),
    Voice("Orus", "Firm"),
    Voice("Aoede", "Breezy"),
    Voice("Callirrhoe", "Easy-going"),
    Voice("Autonoe", "Bright"),
    Voice("Enceladus", "Breathy"),
    Voice("Iapetus", "Clear"),
    Voice("Umbriel", "Easy-going"),
    Voice("Algieba", "Smooth"),
    Voice("Despina", "Smooth"),
    Voice("Erinome", "Clear"),
    Voice("Algenib", "Gravelly"),
    Voice("Rasalgethi", "Informative"),
    Voice("Laomedeia", "Upbeat"),
    Voice("Achernar", "Soft"),
    Voice("Alnilam", "Firm"),
    Voice("Schedar", "Even"),
    Voice("Gacrux", "Mature"),
    Voice("Pulcherrima", "Forward"),
    Voice("Achird", "Friendly"),
    Voice("Zubenelgenubi", "Casual"),
    Voice("Vindemiatrix", "Gentle"),
    Voice("Sadachbia", "Lively"),
    Voice("Sadaltager", "Knowledgeable"),
    Voice("Sulafat", "Warm"),
)

_VOICE_NAMES = frozenset(voice.name for voice in GEMINI_VOICES)

STYLE_PROMPTS: dict[str, str] = {
    "happy": "Say cheerfully and with enthusiasm:",
    "sad": "Say in a somber, melancholic tone:",
    "excited": "Say with great excitement and energy:",
    "calm": "Say in a calm, peaceful manner:",
    "serious": "Say in a serious, professional tone:",
    "whisper": "Say in a soft whisper:",
    "dramatic": "Say dramatically with emphasis:",
    "friendly": "Say in a warm, friendly manner:",
    "formal": "Say in a formal, business-like tone:",
    "casual": "Say in a relaxed, casual way:",
}

# Presets the web client prepends itself before calling the endpoint
EMOTION_STYLES: tuple[dict[str, str], ...] = (
    {"name": "Neutraal", "prompt": ""},
    {"name": "Gelukkig", "prompt": "Spreek dit uit op een gelukkige, vrolijke manier: "},
    {"name": "Enthousiast", "prompt": "Spreek dit uit met enthousiasme en energie: "},
    {"name": "Kalm", "prompt": "Spreek dit uit op een kalme, rustgevende manier: "},
    {"name": "Professioneel", "prompt": "Spreek dit uit op een professionele, zakelijke manier: "},
    {"name": "Vriendelijk", "prompt": "Spreek dit uit op een vriendelijke, warme manier: "},
    {"name": "Informatief", "prompt": "Spreek dit uit op een informatieve, educatieve manier: "},
)

SUPPORTED_LANGUAGES: tuple[str, ...] = (
    "nl-NL", "en-US", "de-DE", "fr-FR", "es-ES", "it-IT",
    "pt-BR", "ja-JP", "ko-KR", "zh-CN", "ar-EG", "hi-IN",
    "id-ID", "ru-RU", "th-TH", "tr-TR", "vi-VN", "uk-UA",
    "pl-PL", "ro-RO", "bn-BD", "mr-IN", "ta-IN", "te-IN",
)  # fmt: skip


class TTSProviderError(RuntimeError):
    """The TTS REST call returned a non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class TTSNoAudioError(RuntimeError):
    """The provider answered but the response carried no audio part."""


def is_valid_voice(voice_name: object) -> bool:
    return isinstance(voice_name, str) and voice_name in _VOICE_NAMES


def apply_style_prompt(text: str, style: str | None = None) -> str:
    if not style:
        return text
    prompt = STYLE_PROMPTS.get(style)
    return f"{prompt} {text}" if prompt else text


def build_speech_request(
    text: str,
    voice_name: str = "Kore",
    style: str | None = None,
    speakers: list[dict[str, str]] | None = None,
) -> dict[str, Any]:
    """
    Build the generateContent body for speech output.

    With speakers (each {"name", "voiceName"}) a multi-speaker config is sent
    and voice_name is ignored; otherwise a single prebuilt voice is used.
    """
    body: dict[str, Any] = {
        "contents": [{"role": "user", "parts": [{"text": apply_style_prompt(text, style)}]}],
        "generationConfig": {"responseModalities": ["AUDIO"]},
    }

    if speakers:
        body["generationConfig"]["speechConfig"] = {
            "multiSpeakerVoiceConfig": {
                "speakerVoiceConfigs": [
                    {
                        "speaker": speaker["name"],
                        "voiceConfig": {"prebuiltVoiceConfig": {"voiceName": speaker["voiceName"]}},
                    }
                    for speaker in speakers
                ]
            }
        }
    else:
        body["generationConfig"]["speechConfig"] = {
            "voiceConfig": {"prebuiltVoiceConfig": {"voiceName": voice_name}}
        }

    return body


def extract_audio_data(result: dict[str, Any]) -> str | None:
    """Base64 audio of the first candidate's first part, if any."""
    try:
        return result["candidates"][0]["content"]["parts"][0]["inlineData"]["data"]
    except (KeyError, IndexError, TypeError):
        return None


def voice_catalog() -> dict[str, Any]:
    return {
        "voices": [{"name": voice.name, "style": voice.style} for voice in GEMINI_VOICES],
        "styles": list(STYLE_PROMPTS),
        "emotions": [dict(emotion) for emotion in EMOTION_STYLES],
        "maxTextLength": MAX_TTS_TEXT_LENGTH,
        "supportedLanguages": list(SUPPORTED_LANGUAGES),
    }


class GeminiTTSClient:
    """
    REST client for the Gemini TTS model.

    No client-side timeout is set: long texts can take a while to synthesize
    and the provider closes the connection itself on failure.
    """

    def __init__(
        self,
        api_key: str,
        model: str = GEMINI_TTS_MODEL,
        base_url: str = GEMINI_API_BASE_URL,
        transport: httpx.BaseTransport | None = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self._transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def synthesize(
        self,
        text: str,
        voice_name: str = "Kore",
        style: str | None = None,
        speakers: list[dict[str, str]] | None = None,
    ) -> bytes:
        """
        Generate speech and return it as a WAV file.

        Raises:
            TTSProviderError: On a non-2xx response.
            TTSNoAudioError: When the response holds no audio data.
            httpx.HTTPError: On transport failures.
        """
        body = build_speech_request(text, voice_name, style, speakers)
        mode = "multi-speaker" if speakers else "single-speaker"
        logger.info("Generating %s audio (model=%s, chars=%d)", mode, self.model, len(text))

        with time_block("tts.generate.latency"):
            with httpx.Client(timeout=None, transport=self._transport) as client:
                response = client.post(self.endpoint, params={"key": self.api_key}, json=body)

        if response.is_error:
            counter("tts.provider_error")
            logger.error("Gemini TTS API error: status=%d", response.status_code)
            raise TTSProviderError(
                f"API call failed: {response.status_code} {response.text}",
                status_code=response.status_code,
            )

        audio_data = extract_audio_data(response.json())
        if not audio_data:
            counter("tts.no_audio")
            logger.error("No audio data received from Gemini TTS")
            raise TTSNoAudioError("No audio data in TTS response")

        pcm = base64.b64decode(audio_data)
        wav = pcm_to_wav(pcm, TTS_SAMPLE_RATE, TTS_CHANNELS, TTS_BITS_PER_SAMPLE)

        logger.info(
            "WAV conversion completed: pcm_bytes=%d wav_bytes=%d has_wav_header=%s",
            len(pcm),
            len(wav),
            is_wav(wav),
        )
        counter("tts.generated")
        return wav
