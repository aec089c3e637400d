"""Unit tests for the Gemini TTS REST client (httpx MockTransport, no network)"""

from __future__ import annotations

import base64
import json

import httpx
import pytest

from lesbot.audio.wav import WAV_HEADER_SIZE, is_wav
from lesbot.llm.tts import (
    GEMINI_VOICES,
    GeminiTTSClient,
    TTSNoAudioError,
    TTSProviderError,
    apply_style_prompt,
    build_speech_request,
    is_valid_voice,
    voice_catalog,
)

PCM = b"\x10\x00\x20\x00" * 100


def _audio_response(pcm: bytes = PCM) -> dict:
    return {
        "candidates": [
            {
                "content": {
                    "parts": [
                        {"inlineData": {"mimeType": "audio/L16;rate=24000", "data": base64.b64encode(pcm).decode()}}
                    ]
                }
            }
        ]
    }


def _client(handler) -> GeminiTTSClient:
    return GeminiTTSClient(
        api_key="test-key",
        model="gemini-2.5-flash-preview-tts",
        base_url="https://tts.test/v1beta/",
        transport=httpx.MockTransport(handler),
    )


def test_synthesize_posts_body_and_wraps_pcm():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=_audio_response())

    wav = _client(handler).synthesize("Goedemorgen", voice_name="Puck", style="happy")

    assert is_wav(wav)
    assert len(wav) == WAV_HEADER_SIZE + len(PCM)
    assert wav[WAV_HEADER_SIZE:] == PCM

    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/v1beta/models/gemini-2.5-flash-preview-tts:generateContent"
    assert request.url.params["key"] == "test-key"

    body = json.loads(request.content)
    assert body["contents"][0]["parts"][0]["text"] == "Say cheerfully and with enthusiasm: Goedemorgen"
    assert body["generationConfig"]["responseModalities"] == ["AUDIO"]
    assert body["generationConfig"]["speechConfig"]["voiceConfig"]["prebuiltVoiceConfig"] == {
        "voiceName": "Puck"
    }


def test_non_2xx_raises_provider_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, text="quota exceeded")

    with pytest.raises(TTSProviderError) as exc_info:
        _client(handler).synthesize("Hallo")

    assert str(exc_info.value) == "API call failed: 429 quota exceeded"
    assert exc_info.value.status_code == 429


def test_missing_audio_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": "?"}]}}]})

    with pytest.raises(TTSNoAudioError):
        _client(handler).synthesize("Hallo")


def test_multi_speaker_request():
    body = build_speech_request(
        "Anna: Hoi\nBram: Hallo",
        speakers=[{"name": "Anna", "voiceName": "Kore"}, {"name": "Bram", "voiceName": "Puck"}],
    )

    speech = body["generationConfig"]["speechConfig"]
    assert "voiceConfig" not in speech
    configs = speech["multiSpeakerVoiceConfig"]["speakerVoiceConfigs"]
    assert [c["speaker"] for c in configs] == ["Anna", "Bram"]
    assert configs[1]["voiceConfig"]["prebuiltVoiceConfig"]["voiceName"] == "Puck"


def test_style_prompt():
    assert apply_style_prompt("Hallo", "whisper") == "Say in a soft whisper: Hallo"
    assert apply_style_prompt("Hallo", "unknown") == "Hallo"
    assert apply_style_prompt("Hallo", None) == "Hallo"


def test_voice_catalog():
    catalog = voice_catalog()

    assert len(GEMINI_VOICES) == 30
    assert len(catalog["voices"]) == 30
    assert {"name": "Kore", "style": "Firm"} in catalog["voices"]
    assert catalog["maxTextLength"] == 32000
    assert "nl-NL" in catalog["supportedLanguages"]
    assert [e["name"] for e in catalog["emotions"]][0] == "Neutraal"
    assert is_valid_voice("Sulafat")
    assert not is_valid_voice("Alexa")
    assert not is_valid_voice(None)
