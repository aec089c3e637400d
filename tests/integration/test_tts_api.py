"""API tests for /api/generate-tts (the TTS client is a mock)"""

from __future__ import annotations

import pytest

from lesbot.audio.wav import is_wav
from lesbot.llm.tts import TTSNoAudioError, TTSProviderError


def test_catalog(client):
    response = client.get("/api/generate-tts")

    assert response.status_code == 200
    data = response.json()
    assert len(data["voices"]) == 30
    assert data["maxTextLength"] == 32000
    assert "happy" in data["styles"]
    assert len(data["supportedLanguages"]) == 24
    assert len(data["emotions"]) == 7


def test_generates_wav(client, tts_client):
    response = client.post("/api/generate-tts", json={"text": "Goedemorgen klas"})

    assert response.status_code == 200
    assert response.headers["content-type"] == "audio/wav"
    assert response.headers["cache-control"] == "public, max-age=3600"
    assert int(response.headers["content-length"]) == len(response.content)
    assert is_wav(response.content)

    tts_client.synthesize.assert_called_once_with("Goedemorgen klas", "Kore", None, None)


def test_multi_speaker(client, tts_client):
    response = client.post(
        "/api/generate-tts",
        json={
            "text": "Anna: Hoi\nBram: Hallo",
            "voiceName": "Puck",
            "style": "friendly",
            "multiSpeaker": True,
            "speakers": [
                {"name": "Anna", "voiceName": "Kore"},
                {"name": "Bram", "voiceName": "Charon"},
            ],
        },
    )

    assert response.status_code == 200
    tts_client.synthesize.assert_called_once_with(
        "Anna: Hoi\nBram: Hallo",
        "Puck",
        "friendly",
        [{"name": "Anna", "voiceName": "Kore"}, {"name": "Bram", "voiceName": "Charon"}],
    )


def test_speakers_ignored_without_multi_speaker_flag(client, tts_client):
    client.post(
        "/api/generate-tts",
        json={"text": "Hallo", "speakers": [{"name": "Anna", "voiceName": "Kore"}]},
    )
    assert tts_client.synthesize.call_args.args[3] is None


def test_unknown_voice_rejected_without_provider_call(client, tts_client):
    response = client.post("/api/generate-tts", json={"text": "Hallo", "voiceName": "Alexa"})

    assert response.status_code == 400
    assert response.json()["error"] == (
        "Ongeldige stem: Alexa. Gebruik een van de beschikbare Gemini stemmen."
    )
    tts_client.synthesize.assert_not_called()


def test_missing_text(client, tts_client):
    response = client.post("/api/generate-tts", json={"voiceName": "Kore"})

    assert response.status_code == 400
    assert response.json()["error"] == "Tekst is vereist en moet een string zijn"
    tts_client.synthesize.assert_not_called()


def test_text_too_long(client, tts_client):
    response = client.post("/api/generate-tts", json={"text": "a" * 32_001})

    assert response.status_code == 400
    assert response.json()["error"] == "Tekst mag maximaal 32.000 karakters bevatten"
    tts_client.synthesize.assert_not_called()


def test_too_many_speakers(client, tts_client):
    speakers = [{"name": n, "voiceName": "Kore"} for n in ("A", "B", "C")]

    response = client.post(
        "/api/generate-tts", json={"text": "Hallo", "multiSpeaker": True, "speakers": speakers}
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Maximaal 2 sprekers worden ondersteund"
    tts_client.synthesize.assert_not_called()


def test_unknown_speaker_voice(client, tts_client):
    response = client.post(
        "/api/generate-tts",
        json={
            "text": "Hallo",
            "multiSpeaker": True,
            "speakers": [{"name": "Anna", "voiceName": "Kore"}, {"name": "Bram", "voiceName": "Siri"}],
        },
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Ongeldige stem voor spreker Bram: Siri"
    tts_client.synthesize.assert_not_called()


def test_no_audio(client, tts_client):
    tts_client.synthesize.side_effect = TTSNoAudioError("no audio")

    response = client.post("/api/generate-tts", json={"text": "Hallo"})

    assert response.status_code == 500
    assert response.json()["error"] == "Geen audio data ontvangen van Gemini TTS"


def test_quota_is_429(client, tts_client):
    tts_client.synthesize.side_effect = TTSProviderError("API call failed: 429 quota exceeded", 429)

    response = client.post("/api/generate-tts", json={"text": "Hallo"})

    assert response.status_code == 429
    assert response.json()["details"] == "Rate limit exceeded"


def test_not_supported_is_503(client, tts_client):
    tts_client.synthesize.side_effect = TTSProviderError("API call failed: 400 model not supported", 400)

    response = client.post("/api/generate-tts", json={"text": "Hallo"})

    assert response.status_code == 503
    assert "not supported" in response.json()["details"]


def test_missing_api_key(client, tts_client, no_api_key):
    response = client.post("/api/generate-tts", json={"text": "Hallo"})

    assert response.status_code == 500
    assert "GEMINI_API_KEY" in response.json()["hint"]
    tts_client.synthesize.assert_not_called()


@pytest.mark.parametrize("text", [42, ["Hallo"], {"text": "Hallo"}])
def test_text_wrong_type_is_400(client, tts_client, text):
    response = client.post("/api/generate-tts", json={"text": text})

    assert response.status_code == 400
    assert response.json() == {"error": "Tekst is vereist en moet een string zijn"}
    tts_client.synthesize.assert_not_called()


def test_null_voice_rejected_without_provider_call(client, tts_client):
    response = client.post("/api/generate-tts", json={"text": "hoi", "voiceName": None})

    assert response.status_code == 400
    assert response.json()["error"] == (
        "Ongeldige stem: null. Gebruik een van de beschikbare Gemini stemmen."
    )
    tts_client.synthesize.assert_not_called()


def test_non_string_voice_rejected(client, tts_client):
    response = client.post("/api/generate-tts", json={"text": "hoi", "voiceName": ["Kore"]})

    assert response.status_code == 400
    assert response.json()["error"].startswith('Ongeldige stem: ["Kore"].')
    tts_client.synthesize.assert_not_called()
