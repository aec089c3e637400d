"""Request/response models for the Lesbot API.

Field names are snake_case in Python and camelCase on the wire, matching the
browser client.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from lesbot.config import CHAT_DEFAULT_AI_MODEL, TTS_DEFAULT_VOICE


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Chat
# ============================================================================


class ChatRequest(CamelModel):
    """A single user turn. `images` wins over the legacy single `image`."""

    # Type checked by the route so wrong types get the Dutch 400
    message: Any = None
    image: str | None = None
    images: list[str] | None = None
    use_grounding: bool = True
    ai_model: str | None = CHAT_DEFAULT_AI_MODEL

    def image_list(self) -> list[str]:
        if self.images:
            return list(self.images)
        return [self.image] if self.image else []


class GroundingSource(CamelModel):
    title: str = "Unknown"
    uri: str = ""
    snippet: str = ""


class Grounding(CamelModel):
    is_grounded: bool = False
    search_queries: list[str] = Field(default_factory=list)
    sources: list[GroundingSource] = Field(default_factory=list)


class ChatResponse(CamelModel):
    response: str
    success: bool = True
    grounding: Grounding = Field(default_factory=Grounding)


# ============================================================================
# Text-to-speech
# ============================================================================


class Speaker(CamelModel):
    name: str
    voice_name: str


class TTSRequest(CamelModel):
    # Checked in the route (400); an explicit null voice stays None
    text: Any = None
    voice_name: Any = TTS_DEFAULT_VOICE
    style: str | None = None
    multi_speaker: bool = False
    speakers: list[Speaker] | None = None


# ============================================================================
# Transcription and documents
# ============================================================================


class TranscriptionResponse(CamelModel):
    success: bool = True
    transcription: str
    file_name: str
    file_size: int
    engine: str
    method: str
    message: str = "Audio succesvol getranscribeerd met Gemini AI"


class DocumentResponse(CamelModel):
    success: bool = True
    filename: str
    size: int
    file_type: str
    content: str
    word_count: int
    character_count: int


# ============================================================================
# Markdown helpers
# ============================================================================


class MarkdownRequest(CamelModel):
    content: str = Field(..., max_length=200_000)


class RenderedMarkdown(CamelModel):
    html: str
    plain_text: str
