"""Chat endpoints: one-shot answer and token stream (server-sent events)."""

from __future__ import annotations

import json
from collections.abc import Iterator
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from lesbot.api.dependencies import ModelFactory, get_model_factory, require_api_key
from lesbot.api.errors import ApiError, classify_provider_error, sanitize_details, utc_timestamp
from lesbot.api.models import ChatRequest, ChatResponse, Grounding
from lesbot.config import CHAT_DEFAULT_AI_MODEL, CHAT_MAX_MESSAGE_CHARS
from lesbot.llm.gemini import resolve_model_name
from lesbot.llm.retry import (
    build_chat_request,
    chunk_text,
    extract_grounding,
    generate_with_grounding_fallback,
)
from lesbot.observability.logging import get_logger
from lesbot.observability.telemetry import counter, log_event, time_block

router = APIRouter(prefix="/api", tags=["chat"])
logger = get_logger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


def _validated_message(request: ChatRequest) -> str:
    if not request.message:
        raise ApiError(400, "Bericht is vereist")
    if not isinstance(request.message, str) or len(request.message) > CHAT_MAX_MESSAGE_CHARS:
        raise ApiError(400, "Bericht moet een string zijn van maximaal 100.000 karakters")
    return request.message


def _prepare(request: ChatRequest, endpoint: str) -> tuple[str, dict[str, Any]]:
    require_api_key("chat")
    message = _validated_message(request)
    images = request.image_list()

    log_event(
        f"api.{endpoint}.request",
        chars=len(message),
        images=len(images),
        ai_model=request.ai_model,
        grounding=request.use_grounding,
    )

    model_name = resolve_model_name(request.ai_model)
    payload = build_chat_request(
        message, images, request.use_grounding, request.ai_model or CHAT_DEFAULT_AI_MODEL
    )
    return model_name, payload


@router.post("/chat", response_model=ChatResponse)
def chat(
    request: ChatRequest,
    model_factory: ModelFactory = Depends(get_model_factory),
) -> ChatResponse:
    """
    Answer a single message (optionally with images) in one response.

    Grounding metadata is returned when the "internet" model used search.
    """
    model_name, payload = _prepare(request, "chat")

    try:
        model = model_factory(model_name)
        with time_block("chat.latency"):
            response = generate_with_grounding_fallback(model, payload, request.use_grounding)
        text = response.text
    except Exception as e:
        logger.error("Gemini chat call failed (model=%s): %s", model_name, e)
        raise classify_provider_error(e, "chat") from None

    counter("api.chat.success")
    return ChatResponse(
        response=text,
        grounding=Grounding.model_validate(extract_grounding(response)),
    )


def _sse(data: dict[str, Any]) -> str:
    return f"data: {json.dumps(data)}\n\n"


def relay_tokens(
    model_factory: ModelFactory,
    model_name: str,
    payload: dict[str, Any],
    use_grounding: bool,
) -> Iterator[str]:
    """
    Yield SSE frames for each non-empty chunk, then a done frame.

    Any provider failure, including one raised by the initial request, ends
    the stream with a single error frame instead of a done frame.
    """
    tokens = 0
    try:
        model = model_factory(model_name)
        stream = generate_with_grounding_fallback(model, payload, use_grounding, stream=True)
        for chunk in stream:
            text = chunk_text(chunk)
            if not text:
                continue
            tokens += 1
            yield _sse({"token": text, "timestamp": utc_timestamp()})
    except Exception as e:
        logger.error("Streaming error after %d chunks: %s", tokens, e)
        counter("api.chat_stream.error")
        yield _sse({"error": True, "message": sanitize_details(str(e)) or "Streaming error occurred"})
        return

    counter("api.chat_stream.success")
    log_event("api.chat_stream.completed", chunks=tokens)
    yield _sse({"done": True})


@router.post("/chat-stream")
def chat_stream(
    request: ChatRequest,
    model_factory: ModelFactory = Depends(get_model_factory),
) -> StreamingResponse:
    """Stream the answer token by token as `data: {...}` frames."""
    model_name, payload = _prepare(request, "chat_stream")

    return StreamingResponse(
        relay_tokens(model_factory, model_name, payload, request.use_grounding),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
