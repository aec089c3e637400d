"""Chat request building and the grounding fallback.

Search grounding is only offered on the "internet" model, and not every
model/key combination accepts the search tool. When the provider rejects the
tool, the request is retried exactly once without it. No other failure is
retried: everything else propagates to the route, which maps it to an HTTP
error.
"""

from __future__ import annotations

import base64
import re
from typing import Any

from tenacity import Retrying, retry_if_exception, stop_after_attempt

from lesbot.observability.logging import get_logger
from lesbot.observability.telemetry import counter

logger = get_logger(__name__)

GROUNDING_UNSUPPORTED_MARKERS = (
    "Search Grounding is not supported",
    "google_search_retrieval is not supported",
    "google_search is not supported",
)

# Gemini 2.0+ search tool (sent over REST, see lesbot.llm.search_chat)
SEARCH_TOOL: dict[str, Any] = {"google_search": {}}

_DATA_URL_PREFIX = re.compile(r"^data:image/\w+;base64,")


def decode_image(image: str) -> bytes:
    """Decode a base64 image, with or without a data URL prefix."""
    return base64.b64decode(_DATA_URL_PREFIX.sub("", image))


def build_chat_request(
    message: str,
    images: list[str] | None = None,
    use_grounding: bool = True,
    ai_model: str = "smart",
) -> dict[str, Any]:
    """
    Build the generate_content payload for a single user turn.

    Args:
        message: User text, always the first part.
        images: Base64 JPEG images (data URLs allowed), one inline part each.
        use_grounding: Whether the client asked for search grounding.
        ai_model: Client model choice; grounding only applies to "internet".

    Returns:
        {"contents": [...], "tools": [...]} ready to splat into generate_content.
    """
    parts: list[dict[str, Any]] = [{"text": message}]
    for image in images or []:
        parts.append({"inline_data": {"mime_type": "image/jpeg", "data": decode_image(image)}})

    tools = [SEARCH_TOOL] if ai_model == "internet" and use_grounding else []

    return {
        "contents": [{"role": "user", "parts": parts}],
        "tools": tools,
    }


def is_grounding_unsupported(error: BaseException) -> bool:
    message = str(error)
    return any(marker in message for marker in GROUNDING_UNSUPPORTED_MARKERS)


def generate_with_grounding_fallback(
    model: Any,
    request: dict[str, Any],
    use_grounding: bool = True,
    stream: bool = False,
) -> Any:
    """Call model.generate_content, dropping the search tool if it is rejected.

    Args:
        model: A GenerativeModel (or anything with generate_content(**kwargs)).
        request: Payload from build_chat_request(). Not mutated.
        use_grounding: Fallback only applies when the client asked for grounding.
        stream: Pass-through to generate_content.

    Returns:
        The SDK response (an iterable of chunks when stream=True).

    Raises:
        Exception: Whatever the SDK raised, when it is not a grounding rejection
            or when the retry without tools fails as well.
    """
    payload = dict(request)

    def _should_fall_back(error: BaseException) -> bool:
        return use_grounding and is_grounding_unsupported(error)

    for attempt in Retrying(
        stop=stop_after_attempt(2),
        retry=retry_if_exception(_should_fall_back),
        reraise=True,
    ):
        with attempt:
            if attempt.retry_state.attempt_number > 1:
                counter("llm.grounding.fallback")
                logger.info("Grounding not supported, retrying without grounding (stream=%s)", stream)
                payload.pop("tools", None)
            return model.generate_content(**payload, stream=stream)

    # Unreachable: Retrying either returns above or re-raises
    raise RuntimeError("grounding fallback exhausted")


def extract_grounding(response: Any) -> dict[str, Any]:
    """Summarize grounding metadata of the first candidate for the client."""
    candidates = getattr(response, "candidates", None) or []
    metadata = getattr(candidates[0], "grounding_metadata", None) if candidates else None

    if not metadata:
        return {"isGrounded": False, "searchQueries": [], "sources": []}

    sources = []
    for chunk in getattr(metadata, "grounding_chunks", None) or []:
        web = getattr(chunk, "web", None)
        sources.append(
            {
                "title": getattr(web, "title", None) or "Unknown",
                "uri": getattr(web, "uri", None) or "",
                "snippet": getattr(web, "snippet", None) or "",
            }
        )

    return {
        "isGrounded": True,
        "searchQueries": list(getattr(metadata, "web_search_queries", None) or []),
        "sources": sources,
    }


def chunk_text(chunk: Any) -> str:
    """Text of a streamed chunk, or "" for chunks without text parts."""
    try:
        return chunk.text or ""
    except ValueError:
        # The SDK raises ValueError from .text when a chunk carries no text part
        return ""
