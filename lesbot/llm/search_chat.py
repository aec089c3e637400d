"""
Chat over the generateContent REST API, used for the search-grounded model.

Gemini 2.0 models only accept the `google_search` tool, which the
generative-ai SDK cannot express, so the "internet" model is called directly
with httpx the same way the TTS client is. The class mirrors the slice of
GenerativeModel the chat routes use: generate_content(contents=..., tools=...,
stream=...) returning objects with `.text` and `.candidates`.
"""

from __future__ import annotations

import base64
import json
import re
from collections.abc import Iterator
from types import SimpleNamespace
from typing import Any

import httpx

from lesbot.infrastructure.settings import GEMINI_API_BASE_URL
from lesbot.observability.logging import get_logger
from lesbot.observability.telemetry import counter

logger = get_logger(__name__)

CHAT_TIMEOUT = httpx.Timeout(120.0, connect=10.0)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


class GeminiRestError(RuntimeError):
    """The generateContent call returned a non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


def _snake(key: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def _to_namespace(value: Any) -> Any:
    """camelCase JSON to attribute access with snake_case names."""
    if isinstance(value, dict):
        return SimpleNamespace(**{_snake(k): _to_namespace(v) for k, v in value.items()})
    if isinstance(value, list):
        return [_to_namespace(item) for item in value]
    return value


def _wire_part(part: dict[str, Any]) -> dict[str, Any]:
    inline = part.get("inline_data")
    if inline is None:
        return part
    data = inline["data"]
    if isinstance(data, bytes):
        data = base64.b64encode(data).decode("ascii")
    return {"inlineData": {"mimeType": inline["mime_type"], "data": data}}


def to_wire_body(contents: list[dict[str, Any]], tools: list[dict[str, Any]] | None) -> dict[str, Any]:
    """REST body for a build_chat_request() payload (inline bytes become base64)."""
    body: dict[str, Any] = {
        "contents": [
            {"role": content["role"], "parts": [_wire_part(p) for p in content["parts"]]}
            for content in contents
        ]
    }
    if tools:
        body["tools"] = list(tools)
    return body


class RestChatResponse:
    """A generateContent result (or one streamed chunk) as returned by the REST API."""

    def __init__(self, payload: dict[str, Any]):
        self.payload = payload
        self.candidates = _to_namespace(payload.get("candidates") or [])

    @property
    def text(self) -> str:
        candidates = self.payload.get("candidates") or []
        if not candidates:
            return ""
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(part.get("text", "") for part in parts)


class GeminiSearchModel:
    """Minimal REST stand-in for GenerativeModel with search grounding support."""

    def __init__(
        self,
        model_name: str,
        api_key: str,
        base_url: str = GEMINI_API_BASE_URL,
        transport: httpx.BaseTransport | None = None,
    ):
        self.model_name = model_name
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._transport = transport

    def _url(self, method: str) -> str:
        return f"{self.base_url}/models/{self.model_name}:{method}"

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.is_error:
            counter("llm.search_chat.provider_error")
            logger.error("Gemini chat API error: status=%d", response.status_code)
            raise GeminiRestError(
                f"API call failed: {response.status_code} {response.text}",
                status_code=response.status_code,
            )

    def generate_content(
        self,
        contents: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        stream: bool = False,
    ) -> Any:
        """
        POST the request; with stream=True return an iterator of chunks.

        The HTTP status is checked before returning, also when streaming, so
        a rejected tool surfaces here and not halfway through iteration.

        Raises:
            GeminiRestError: On a non-2xx response.
            httpx.HTTPError: On transport failures.
        """
        body = to_wire_body(contents, tools)
        logger.info(
            "Calling Gemini REST chat (model=%s, stream=%s, tools=%d)",
            self.model_name,
            stream,
            len(body.get("tools", [])),
        )

        client = httpx.Client(timeout=CHAT_TIMEOUT, transport=self._transport)

        if not stream:
            with client:
                response = client.post(
                    self._url("generateContent"), params={"key": self.api_key}, json=body
                )
            self._raise_for_status(response)
            return RestChatResponse(response.json())

        try:
            request = client.build_request(
                "POST",
                self._url("streamGenerateContent"),
                params={"key": self.api_key, "alt": "sse"},
                json=body,
            )
            response = client.send(request, stream=True)
            if response.is_error:
                response.read()
                response.close()
                self._raise_for_status(response)
        except BaseException:
            client.close()
            raise

        return self._iter_events(client, response)

    def _iter_events(self, client: httpx.Client, response: httpx.Response) -> Iterator[RestChatResponse]:
        try:
            for line in response.iter_lines():
                if not line.startswith("data:"):
                    continue
                data = line[len("data:") :].strip()
                if data:
                    yield RestChatResponse(json.loads(data))
        finally:
            response.close()
            client.close()
