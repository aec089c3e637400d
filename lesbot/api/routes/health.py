"""Health check endpoint for the Lesbot API.

Liveness probe for the hosting platform.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter

from lesbot.config import APP_VERSION, ENV, SERVICE_NAME
from lesbot.llm.gemini import is_configured

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check() -> dict[str, Any]:
    """Health check endpoint.

    Reports whether a Gemini API key is present (no API call is made).
    """
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": APP_VERSION,
        "environment": ENV,
        "timestamp": datetime.now(UTC).isoformat(),
        "llm": {
            "ready": is_configured(),
            "gemini_api_key": is_configured(),
        },
    }
