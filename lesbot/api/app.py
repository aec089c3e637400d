"""FastAPI server for the Lesbot classroom chat assistant"""

from __future__ import annotations

from typing import Any

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from lesbot.api.errors import ApiError
from lesbot.api.middleware.rate_limit import RateLimitMiddleware
from lesbot.api.routes.chat import router as chat_router
from lesbot.api.routes.documents import router as documents_router
from lesbot.api.routes.export import router as export_router
from lesbot.api.routes.health import router as health_router
from lesbot.api.routes.transcribe import router as transcribe_router
from lesbot.api.routes.tts import router as tts_router
from lesbot.config import (
    ALLOWED_ORIGINS,
    API_HOST,
    API_PORT,
    APP_VERSION,
    DEV_ORIGINS,
    SERVICE_NAME,
    is_development,
)
from lesbot.llm.gemini import is_configured
from lesbot.observability.logging import get_logger
from lesbot.observability.telemetry import counter, log_event

# Load environment variables from .env file
load_dotenv()

app = FastAPI(title=SERVICE_NAME, version=APP_VERSION)

logger = get_logger(__name__)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Validation errors for malformed bodies, without echoing validation internals.
    """
    logger.warning("Validation error on %s: %s", request.url.path, exc.errors())
    counter("api.validation_errors")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": "Invalid request format. Please check your request and try again.",
            "error_count": len(exc.errors()),
            "invalid_fields": [str(err["loc"][-1]) for err in exc.errors()],
        },
    )


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    counter(f"api.errors.{exc.status_code}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_content())


# Rate limiting - one shared Gemini key behind every request
app.add_middleware(RateLimitMiddleware)

# CORS is outermost so 429 responses carry CORS headers too
origins = list(ALLOWED_ORIGINS)
if is_development():
    origins.extend(o for o in DEV_ORIGINS if o not in origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
)

app.include_router(health_router)
app.include_router(chat_router)
app.include_router(tts_router)
app.include_router(transcribe_router)
app.include_router(documents_router)
app.include_router(export_router)

log_event(
    "api.startup",
    service="lesbot",
    version=APP_VERSION,
    gemini_configured=is_configured(),
)


@app.get("/")
def root() -> dict[str, Any]:
    return {
        "service": SERVICE_NAME,
        "version": APP_VERSION,
        "status": "running",
        "endpoints": {
            "health": "/health",
            "chat": "/api/chat",
            "chat_stream": "/api/chat-stream",
            "tts": "/api/generate-tts",
            "transcribe": "/api/transcribe-audio",
            "upload": "/api/upload-docx",
            "export_docx": "/api/export-docx",
            "render_markdown": "/api/render-markdown",
        },
    }


def main() -> None:
    """Run the API with uvicorn (console script `lesbot-api`)."""
    import uvicorn

    uvicorn.run("lesbot.api.app:app", host=API_HOST, port=API_PORT)


if __name__ == "__main__":
    main()
