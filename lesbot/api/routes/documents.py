"""Document upload endpoint: text extraction from .docx, .pdf and .csv files."""

from __future__ import annotations

from fastapi import APIRouter, File, UploadFile
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from lesbot.api.errors import ApiError
from lesbot.api.models import DocumentResponse
from lesbot.documents.extractor import DocumentError, extract_document
from lesbot.observability.logging import get_logger
from lesbot.observability.telemetry import counter, log_event

router = APIRouter(prefix="/api", tags=["documents"])
logger = get_logger(__name__)


@router.post("/upload-docx", response_model=DocumentResponse)
async def upload_document(file: UploadFile | None = File(None)) -> DocumentResponse:
    if file is None:
        raise ApiError(400, "Geen bestand gevonden")

    data = await file.read()
    log_event("api.documents.upload", bytes=len(data), filename_length=len(file.filename or ""))

    try:
        document = await run_in_threadpool(extract_document, file.filename or "", data)
    except DocumentError as e:
        counter("api.documents.rejected")
        raise ApiError(400, str(e)) from None
    except Exception as e:
        logger.error("Unexpected error processing upload: %s", e)
        raise ApiError(500, "Er is een fout opgetreden bij het verwerken van het bestand") from None

    return DocumentResponse(
        filename=document.filename,
        size=document.size,
        file_type=document.file_type,
        content=document.content,
        word_count=document.word_count,
        character_count=document.character_count,
    )


@router.get("/upload-docx")
def upload_document_get() -> JSONResponse:
    return JSONResponse(
        status_code=405,
        content={"error": "GET method not allowed. Use POST to upload files."},
        headers={"Allow": "POST"},
    )
