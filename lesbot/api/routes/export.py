"""Markdown helpers for the chat UI: Word export and HTML/plain-text rendering."""

from __future__ import annotations

from fastapi import APIRouter, Response

from lesbot.api.errors import ApiError
from lesbot.api.models import MarkdownRequest, RenderedMarkdown
from lesbot.formatting.markdown import markdown_to_html, markdown_to_plain_text
from lesbot.formatting.word_export import export_filename, markdown_to_docx
from lesbot.observability.telemetry import log_event

router = APIRouter(prefix="/api", tags=["export"])

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


@router.post("/export-docx")
def export_docx(request: MarkdownRequest) -> Response:
    """Convert an assistant answer (markdown) into a downloadable Word file."""
    if not request.content.strip():
        raise ApiError(400, "Geen inhoud om te exporteren")

    document = markdown_to_docx(request.content)
    filename = export_filename()
    log_event("api.export.docx", chars=len(request.content), bytes=len(document))

    return Response(
        content=document,
        media_type=DOCX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.post("/render-markdown", response_model=RenderedMarkdown)
def render_markdown(request: MarkdownRequest) -> RenderedMarkdown:
    return RenderedMarkdown(
        html=markdown_to_html(request.content),
        plain_text=markdown_to_plain_text(request.content),
    )
