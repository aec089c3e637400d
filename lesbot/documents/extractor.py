"""
Text extraction for uploaded documents (.docx, .pdf, .csv).

The extracted text is pasted into the chat prompt by the client, so the CSV
path returns a short human-readable preview rather than the whole table.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass

from lesbot.config import CSV_PREVIEW_ROWS, DOCUMENT_MAX_BYTES
from lesbot.observability.logging import get_logger

logger = get_logger(__name__)

DOCX_TYPE = "Word Document (.docx)"
PDF_TYPE = "PDF Document (.pdf)"
CSV_TYPE = "CSV Data (.csv)"


class DocumentError(ValueError):
    """Base class for document problems the user can fix (HTTP 400)."""


class UnsupportedDocumentError(DocumentError):
    def __init__(self) -> None:
        super().__init__("Ondersteunde formaten: .docx, .pdf, .csv")


class DocumentTooLargeError(DocumentError):
    def __init__(self) -> None:
        super().__init__("Bestand is te groot (max 10MB)")


class DocumentParseError(DocumentError):
    """The file has a supported extension but could not be read."""


@dataclass
class ExtractedDocument:
    filename: str
    size: int
    file_type: str
    content: str

    @property
    def word_count(self) -> int:
        return len(self.content.split())

    @property
    def character_count(self) -> int:
        return len(self.content)


def extract_docx_text(data: bytes) -> str:
    from docx import Document

    document = Document(io.BytesIO(data))
    return "\n\n".join(paragraph.text for paragraph in document.paragraphs)


def extract_pdf_text(data: bytes) -> str:
    from pypdf import PdfReader

    reader = PdfReader(io.BytesIO(data))
    page_texts = [page.extract_text() or "" for page in reader.pages]
    return "\n\n".join(text for text in page_texts if text)


def _clean_cell(value: str) -> str:
    return value.replace('"', "").strip()


def format_csv_preview(text: str, max_rows: int = CSV_PREVIEW_ROWS) -> str:
    """
    Summarize CSV text as counts, column names and the first rows.

    Raises:
        DocumentParseError: If the file has no non-blank lines.
    """
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        raise DocumentParseError("CSV bestand is leeg")

    rows = list(csv.reader(lines))
    headers = [_clean_cell(cell) for cell in rows[0]]
    data_rows = rows[1:]

    out = [
        f"CSV Data ({len(data_rows)} rijen, {len(headers)} kolommen)\n\n",
        f"Kolommen: {', '.join(headers)}\n\n",
        f"Eerste {max_rows} rijen:\n",
    ]
    for index, row in enumerate(data_rows[:max_rows], start=1):
        out.append(f"{index}. {' | '.join(_clean_cell(cell) for cell in row)}\n")

    if len(data_rows) > max_rows:
        out.append(f"\n... en nog {len(data_rows) - max_rows} rijen")

    return "".join(out)


def extract_document(filename: str, data: bytes) -> ExtractedDocument:
    """
    Extract text from an uploaded document.

    Args:
        filename: Original file name, used to pick the parser.
        data: File bytes.

    Returns:
        ExtractedDocument with the text and its word/character counts.

    Raises:
        UnsupportedDocumentError: Extension is not .docx, .pdf or .csv.
        DocumentTooLargeError: File exceeds 10 MB.
        DocumentParseError: File could not be parsed.
    """
    name = filename.lower()
    if name.endswith(".docx"):
        parser, file_type = extract_docx_text, DOCX_TYPE
    elif name.endswith(".pdf"):
        parser, file_type = extract_pdf_text, PDF_TYPE
    elif name.endswith(".csv"):
        parser, file_type = _extract_csv_text, CSV_TYPE
    else:
        raise UnsupportedDocumentError()

    if len(data) > DOCUMENT_MAX_BYTES:
        raise DocumentTooLargeError()

    try:
        content = parser(data)
    except DocumentError:
        raise
    except Exception as e:
        logger.error("Failed to parse %s: %s", file_type, e)
        raise DocumentParseError(_PARSE_ERRORS[file_type]) from e

    logger.info("Extracted %s: bytes=%d chars=%d", file_type, len(data), len(content))
    return ExtractedDocument(filename=filename, size=len(data), file_type=file_type, content=content)


def _extract_csv_text(data: bytes) -> str:
    return format_csv_preview(data.decode("utf-8-sig", errors="replace"))


_PARSE_ERRORS = {
    DOCX_TYPE: "Fout bij het lezen van het Word bestand",
    PDF_TYPE: "Fout bij het lezen van het PDF bestand",
    CSV_TYPE: "Fout bij het lezen van het CSV bestand",
}
