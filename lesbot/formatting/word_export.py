"""
Markdown chat answer -> Word (.docx) document.

Layout follows what students get when they press "download as Word" in the
chat UI: coloured headings, indented lists, monospace code blocks with a
left border and quotes with a blue left border.
"""

from __future__ import annotations

import io
from datetime import UTC, datetime

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH, WD_COLOR_INDEX
from docx.oxml.shared import OxmlElement, qn
from docx.shared import Pt, RGBColor, Twips

from lesbot.formatting.markdown import Block, InlineRun, parse_blocks, parse_inline

HEADING_SIZES = {1: 16, 2: 14, 3: 12, 4: 11, 5: 10, 6: 9}  # points
HEADING_COLOR_MAJOR = RGBColor(0x1F, 0x4E, 0x79)
HEADING_COLOR_MINOR = RGBColor(0x2F, 0x75, 0xB5)
CODE_COLOR = RGBColor(0x00, 0x00, 0x80)
INLINE_CODE_COLOR = RGBColor(0xDC, 0x14, 0x3C)
LINK_COLOR = RGBColor(0x00, 0x00, 0xEE)
LABEL_COLOR = RGBColor(0x66, 0x66, 0x66)
RULE_TEXT = "─" * 33

DOCUMENT_AUTHOR = "Chatbot AI Assistant"
DOCUMENT_TITLE = "AI Generated Response"
DOCUMENT_DESCRIPTION = "Professional document generated from AI chatbot response"
EMPTY_PLACEHOLDER = "No content available"


def _add_left_border(paragraph, color: str, size: int) -> None:
    p_pr = paragraph._p.get_or_add_pPr()
    borders = OxmlElement("w:pBdr")
    left = OxmlElement("w:left")
    left.set(qn("w:val"), "single")
    left.set(qn("w:sz"), str(size))
    left.set(qn("w:space"), "1")
    left.set(qn("w:color"), color)
    borders.append(left)
    p_pr.append(borders)


def _spacing(paragraph, after: int, before: int = 0, indent: int = 0) -> None:
    fmt = paragraph.paragraph_format
    fmt.space_after = Twips(after)
    if before:
        fmt.space_before = Twips(before)
    if indent:
        fmt.left_indent = Twips(indent)


def _add_runs(paragraph, runs: list[InlineRun], **overrides) -> None:
    for spec in runs:
        run = paragraph.add_run(spec.text)
        run.bold = spec.bold or None
        run.italic = spec.italic or None
        if spec.strike:
            run.font.strike = True
        if spec.code:
            run.font.name = "Consolas"
            run.font.color.rgb = INLINE_CODE_COLOR
            run.font.highlight_color = WD_COLOR_INDEX.YELLOW
        if spec.href is not None:
            run.font.color.rgb = LINK_COLOR
            run.underline = True
        if "size" in overrides:
            run.font.size = overrides["size"]
        if "color" in overrides:
            run.font.color.rgb = overrides["color"]
        if overrides.get("bold"):
            run.bold = True


def _write_block(document, block: Block) -> None:
    if block.kind == "heading":
        paragraph = document.add_paragraph()
        _add_runs(
            paragraph,
            parse_inline(block.lines[0]),
            bold=True,
            size=Pt(HEADING_SIZES[block.level]),
            color=HEADING_COLOR_MAJOR if block.level <= 2 else HEADING_COLOR_MINOR,
        )
        _spacing(paragraph, after=240, before=480 if block.level == 1 else 240)

    elif block.kind in ("bullets", "numbered"):
        prefixes = (
            ["• "] * len(block.lines)
            if block.kind == "bullets"
            else [f"{number}. " for number in block.numbers]
        )
        for prefix, item in zip(prefixes, block.lines):
            paragraph = document.add_paragraph()
            paragraph.add_run(prefix)
            _add_runs(paragraph, parse_inline(item))
            _spacing(paragraph, after=120, indent=400)

    elif block.kind == "code":
        if block.language:
            label = document.add_paragraph()
            run = label.add_run(f"[{block.language.upper()}]")
            run.italic = True
            run.font.size = Pt(9)
            run.font.color.rgb = LABEL_COLOR
            _spacing(label, after=80)
        for line in "\n".join(block.lines).strip().split("\n"):
            paragraph = document.add_paragraph()
            run = paragraph.add_run(line or " ")
            run.font.name = "Consolas"
            run.font.size = Pt(10)
            run.font.color.rgb = CODE_COLOR
            # pBdr must precede spacing/ind inside pPr
            _add_left_border(paragraph, "CCCCCC", 6)
            _spacing(paragraph, after=40, indent=400)
        _spacing(document.add_paragraph(), after=200)

    elif block.kind == "quote":
        for line in block.lines:
            paragraph = document.add_paragraph()
            _add_runs(paragraph, parse_inline(line))
            _add_left_border(paragraph, "4472C4", 12)
            _spacing(paragraph, after=120, indent=600)

    elif block.kind == "rule":
        paragraph = document.add_paragraph(RULE_TEXT)
        paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
        _spacing(paragraph, after=200, before=200)

    elif block.kind == "paragraph":
        for line in block.lines:
            paragraph = document.add_paragraph()
            _add_runs(paragraph, parse_inline(line))
            _spacing(paragraph, after=200)

    elif block.kind == "blank":
        _spacing(document.add_paragraph(), after=120)


def markdown_to_docx(markdown: str) -> bytes:
    """Render markdown into a .docx file and return its bytes."""
    document = Document()
    props = document.core_properties
    props.author = DOCUMENT_AUTHOR
    props.title = DOCUMENT_TITLE
    props.comments = DOCUMENT_DESCRIPTION

    blocks = parse_blocks(markdown)
    if any(block.kind != "blank" for block in blocks):
        for block in blocks:
            _write_block(document, block)
    else:
        document.add_paragraph(EMPTY_PLACEHOLDER)

    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def export_filename(now: datetime | None = None) -> str:
    """Download name like Chatbot_Response_2025-06-01_14-30.docx (UTC)."""
    now = now or datetime.now(UTC)
    return f"Chatbot_Response_{now:%Y-%m-%d_%H-%M}.docx"
