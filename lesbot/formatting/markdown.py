"""
Small markdown dialect used by chat answers.

Gemini answers use a predictable subset: headers, emphasis, inline code,
fenced code, links, bullet/numbered lists, blockquotes and rules. The block
and inline parsers here feed both the HTML renderer below and the Word
exporter in lesbot.formatting.word_export.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass, field

_FENCE = re.compile(r"^```(\w+)?")
_QUOTE = re.compile(r"^>[ \t]*(.*)$")
_RULE = re.compile(r"^(-{3,}|\*{3,}|_{3,})$")
_HEADER = re.compile(r"^(#{1,6})\s+(.+)$")
_BULLET = re.compile(r"^([-*+])\s+(.+)$")
_NUMBERED = re.compile(r"^(\d+)\.\s+(.+)$")

_INLINE = re.compile(
    r"(\*\*\*[^*]+\*\*\*"
    r"|\*\*[^*]+\*\*"
    r"|\*[^*]+\*"
    r"|(?<!\w)___[^_]+___(?!\w)"
    r"|(?<!\w)__[^_]+__(?!\w)"
    r"|(?<!\w)_[^_]+_(?!\w)"
    r"|`[^`]+`"
    r"|~~[^~]+~~"
    r"|\[([^\]]+)\]\(([^)]+)\))"
)

_SAFE_HREF = re.compile(r"^(https?://|mailto:|/|#)", re.IGNORECASE)


@dataclass
class InlineRun:
    text: str
    bold: bool = False
    italic: bool = False
    code: bool = False
    strike: bool = False
    href: str | None = None


@dataclass
class Block:
    # heading | bullets | numbered | code | quote | rule | paragraph | blank
    kind: str
    lines: list[str] = field(default_factory=list)
    level: int = 0
    language: str = ""
    numbers: list[str] = field(default_factory=list)


def parse_inline(text: str) -> list[InlineRun]:
    """Split a line into formatted runs. Unmatched markers stay literal."""
    runs: list[InlineRun] = []
    last = 0

    for match in _INLINE.finditer(text):
        if match.start() > last:
            runs.append(InlineRun(text[last : match.start()]))

        token = match.group(0)
        if token.startswith("[") and match.group(2):
            runs.append(InlineRun(match.group(2), href=match.group(3)))
        elif token[:3] in ("***", "___"):
            runs.append(InlineRun(token[3:-3], bold=True, italic=True))
        elif token[:2] in ("**", "__"):
            runs.append(InlineRun(token[2:-2], bold=True))
        elif token.startswith("~~"):
            runs.append(InlineRun(token[2:-2], strike=True))
        elif token.startswith("`"):
            runs.append(InlineRun(token[1:-1], code=True))
        else:
            runs.append(InlineRun(token[1:-1], italic=True))

        last = match.end()

    if last < len(text):
        runs.append(InlineRun(text[last:]))

    return runs or [InlineRun(text)]


def parse_blocks(markdown: str) -> list[Block]:
    """Group markdown lines into blocks.

    Consecutive list items, quote lines and paragraph lines are merged into
    one block; a blank line always ends the current group. An unterminated
    code fence runs to the end of the text.
    """
    blocks: list[Block] = []
    code: Block | None = None
    lines = markdown.split("\n")

    def _extend(kind: str) -> Block:
        if blocks and blocks[-1].kind == kind:
            return blocks[-1]
        block = Block(kind)
        blocks.append(block)
        return block

    for index, raw in enumerate(lines):
        line = raw.strip()
        fence = _FENCE.match(line)

        if code is not None:
            if fence:
                blocks.append(code)
                code = None
            else:
                code.lines.append(raw)
            continue

        if fence:
            code = Block("code", language=fence.group(1) or "")
            continue

        if quote := _QUOTE.match(line):
            _extend("quote").lines.append(quote.group(1))
        elif _RULE.match(line):
            blocks.append(Block("rule"))
        elif header := _HEADER.match(line):
            blocks.append(Block("heading", lines=[header.group(2)], level=len(header.group(1))))
        elif bullet := _BULLET.match(line):
            _extend("bullets").lines.append(bullet.group(2))
        elif numbered := _NUMBERED.match(line):
            block = _extend("numbered")
            block.numbers.append(numbered.group(1))
            block.lines.append(numbered.group(2))
        elif line:
            _extend("paragraph").lines.append(line)
        elif index < len(lines) - 1:
            blocks.append(Block("blank"))

    if code is not None:
        blocks.append(code)

    return blocks


# ---------------------------------------------------------------------------
# HTML
# ---------------------------------------------------------------------------


def render_inline_html(text: str) -> str:
    out = []
    for run in parse_inline(text):
        piece = html.escape(run.text, quote=False)
        if run.href is not None:
            if _SAFE_HREF.match(run.href):
                href = html.escape(run.href, quote=True)
                piece = f'<a href="{href}" target="_blank" rel="noopener noreferrer">{piece}</a>'
            out.append(piece)
            continue
        if run.code:
            piece = f"<code>{piece}</code>"
        if run.strike:
            piece = f"<del>{piece}</del>"
        if run.italic:
            piece = f"<em>{piece}</em>"
        if run.bold:
            piece = f"<strong>{piece}</strong>"
        out.append(piece)
    return "".join(out)


def markdown_to_html(markdown: str) -> str:
    """Render chat markdown to an HTML fragment. All text is escaped."""
    parts = []
    for block in parse_blocks(markdown):
        if block.kind == "heading":
            parts.append(f"<h{block.level}>{render_inline_html(block.lines[0])}</h{block.level}>")
        elif block.kind == "bullets":
            items = "".join(f"<li>{render_inline_html(item)}</li>" for item in block.lines)
            parts.append(f"<ul>{items}</ul>")
        elif block.kind == "numbered":
            items = "".join(f"<li>{render_inline_html(item)}</li>" for item in block.lines)
            start = block.numbers[0]
            parts.append(f"<ol>{items}</ol>" if start == "1" else f'<ol start="{start}">{items}</ol>')
        elif block.kind == "code":
            code = html.escape("\n".join(block.lines).strip("\n"), quote=False)
            cls = f' class="language-{block.language}"' if block.language else ""
            parts.append(f"<pre><code{cls}>{code}</code></pre>")
        elif block.kind == "quote":
            parts.append(f"<blockquote>{'<br />'.join(map(render_inline_html, block.lines))}</blockquote>")
        elif block.kind == "rule":
            parts.append("<hr />")
        elif block.kind == "paragraph":
            parts.append(f"<p>{'<br />'.join(map(render_inline_html, block.lines))}</p>")
    return "\n".join(parts)


# ---------------------------------------------------------------------------
# Plain text (copy to clipboard, browser speech synthesis)
# ---------------------------------------------------------------------------

_PLAIN_TEXT_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"^#{1,6}\s+", re.MULTILINE), ""),
    (re.compile(_RULE.pattern, re.MULTILINE), ""),
    (re.compile(_QUOTE.pattern, re.MULTILINE), r"\1"),
    (re.compile(r"\*\*([^*]+)\*\*"), r"\1"),
    (re.compile(r"\*([^*]+)\*"), r"\1"),
    (re.compile(r"__([^_]+)__"), r"\1"),
    (re.compile(r"(?<!\w)_([^_]+)_(?!\w)"), r"\1"),
    (re.compile(r"\[([^\]]+)\]\([^)]+\)"), r"\1"),
    (re.compile(r"```[\s\S]*?```"), ""),
    (re.compile(r"`([^`]+)`"), r"\1"),
    (re.compile(r"^\s*[-*+]\s+", re.MULTILINE), ""),
    (re.compile(r"^\s*\d+\.\s+", re.MULTILINE), ""),
    (re.compile(r"\n\s*\n\s*\n"), "\n\n"),
)


def markdown_to_plain_text(markdown: str) -> str:
    text = markdown
    for pattern, replacement in _PLAIN_TEXT_RULES:
        text = pattern.sub(replacement, text)
    return text.strip()
