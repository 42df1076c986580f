"""Recover a structured reply from whatever prefix of the stream has arrived.

``extract`` is called with the full accumulated text after every chunk, so it
has to be cheap, total and deterministic. It walks the text once, line by line,
cutting it at reserved heading lines; fenced code is located with plain
``str.find`` scans instead of a backtracking pattern.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from ..domain.document_models import ParsedDocument, ToolCall
from .response_grammar import (
    BUILDING_HEADING,
    CODE_FENCE_LANGUAGES,
    FALLBACK_PLACEHOLDER,
    FENCE,
    HEADING_FIELDS,
    PLAN_HEADING,
    SUMMARY_HEADING,
    TOOL_LINE,
    is_heading_line,
)


def _is_pending_heading(fragment: str) -> bool:
    """True for an unterminated last line that may still grow into a heading."""
    stripped = fragment.rstrip()
    if not stripped.startswith("#"):
        return False
    return any(heading.startswith(stripped) for heading in HEADING_FIELDS)


def split_sections(text: str) -> Dict[str, str]:
    """Map each reserved heading present in ``text`` to its stripped body.

    A heading only counts once its line is terminated. The first occurrence of
    a heading wins; later repeats still act as delimiters.
    """
    spans: Dict[str, str] = {}
    current: Optional[str] = None
    body: List[str] = []
    pos = 0
    length = len(text)

    def close() -> None:
        if current is not None and current not in spans:
            spans[current] = "\n".join(body).strip()

    while pos < length:
        newline = text.find("\n", pos)
        if newline == -1:
            line = text[pos:]
            if _is_pending_heading(line):
                break
            if current is not None:
                body.append(line)
            break
        line = text[pos:newline]
        pos = newline + 1
        if is_heading_line(line):
            close()
            current = line.rstrip()
            body = []
        elif current is not None:
            body.append(line)

    close()
    return spans


def parse_tools(span: str) -> List[ToolCall]:
    tools: List[ToolCall] = []
    for line in span.split("\n"):
        match = TOOL_LINE.match(line.strip())
        if match:
            tools.append(ToolCall(kind=match.group(1), description=match.group(2).strip()))
    return tools


def first_code_block(text: str) -> Optional[str]:
    """Body of the first fence tagged with a script language, once it is closed."""
    pos = 0
    while True:
        start = text.find(FENCE, pos)
        if start == -1:
            return None
        tag_start = start + len(FENCE)
        newline = text.find("\n", tag_start)
        if newline == -1:
            return None
        tag = text[tag_start:newline].strip().lower()
        if tag in CODE_FENCE_LANGUAGES:
            end = text.find(FENCE, newline + 1)
            if end == -1:
                return None
            return text[newline + 1 : end]
        pos = tag_start


def extract(text: str) -> ParsedDocument:
    text = text or ""
    spans = split_sections(text)
    plan = spans.get(PLAN_HEADING)
    building = spans.get(BUILDING_HEADING)
    summary = spans.get(SUMMARY_HEADING)
    return ParsedDocument(
        plan=plan,
        tools=parse_tools(building) if building else [],
        code=first_code_block(text),
        summary=summary,
    )


def strip_code_fences(text: str) -> str:
    """Remove every fenced block, including one still open at the end."""
    out: List[str] = []
    pos = 0
    while True:
        start = text.find(FENCE, pos)
        if start == -1:
            out.append(text[pos:])
            break
        out.append(text[pos:start])
        end = text.find(FENCE, start + len(FENCE))
        if end == -1:
            break
        pos = end + len(FENCE)
    return "".join(out)


def render_fallback(text: str) -> str:
    remainder = strip_code_fences(text or "").strip()
    return remainder or FALLBACK_PLACEHOLDER


def tool_label(kind: str) -> str:
    return kind.replace("_", " ").capitalize()


def display_text(text: str, document: Optional[ParsedDocument] = None) -> str:
    """Plain-text rendering of an assistant turn for the chat transcript."""
    document = document if document is not None else extract(text)
    if not document.is_structured:
        return render_fallback(text)
    lines: List[str] = []
    if document.plan:
        lines.append(document.plan)
    for tool in document.tools:
        lines.append(f"- {tool_label(tool.kind)}: {tool.description}")
    if document.summary:
        lines.append(document.summary)
    return "\n".join(lines)
