"""Markdown structuring for ingested documentation pages.

Single-pass heading extraction over the body (frontmatter removed), with
headings inside fenced code blocks suppressed. Line numbers are 1-based
positions within the returned ``content`` so they line up with the cached
line sequence served by the corpus.
"""

from __future__ import annotations

import re
from typing import Any

import structlog
import yaml

from docshelf.models.documents import Heading, MarkdownFile

log = structlog.get_logger()

_FRONTMATTER_RE = re.compile(r"\A---[ \t]*\r?\n(?:(.*?)\r?\n)?---[ \t]*(?:\r?\n|\Z)", re.DOTALL)
_HEADING_RE = re.compile(r"^ {0,3}(#{1,6})[ \t]+(.+?)(?:[ \t]+#+)?[ \t]*$")

# Inline markup reduced to its text
_IMAGE_RE = re.compile(r"!\[([^\]]*)\]\([^)]*\)")
_LINK_RE = re.compile(r"\[([^\]]*)\]\([^)]*\)")
_CODE_SPAN_RE = re.compile(r"`+([^`]*)`+")
_EMPHASIS_RE = re.compile(r"(\*{1,3}|_{1,3}|~~)(\S(?:.*?\S)?)\1")
_HTML_TAG_RE = re.compile(r"<[^>]+>")


def split_frontmatter(raw: str) -> tuple[dict[str, Any], str]:
    """Split a leading YAML frontmatter block from the body.

    Returns ``({}, raw)`` when there is no frontmatter. Malformed or
    non-mapping frontmatter is dropped from the body and parsed as ``{}``.
    """
    match = _FRONTMATTER_RE.match(raw)
    if match is None:
        return {}, raw

    body = raw[match.end() :]
    try:
        data = yaml.safe_load(match.group(1) or "")
    except yaml.YAMLError:
        log.warning("frontmatter_parse_error", exc_info=True)
        return {}, body

    if not isinstance(data, dict):
        return {}, body
    return data, body


def heading_text(raw: str) -> str:
    """Plain text of a heading: ``"Using `stream()` **now**"`` → ``"Using stream() now"``."""
    text = _IMAGE_RE.sub(r"\1", raw)
    text = _LINK_RE.sub(r"\1", text)
    text = _CODE_SPAN_RE.sub(r"\1", text)
    text = _EMPHASIS_RE.sub(r"\2", text)
    text = _HTML_TAG_RE.sub("", text)
    return " ".join(text.split())


def parse_headings(content: str) -> list[Heading]:
    """Extract H1–H6 ATX headings with 1-based line numbers."""
    headings: list[Heading] = []

    in_code_block = False
    fence: str | None = None

    for lineno, line in enumerate(content.split("\n"), start=1):
        stripped = line.strip()

        # Rule 1: code block tracking
        if stripped.startswith("```") or stripped.startswith("~~~"):
            current_fence = stripped[:3]
            if not in_code_block:
                in_code_block = True
                fence = current_fence
            elif current_fence == fence:
                in_code_block = False
                fence = None
            continue

        if in_code_block:
            continue

        # Rule 2: heading detection
        match = _HEADING_RE.match(line.rstrip("\r"))
        if not match:
            continue

        headings.append(
            Heading(depth=len(match.group(1)), text=heading_text(match.group(2)), line=lineno)
        )

    return headings


def _frontmatter_str(frontmatter: dict[str, Any], key: str) -> str | None:
    value = frontmatter.get(key)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def process_markdown(raw: str) -> MarkdownFile:
    """Structure a raw markdown document.

    Title comes from frontmatter, else the first H1. Description combines the
    frontmatter description with a bulleted list of H2 headings.
    """
    frontmatter, content = split_frontmatter(raw)
    headings = parse_headings(content)

    title = _frontmatter_str(frontmatter, "title")
    if title is None:
        title = next((h.text for h in headings if h.depth == 1 and h.text), None)

    parts = [_frontmatter_str(frontmatter, "description")]
    h2s = [h.text for h in headings if h.depth == 2]
    if h2s:
        parts.append("\n".join(f"- {text}" for text in h2s))
    description = "\n\n".join(part for part in parts if part).strip()

    return MarkdownFile(
        title=title,
        description=description or None,
        frontmatter=frontmatter,
        headings=tuple(headings),
        content=content,
    )
