from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

ContentProducer = Callable[[], Awaitable[str]]


@dataclass(frozen=True)
class Heading:
    """One entry of a document outline. ``line`` is 1-based within the content."""

    depth: int
    text: str
    line: int


@dataclass(frozen=True)
class MarkdownFile:
    """Structured result of processing a raw markdown document."""

    title: str | None
    description: str | None
    frontmatter: dict[str, Any]
    headings: tuple[Heading, ...]
    content: str


@dataclass(frozen=True)
class DocumentEntry:
    """An ingested page. Frozen at registration; ``id`` is never reused."""

    id: int
    title: str
    preview: str
    content: ContentProducer = field(repr=False, compare=False)
    description: str | None = None
    headings: tuple[Heading, ...] = ()


def static_content(text: str) -> ContentProducer:
    """Wrap already-fetched text as a content producer."""

    async def produce() -> str:
        return text

    return produce
