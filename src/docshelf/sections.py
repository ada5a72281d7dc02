"""Heading-bounded section lookup.

Pure business logic: receives a heading outline, returns 1-based line
bounds. No knowledge of the cache, the store, or MCP.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from docshelf.pagination import count_pages, page_of_line

if TYPE_CHECKING:
    from collections.abc import Sequence

    from docshelf.models.documents import Heading

_PUNCTUATION_RE = re.compile(r"""[`*_~\[\]();:.,!?"'<>#]""")


@dataclass(frozen=True)
class SectionBounds:
    start_line: int
    # None means the section runs to the end of the document
    end_line: int | None


@dataclass(frozen=True)
class SectionWindow:
    from_line: int
    to_line: int
    page_start: int
    page_end: int
    total_pages: int


def normalise_heading(text: str) -> str:
    """Lowercase, drop markup punctuation, trim."""
    return _PUNCTUATION_RE.sub("", text.lower()).strip()


def locate_section(
    headings: Sequence[Heading],
    query: str,
    depth: int | None = None,
) -> SectionBounds | None:
    """Find the first heading whose normalised text contains the normalised query.

    With ``depth`` set, only headings at exactly that depth are eligible. The
    section ends on the line before the next heading (in full document order)
    whose depth is less than or equal to the matched heading's depth.
    Returns ``None`` when nothing matches.
    """
    needle = normalise_heading(query)

    for index, heading in enumerate(headings):
        if depth is not None and heading.depth != depth:
            continue
        if needle not in normalise_heading(heading.text):
            continue

        for following in headings[index + 1 :]:
            if following.depth <= heading.depth:
                return SectionBounds(start_line=heading.line, end_line=following.line - 1)
        return SectionBounds(start_line=heading.line, end_line=None)

    return None


def section_window(bounds: SectionBounds, total_lines: int, page_size: int) -> SectionWindow:
    """Clamp section bounds to the document and map them onto pages."""
    last_line = max(total_lines, 1)
    from_line = min(max(bounds.start_line, 1), last_line)
    end_line = last_line if bounds.end_line is None else bounds.end_line
    to_line = min(max(end_line, from_line), last_line)

    total_pages = count_pages(total_lines, page_size)
    page_start = page_of_line(from_line, page_size, total_pages)
    page_end = max(page_of_line(to_line, page_size, total_pages), page_start)
    return SectionWindow(
        from_line=from_line,
        to_line=to_line,
        page_start=page_start,
        page_end=page_end,
        total_pages=total_pages,
    )
