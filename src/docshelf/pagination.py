"""Line-based pagination arithmetic.

Pure functions with no state and no I/O. Pages are 1-based; line offsets are
0-based indices into a document's cached line sequence.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

DEFAULT_PAGE_SIZE = 200
MAX_PAGE_SIZE = 500


@dataclass(frozen=True)
class PageWindow:
    offset: int
    count: int
    page: int
    total_pages: int


@dataclass(frozen=True)
class PageRange:
    offset: int
    count: int
    start_page: int
    end_page: int
    total_pages: int


def clamp_page_size(page_size: float | None = None) -> int:
    """Resolve a requested page size to an integer in [1, MAX_PAGE_SIZE]."""
    if page_size is None:
        return DEFAULT_PAGE_SIZE
    return min(max(math.floor(page_size), 1), MAX_PAGE_SIZE)


def count_pages(total_lines: int, page_size: int) -> int:
    """Always at least 1: an empty document has one empty page."""
    return max(1, math.ceil(total_lines / page_size))


def _clamp(value: int, low: int, high: int) -> int:
    return min(max(value, low), high)


def paginate(total_lines: int, page: float = 1, page_size: float | None = None) -> PageWindow:
    """Compute the line window for a single page.

    ``page`` is clamped to ``[1, total_pages]`` after the page size is resolved.
    """
    size = clamp_page_size(page_size)
    total_pages = count_pages(total_lines, size)
    current = _clamp(math.floor(page), 1, total_pages)
    offset = (current - 1) * size
    count = max(0, min(size, total_lines - offset))
    return PageWindow(offset=offset, count=count, page=current, total_pages=total_pages)


def paginate_range(
    total_lines: int,
    start_page: float,
    end_page: float | None = None,
    page_size: float | None = None,
) -> PageRange:
    """Compute the line window spanning ``start_page`` through ``end_page`` inclusive.

    Both ends are clamped independently; ``end_page`` is then raised to at
    least ``start_page``.
    """
    size = clamp_page_size(page_size)
    total_pages = count_pages(total_lines, size)
    start = _clamp(math.floor(start_page), 1, total_pages)
    requested_end = start_page if end_page is None else end_page
    end = _clamp(math.floor(requested_end), start, total_pages)
    offset = (start - 1) * size
    stop = min(end * size, total_lines)
    return PageRange(
        offset=offset,
        count=max(0, stop - offset),
        start_page=start,
        end_page=end,
        total_pages=total_pages,
    )


def page_of_line(line: int, page_size: int, total_pages: int) -> int:
    """Map a 1-based line number to the page containing it."""
    return _clamp(math.ceil(line / page_size), 1, total_pages)
