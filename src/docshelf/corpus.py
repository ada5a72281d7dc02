"""A searchable, pageable documentation corpus.

Ties together the document store (with its search index), the content
cache, and the pagination and section arithmetic. One instance per
configured corpus; each has its own document id space.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from docshelf.cache import DEFAULT_CAPACITY, DEFAULT_TTL_SECONDS, ContentCache
from docshelf.errors import DocShelfError, ErrorCode, document_not_found
from docshelf.models.tools import (
    GetDocOutput,
    GetDocPagesOutput,
    GetDocSectionOutput,
    SearchResult,
)
from docshelf.pagination import clamp_page_size, paginate, paginate_range
from docshelf.search import SearchIndex
from docshelf.sections import locate_section, section_window
from docshelf.store import DocumentStore

if TYPE_CHECKING:
    from collections.abc import Callable

    from docshelf.config import CacheSettings, SearchSettings


class DocumentCorpus:
    def __init__(
        self,
        name: str,
        *,
        index: SearchIndex | None = None,
        cache_capacity: int = DEFAULT_CAPACITY,
        cache_ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.name = name
        self.store = DocumentStore(index)
        cache_kwargs = {} if clock is None else {"clock": clock}
        self.cache = ContentCache(
            self.store,
            capacity=cache_capacity,
            ttl_seconds=cache_ttl_seconds,
            **cache_kwargs,
        )

    @classmethod
    def from_settings(
        cls,
        name: str,
        *,
        cache: CacheSettings,
        search: SearchSettings,
    ) -> DocumentCorpus:
        index = SearchIndex(
            title_boost=search.title_boost,
            max_results=search.max_results,
            prefix=search.prefix,
            fuzzy=search.fuzzy,
        )
        return cls(
            name,
            index=index,
            cache_capacity=cache.capacity,
            cache_ttl_seconds=cache.ttl_hours * 3600,
        )

    def __len__(self) -> int:
        return len(self.store)

    def search(self, query: str) -> list[SearchResult]:
        """Ranked results; ``description`` falls back to the preview."""
        return [
            SearchResult(
                document_id=entry.id,
                title=entry.title,
                description=entry.description or entry.preview,
            )
            for entry in self.store.search(query)
        ]

    async def get_page(
        self,
        document_id: int,
        page: int = 1,
        page_size: int | None = None,
    ) -> GetDocOutput:
        lines = await self.cache.get(document_id)
        window = paginate(len(lines), page, page_size)
        return GetDocOutput(
            content="\n".join(lines[window.offset : window.offset + window.count]),
            page=window.page,
            total_pages=window.total_pages,
        )

    async def get_page_range(
        self,
        document_id: int,
        start_page: int,
        end_page: int | None = None,
        page_size: int | None = None,
    ) -> GetDocPagesOutput:
        lines = await self.cache.get(document_id)
        pages = paginate_range(len(lines), start_page, end_page, page_size)
        return GetDocPagesOutput(
            content="\n".join(lines[pages.offset : pages.offset + pages.count]),
            start_page=pages.start_page,
            end_page=pages.end_page,
            total_pages=pages.total_pages,
        )

    async def get_section(
        self,
        document_id: int,
        heading: str,
        depth: int | None = None,
        page_size: int | None = None,
    ) -> GetDocSectionOutput:
        entry = self.store.get(document_id)
        if entry is None:
            raise document_not_found(document_id)

        lines = await self.cache.get(document_id)
        bounds = locate_section(entry.headings, heading, depth)
        if bounds is None:
            raise DocShelfError(
                code=ErrorCode.SECTION_NOT_FOUND,
                message=f"No heading matching {heading!r} in document {document_id}.",
                suggestion=(
                    "Check the heading text, drop the depth filter, "
                    "or page through the document with get_doc."
                ),
                recoverable=False,
            )

        window = section_window(bounds, len(lines), clamp_page_size(page_size))
        return GetDocSectionOutput(
            content="\n".join(lines[window.from_line - 1 : window.to_line]),
            from_line=window.from_line,
            to_line=window.to_line,
            page_start=window.page_start,
            page_end=window.page_end,
            total_pages=window.total_pages,
        )
