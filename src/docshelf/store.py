"""Document store: the mutable corpus of document metadata.

Owns id assignment and keeps the search index in lockstep with the entries.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

import structlog

from docshelf.models.documents import DocumentEntry
from docshelf.search import SearchIndex

if TYPE_CHECKING:
    from collections.abc import Iterable

    from docshelf.models.documents import ContentProducer, Heading

log = structlog.get_logger()


class DocumentStore:
    """Append-only list of entries indexed by sequential id.

    ``register`` is synchronous so that, under asyncio, id assignment and
    indexing happen without an intervening suspension point. The lock makes
    the same guarantee for callers on other threads.
    """

    def __init__(self, index: SearchIndex | None = None) -> None:
        self._entries: list[DocumentEntry] = []
        self._index = index if index is not None else SearchIndex()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def index(self) -> SearchIndex:
        return self._index

    def register(
        self,
        *,
        title: str,
        preview: str,
        content: ContentProducer,
        description: str | None = None,
        headings: Iterable[Heading] = (),
    ) -> int:
        """Add an entry and index it. Returns the new id."""
        if not title:
            raise ValueError("Document title must be non-empty")

        with self._lock:
            entry = DocumentEntry(
                id=len(self._entries),
                title=title,
                description=description,
                preview=preview,
                headings=tuple(headings),
                content=content,
            )
            # Index first: if it fails, the id is not consumed.
            self._index.add(
                entry.id,
                {"title": entry.title, "description": entry.description, "preview": entry.preview},
            )
            self._entries.append(entry)

        log.debug("document_registered", document_id=entry.id, title=entry.title)
        return entry.id

    def get(self, document_id: int) -> DocumentEntry | None:
        """O(1) lookup. Unknown (or negative) ids return ``None``."""
        if 0 <= document_id < len(self._entries):
            return self._entries[document_id]
        return None

    def search(self, query: str) -> list[DocumentEntry]:
        """Ranked entries for ``query``, best match first."""
        with self._lock:
            return [self._entries[hit.document_id] for hit in self._index.search(query)]
