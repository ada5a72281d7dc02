"""In-memory content cache keyed by document id.

Holds each document's content split into lines. Capacity-bounded with LRU
eviction, entries expire a fixed time after they were populated, and
concurrent misses for the same key share a single content-producer call.

Failures are never cached: a failed population leaves the key absent so the
next ``get`` retries. Eviction only drops the cached lines; the document
entry and its index entry stay in the store.
"""

from __future__ import annotations

import asyncio
import time
from collections import OrderedDict
from typing import TYPE_CHECKING

import structlog

from docshelf.errors import DocShelfError, ErrorCode, document_not_found

if TYPE_CHECKING:
    from collections.abc import Callable

    from docshelf.store import DocumentStore

log = structlog.get_logger()

DEFAULT_CAPACITY = 512
DEFAULT_TTL_SECONDS = 12 * 60 * 60


def split_lines(content: str) -> list[str]:
    """Split on ``\\n`` and strip a trailing ``\\r`` so line numbers match heading lines."""
    return [line.removesuffix("\r") for line in content.split("\n")]


def _retrieve_failure(task: asyncio.Task[list[str]]) -> None:
    # Every awaiting caller may have been cancelled; mark the failure as seen
    # so asyncio does not report it as never retrieved.
    if not task.cancelled():
        task.exception()


class ContentCache:
    """Single-flight LRU+TTL cache of document lines."""

    def __init__(
        self,
        store: DocumentStore,
        *,
        capacity: int = DEFAULT_CAPACITY,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self._store = store
        self._capacity = capacity
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        # document id → (lines, populated_at); order is least → most recently used
        self._entries: OrderedDict[int, tuple[list[str], float]] = OrderedDict()
        self._inflight: dict[int, asyncio.Task[list[str]]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, document_id: object) -> bool:
        """True if a fresh (unexpired) value is cached."""
        if not isinstance(document_id, int) or document_id not in self._entries:
            return False
        _, populated_at = self._entries[document_id]
        return not self._expired(populated_at)

    async def get(self, document_id: int) -> list[str]:
        """Return the document's lines, populating the cache on miss or expiry.

        Raises ``DocShelfError`` with ``DOCUMENT_NOT_FOUND`` for ids unknown to
        the store, and ``DOCUMENT_FETCH_FAILED`` when the content producer fails.
        """
        cached = self._entries.get(document_id)
        if cached is not None:
            lines, populated_at = cached
            if not self._expired(populated_at):
                self._entries.move_to_end(document_id)
                return lines
            del self._entries[document_id]
            log.debug("cache_entry_expired", document_id=document_id)

        task = self._inflight.get(document_id)
        if task is None:
            log.debug("cache_miss", document_id=document_id)
            task = asyncio.create_task(self._populate(document_id))
            task.add_done_callback(_retrieve_failure)
            self._inflight[document_id] = task

        # Shield so one cancelled caller does not cancel the fetch for the others.
        return await asyncio.shield(task)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _expired(self, populated_at: float) -> bool:
        return self._clock() - populated_at >= self._ttl_seconds

    async def _populate(self, document_id: int) -> list[str]:
        try:
            return await self._load(document_id)
        finally:
            self._inflight.pop(document_id, None)

    async def _load(self, document_id: int) -> list[str]:
        entry = self._store.get(document_id)
        if entry is None:
            raise document_not_found(document_id)

        try:
            content = await entry.content()
        except DocShelfError:
            log.warning("cache_populate_failed", document_id=document_id)
            raise
        except Exception as exc:
            log.warning("cache_populate_failed", document_id=document_id, exc_info=True)
            raise DocShelfError(
                code=ErrorCode.DOCUMENT_FETCH_FAILED,
                message=f"Failed to load content for document {document_id}: {exc}",
                suggestion="The documentation source may be temporarily unavailable.",
                recoverable=True,
            ) from exc

        lines = split_lines(content)
        self._store_lines(document_id, lines)
        return lines

    def _store_lines(self, document_id: int, lines: list[str]) -> None:
        self._entries[document_id] = (lines, self._clock())
        self._entries.move_to_end(document_id)
        while len(self._entries) > self._capacity:
            evicted, _ = self._entries.popitem(last=False)
            log.debug("cache_evicted", document_id=evicted)
