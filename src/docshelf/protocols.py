"""Protocol interfaces for swappable components.

The loader and AppState reference these protocols, not the concrete
implementations, so tests can drive ingestion with in-memory fetchers.
"""

from __future__ import annotations

from typing import Protocol


class FetcherProtocol(Protocol):
    """Interface for the retrying text fetcher."""

    async def fetch(self, url: str) -> str: ...
