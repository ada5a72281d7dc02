"""Application state container.

AppState is created once at server startup (inside the FastMCP lifespan context
manager) and injected into every tool handler via the MCP Context object.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from docshelf.errors import DocShelfError, ErrorCode

if TYPE_CHECKING:
    import asyncio

    import httpx

    from docshelf.config import Settings
    from docshelf.corpus import DocumentCorpus
    from docshelf.protocols import FetcherProtocol


@dataclass
class AppState:
    """Holds all shared runtime state. Passed to every tool handler."""

    settings: Settings

    # corpus name → corpus, in configuration order
    corpora: dict[str, DocumentCorpus] = field(default_factory=dict)

    http_client: httpx.AsyncClient | None = None
    fetcher: FetcherProtocol | None = None
    load_tasks: list[asyncio.Task[int]] = field(default_factory=list)

    def get_corpus(self, name: str | None) -> DocumentCorpus:
        """Resolve a corpus by name; ``None`` selects the first configured corpus."""
        if name is None:
            if self.corpora:
                return next(iter(self.corpora.values()))
        elif name in self.corpora:
            return self.corpora[name]

        raise DocShelfError(
            code=ErrorCode.CORPUS_NOT_FOUND,
            message=f"Corpus {name!r} is not configured.",
            suggestion=f"Available corpora: {', '.join(self.corpora) or 'none'}.",
            recoverable=False,
        )
