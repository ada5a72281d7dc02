"""Tool handler for search_docs.

Receives AppState, runs the query against the selected corpus's index, and
returns a structured dict. No MCP or FastMCP imports; server.py handles
the MCP wiring.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from docshelf.errors import DocShelfError, ErrorCode
from docshelf.models.tools import SearchDocsInput, SearchDocsOutput

if TYPE_CHECKING:
    from docshelf.state import AppState


async def handle(query: str, corpus: str | None, state: AppState) -> dict:
    """Handle a search_docs tool call."""
    log = structlog.get_logger().bind(tool="search_docs", query=query[:200], corpus=corpus)
    log.info("handler_called")

    try:
        validated = SearchDocsInput(query=query, corpus=corpus)
    except ValueError as exc:
        raise DocShelfError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion="Provide a search query of at most 500 characters.",
            recoverable=False,
        ) from exc

    target = state.get_corpus(validated.corpus)
    results = target.search(validated.query)
    log.info("search_complete", result_count=len(results), indexed=len(target))

    output = SearchDocsOutput(corpus=target.name, results=results)
    return output.model_dump(mode="json")
