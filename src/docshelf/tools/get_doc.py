"""Tool handler for get_doc.

Returns one page of a document's content. The first access to a document
populates the content cache; later pages are served from memory.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from docshelf.errors import DocShelfError, ErrorCode
from docshelf.models.tools import GetDocInput

if TYPE_CHECKING:
    from docshelf.state import AppState


async def handle(
    document_id: int,
    page: int,
    page_size: int | None,
    corpus: str | None,
    state: AppState,
) -> dict:
    """Handle a get_doc tool call."""
    log = structlog.get_logger().bind(tool="get_doc", document_id=document_id, corpus=corpus)
    log.info("handler_called", page=page, page_size=page_size)

    try:
        validated = GetDocInput(
            document_id=document_id, page=page, page_size=page_size, corpus=corpus
        )
    except ValueError as exc:
        raise DocShelfError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion="Provide a document_id from search_docs and an integer page.",
            recoverable=False,
        ) from exc

    target = state.get_corpus(validated.corpus)
    output = await target.get_page(validated.document_id, validated.page, validated.page_size)
    log.info(
        "page_served",
        page=output.page,
        total_pages=output.total_pages,
        content_length=len(output.content),
    )
    return output.model_dump(mode="json")
