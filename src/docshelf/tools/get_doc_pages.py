"""Tool handler for get_doc_pages."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from docshelf.errors import DocShelfError, ErrorCode
from docshelf.models.tools import GetDocPagesInput

if TYPE_CHECKING:
    from docshelf.state import AppState


async def handle(
    document_id: int,
    start_page: int,
    end_page: int | None,
    page_size: int | None,
    corpus: str | None,
    state: AppState,
) -> dict:
    """Handle a get_doc_pages tool call (inclusive page range)."""
    log = structlog.get_logger().bind(
        tool="get_doc_pages", document_id=document_id, corpus=corpus
    )
    log.info("handler_called", start_page=start_page, end_page=end_page, page_size=page_size)

    try:
        validated = GetDocPagesInput(
            document_id=document_id,
            start_page=start_page,
            end_page=end_page,
            page_size=page_size,
            corpus=corpus,
        )
    except ValueError as exc:
        raise DocShelfError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion="Provide a document_id from search_docs and integer page numbers.",
            recoverable=False,
        ) from exc

    target = state.get_corpus(validated.corpus)
    output = await target.get_page_range(
        validated.document_id,
        validated.start_page,
        validated.end_page,
        validated.page_size,
    )
    log.info(
        "pages_served",
        start_page=output.start_page,
        end_page=output.end_page,
        total_pages=output.total_pages,
        content_length=len(output.content),
    )
    return output.model_dump(mode="json")
