"""Tool handler for get_doc_section.

Locates a section by heading text and returns its lines along with the
page numbers that contain it, so the agent can continue with get_doc.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from docshelf.errors import DocShelfError, ErrorCode
from docshelf.models.tools import GetDocSectionInput

if TYPE_CHECKING:
    from docshelf.state import AppState


async def handle(
    document_id: int,
    heading: str,
    depth: int | None,
    page_size: int | None,
    corpus: str | None,
    state: AppState,
) -> dict:
    """Handle a get_doc_section tool call."""
    log = structlog.get_logger().bind(
        tool="get_doc_section", document_id=document_id, heading=heading[:200], corpus=corpus
    )
    log.info("handler_called", depth=depth, page_size=page_size)

    try:
        validated = GetDocSectionInput(
            document_id=document_id,
            heading=heading,
            depth=depth,
            page_size=page_size,
            corpus=corpus,
        )
    except ValueError as exc:
        raise DocShelfError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion="Provide non-empty heading text and a depth between 1 and 6.",
            recoverable=False,
        ) from exc

    target = state.get_corpus(validated.corpus)
    output = await target.get_section(
        validated.document_id,
        validated.heading,
        validated.depth,
        validated.page_size,
    )
    log.info(
        "section_served",
        from_line=output.from_line,
        to_line=output.to_line,
        page_start=output.page_start,
        page_end=output.page_end,
    )
    return output.model_dump(mode="json")
