"""MCP resources for curated documentation pages.

Each configured ``ResourcePage`` is readable at ``docshelf://<corpus>/<slug>``.
Reads go straight through the shared Fetcher (with its retry policy); they
do not touch the corpus or its content cache.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from docshelf.errors import DocShelfError, ErrorCode

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from mcp.server.fastmcp import FastMCP

    from docshelf.config import ResourcePage, Settings
    from docshelf.state import AppState

log = structlog.get_logger()


def resource_uri(corpus: str, slug: str) -> str:
    return f"docshelf://{corpus}/{slug}"


def find_resource(settings: Settings, corpus: str, slug: str) -> ResourcePage:
    for corpus_settings in settings.corpora:
        if corpus_settings.name != corpus:
            continue
        for page in corpus_settings.resources:
            if page.slug == slug:
                return page
    raise DocShelfError(
        code=ErrorCode.DOCUMENT_NOT_FOUND,
        message=f"Resource {resource_uri(corpus, slug)} is not configured.",
        suggestion="List resources to see the configured pages.",
        recoverable=False,
    )


async def read_resource(state: AppState, corpus: str, slug: str) -> str:
    """Fetch the current text of a configured resource page."""
    page = find_resource(state.settings, corpus, slug)
    if state.fetcher is None:
        raise RuntimeError("Fetcher not initialized")
    text = await state.fetcher.fetch(page.url)
    log.info("resource_served", uri=resource_uri(corpus, slug), content_length=len(text))
    return text


def _reader(
    corpus: str, slug: str, current_state: Callable[[], AppState]
) -> Callable[[], Awaitable[str]]:
    async def read() -> str:
        return await read_resource(current_state(), corpus, slug)

    return read


def register_resources(
    server: FastMCP, settings: Settings, current_state: Callable[[], AppState]
) -> int:
    """Register every configured resource page on ``server``. Returns the count.

    Readers resolve the page and the fetcher through ``current_state`` at read
    time, so registering the same URI again is harmless.
    """
    count = 0
    for corpus_settings in settings.corpora:
        for page in corpus_settings.resources:
            server.resource(
                resource_uri(corpus_settings.name, page.slug),
                name=page.name,
                description=page.description,
                mime_type="text/markdown",
            )(_reader(corpus_settings.name, page.slug, current_state))
            count += 1
    return count
