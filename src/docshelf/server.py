"""MCP server entrypoint.

Responsibilities (and nothing more):
- Configure structlog
- Own the process-wide AppState and share it across MCP sessions
- Start background corpus loading, cancel it on shutdown
- Register tools and resources
- Start the correct transport (stdio or HTTP)
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from contextlib import asynccontextmanager, suppress
from typing import TYPE_CHECKING

import structlog
import uvicorn
from mcp.server.fastmcp import Context, FastMCP
from mcp.types import CallToolResult, TextContent

import docshelf.tools.get_doc as t_get_doc
import docshelf.tools.get_doc_pages as t_get_doc_pages
import docshelf.tools.get_doc_section as t_get_doc_section
import docshelf.tools.search_docs as t_search
from docshelf import __version__
from docshelf.config import Settings
from docshelf.corpus import DocumentCorpus
from docshelf.errors import DocShelfError
from docshelf.fetcher import Fetcher, build_http_client
from docshelf.loader import CorpusLoader
from docshelf.resources import register_resources
from docshelf.state import AppState

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from starlette.applications import Starlette

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(settings: Settings) -> None:
    """Configure structlog. Called once at startup before any log statements."""
    log_level = logging.getLevelNamesMapping()[settings.logging.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        # stdout is reserved for the MCP JSON-RPC stream
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Application state
# ---------------------------------------------------------------------------


def build_state(settings: Settings) -> AppState:
    """Wire the HTTP client, fetcher and (empty) corpora. Loading is not started."""
    http_client = build_http_client(settings.fetcher)
    fetcher = Fetcher.from_settings(http_client, settings.fetcher)
    corpora = {
        corpus.name: DocumentCorpus.from_settings(
            corpus.name, cache=settings.cache, search=settings.search
        )
        for corpus in settings.corpora
    }
    return AppState(
        settings=settings,
        corpora=corpora,
        http_client=http_client,
        fetcher=fetcher,
    )


def start_loaders(state: AppState) -> None:
    """Kick off one background load per configured corpus."""
    if state.fetcher is None:
        raise RuntimeError("Fetcher not initialized")
    for corpus_settings in state.settings.corpora:
        loader = CorpusLoader(
            state.corpora[corpus_settings.name],
            corpus_settings,
            state.fetcher,
            concurrency=state.settings.loader.concurrency,
        )
        state.load_tasks.append(loader.start())


async def shutdown(state: AppState) -> None:
    """Cancel in-flight loading and release the HTTP client."""
    for task in state.load_tasks:
        task.cancel()
    for task in state.load_tasks:
        with suppress(asyncio.CancelledError):
            await task
    state.load_tasks.clear()
    if state.http_client is not None:
        await state.http_client.aclose()


class SharedState:
    """The one AppState of this process, shared by every MCP session.

    FastMCP enters its lifespan once per session (and the streamable HTTP
    transport opens one session per client), so corpora are not built there.
    The first user builds the state and starts loading; later users borrow
    it; the last one to leave shuts it down. Document ids stay stable
    across sessions and each corpus is crawled once.
    """

    def __init__(self) -> None:
        self.state: AppState | None = None
        self._users = 0

    def current(self) -> AppState:
        if self.state is None:
            raise RuntimeError("Application state is not initialized")
        return self.state

    @asynccontextmanager
    async def use(self, settings: Settings | None = None) -> AsyncGenerator[AppState, None]:
        if self.state is None:
            self.state = self._open(settings if settings is not None else Settings())
        state = self.state
        self._users += 1
        try:
            yield state
        finally:
            self._users -= 1
            if self._users == 0:
                self.state = None
                log.info("server_stopping")
                await shutdown(state)

    def _open(self, settings: Settings) -> AppState:
        log.info(
            "server_starting",
            version=__version__,
            transport=settings.server.transport,
            corpora=[corpus.name for corpus in settings.corpora],
        )
        state = build_state(settings)
        register_resources(mcp, settings, self.current)
        # Loading proceeds in the background; tools serve a partial corpus until it completes.
        start_loaders(state)
        log.info("server_started", version=__version__, transport=settings.server.transport)
        return state


shared_state = SharedState()


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncGenerator[AppState, None]:
    """Per-session lifespan: borrow the process-wide state."""
    async with shared_state.use() as state:
        yield state


# ---------------------------------------------------------------------------
# FastMCP instance and tool registration
# ---------------------------------------------------------------------------

mcp = FastMCP("docshelf", lifespan=lifespan)
# FastMCP has no version kwarg; set it on the underlying Server
# so the MCP initialize handshake reports our version, not the SDK's.
mcp._mcp_server.version = __version__  # pyright: ignore[reportPrivateUsage]


def _serialise_tool_error(error: DocShelfError) -> CallToolResult:
    """Convert a DocShelfError to the MCP tool error result envelope."""
    return CallToolResult(
        content=[TextContent(type="text", text=json.dumps(error.to_dict()))],
        isError=True,
    )


def _log_tool_error(tool: str, exc: DocShelfError) -> None:
    log.warning(
        "tool_error",
        tool=tool,
        code=exc.code,
        message=exc.message,
        recoverable=exc.recoverable,
    )


@mcp.tool()
async def search_docs(query: str, ctx: Context, corpus: str | None = None) -> object:
    """Search the documentation corpus.

    Returns up to 50 results (document_id, title, description), best match
    first. Read a result with get_doc, get_doc_pages or get_doc_section.
    Results may be incomplete for a short while after startup.
    """
    state: AppState = ctx.request_context.lifespan_context
    try:
        return await t_search.handle(query, corpus, state)
    except DocShelfError as exc:
        _log_tool_error("search_docs", exc)
        return _serialise_tool_error(exc)
    except Exception:
        log.error("tool_unexpected_error", tool="search_docs", exc_info=True)
        raise


@mcp.tool()
async def get_doc(
    document_id: int,
    ctx: Context,
    page: int = 1,
    page_size: int | None = None,
    corpus: str | None = None,
) -> object:
    """Get one page of a document by document_id.

    Content is paginated by lines. page_size defaults to 200 and is capped at 500.
    """
    state: AppState = ctx.request_context.lifespan_context
    try:
        return await t_get_doc.handle(document_id, page, page_size, corpus, state)
    except DocShelfError as exc:
        _log_tool_error("get_doc", exc)
        return _serialise_tool_error(exc)
    except Exception:
        log.error("tool_unexpected_error", tool="get_doc", exc_info=True)
        raise


@mcp.tool()
async def get_doc_pages(
    document_id: int,
    start_page: int,
    ctx: Context,
    end_page: int | None = None,
    page_size: int | None = None,
    corpus: str | None = None,
) -> object:
    """Get several consecutive pages of a document in one call (inclusive range).

    end_page defaults to start_page.
    """
    state: AppState = ctx.request_context.lifespan_context
    try:
        return await t_get_doc_pages.handle(
            document_id, start_page, end_page, page_size, corpus, state
        )
    except DocShelfError as exc:
        _log_tool_error("get_doc_pages", exc)
        return _serialise_tool_error(exc)
    except Exception:
        log.error("tool_unexpected_error", tool="get_doc_pages", exc_info=True)
        raise


@mcp.tool()
async def get_doc_section(
    document_id: int,
    heading: str,
    ctx: Context,
    depth: int | None = None,
    page_size: int | None = None,
    corpus: str | None = None,
) -> object:
    """Get the section of a document under a heading (case-insensitive substring match).

    Use depth to match only that heading level (e.g. 2 for H2). Returns the
    section content with its line range and the pages it spans.
    """
    state: AppState = ctx.request_context.lifespan_context
    try:
        return await t_get_doc_section.handle(
            document_id, heading, depth, page_size, corpus, state
        )
    except DocShelfError as exc:
        _log_tool_error("get_doc_section", exc)
        return _serialise_tool_error(exc)
    except Exception:
        log.error("tool_unexpected_error", tool="get_doc_section", exc_info=True)
        raise




# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def build_http_app(settings: Settings) -> Starlette:
    """The streamable HTTP app, holding the shared state for its whole lifetime."""
    mcp.settings.host = settings.server.host
    mcp.settings.port = settings.server.port
    http_app = mcp.streamable_http_app()
    session_manager_lifespan = http_app.router.lifespan_context

    @asynccontextmanager
    async def http_lifespan(app: Starlette) -> AsyncGenerator[None, None]:
        async with shared_state.use(settings), session_manager_lifespan(app):
            yield

    http_app.router.lifespan_context = http_lifespan
    return http_app


def run_http_server(settings: Settings) -> None:
    """Start the MCP server with Streamable HTTP transport."""
    log.bind(transport="http").info(
        "http_server_starting", host=settings.server.host, port=settings.server.port
    )
    uvicorn.run(
        build_http_app(settings),
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,  # structlog handles logging
    )


def main() -> None:
    settings = Settings()
    _setup_logging(settings)

    if settings.server.transport == "http":
        run_http_server(settings)
        return

    mcp.run()


if __name__ == "__main__":
    main()
