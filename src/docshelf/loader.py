"""Corpus loading: discovery and bounded-concurrency ingestion.

A loader discovers document locations (sitemap, a JSON content index and/or
a fixed page list), fetches each one through the shared Fetcher, structures
it with the markdown processor, and registers it in the corpus. Structured
API reference dumps are rendered to markdown and registered without further
fetching. A single document's failure is logged and replaced with a
placeholder body; it never aborts the load.

Loading runs as a background task. Queries issued before it finishes see a
partially populated corpus, and ids follow completion order, not discovery
order.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from posixpath import basename, dirname
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

import structlog
from bs4 import BeautifulSoup
from pydantic import TypeAdapter, ValidationError

from docshelf.markdown import process_markdown
from docshelf.models.documents import static_content
from docshelf.models.reference import ReferenceEntry

if TYPE_CHECKING:
    from docshelf.config import CorpusSettings
    from docshelf.corpus import DocumentCorpus
    from docshelf.models.documents import ContentProducer
    from docshelf.protocols import FetcherProtocol

log = structlog.get_logger()

PREVIEW_MAX_LENGTH = 400
DEFAULT_CONCURRENCY = 10

_PATH_LIST = TypeAdapter(list[str])
_RAW_ENTRIES = TypeAdapter(list[dict[str, Any]])


@dataclass(frozen=True)
class DocumentSource:
    """A candidate document location plus any curated metadata."""

    url: str
    name: str
    title: str | None = None
    description: str | None = None
    kind: str = "page"
    # Prepended to the resolved title as "<prefix> - <title>"
    title_prefix: str | None = None


def parse_sitemap(xml: str, url_prefix: str = "") -> list[str]:
    """Extract ``<loc>`` URLs starting with ``url_prefix``, deduplicated, in order."""
    if not xml.strip():
        return []
    soup = BeautifulSoup(xml, "xml")
    urls = (loc.get_text(strip=True) for loc in soup.find_all("loc"))
    return list(dict.fromkeys(url for url in urls if url and url.startswith(url_prefix)))


def parse_content_index(raw: str) -> list[str]:
    """Decode a JSON array of document paths."""
    return _PATH_LIST.validate_json(raw)


def section_prefix(path: str) -> str | None:
    """Title prefix taken from the parent directory name.

    ``"content/docs/error-management/retrying.mdx"`` gives ``"error management"``;
    pages directly under ``docs`` get none.
    """
    parent = basename(dirname(path))
    if not parent or parent == "docs":
        return None
    return parent.replace("-", " ", 1)


def name_from_url(url: str, suffix: str = "") -> str:
    """Derive a document name from the last path segment."""
    path = urlparse(url).path.rstrip("/")
    name = basename(path)
    if suffix and name.endswith(suffix):
        name = name[: -len(suffix)]
    return name or urlparse(url).netloc or url


def make_preview(text: str) -> str:
    """Join the first non-blank lines with single spaces, cut at 400 characters."""
    preview = ""
    for line in text.split("\n"):
        if len(preview) >= PREVIEW_MAX_LENGTH:
            break
        trimmed = line.strip()
        if not trimmed:
            continue
        preview = trimmed if not preview else f"{preview} {trimmed}"
        preview = preview[:PREVIEW_MAX_LENGTH]
    return preview


def fallback_body(kind: str, name: str) -> str:
    return f"# {name}\n\nThis {kind} could not be loaded right now. Please try again later."


class CorpusLoader:
    """Populates one DocumentCorpus from its configured sources."""

    def __init__(
        self,
        corpus: DocumentCorpus,
        settings: CorpusSettings,
        fetcher: FetcherProtocol,
        *,
        concurrency: int = DEFAULT_CONCURRENCY,
    ) -> None:
        self._corpus = corpus
        self._settings = settings
        self._fetcher = fetcher
        self._concurrency = max(1, concurrency)
        self._log = log.bind(corpus=corpus.name)

    async def discover(self) -> list[DocumentSource]:
        """Static pages, then sitemap locations, then content index paths.

        A sitemap or index that cannot be fetched or decoded contributes nothing.
        """
        sources = [
            DocumentSource(
                url=page.url,
                name=page.title or name_from_url(page.url, self._settings.url_suffix),
                title=page.title,
                description=page.description,
                kind="doc",
            )
            for page in self._settings.pages
        ]
        sources.extend(await self._sitemap_sources())
        sources.extend(await self._content_index_sources())

        self._log.info("corpus_discovered", source_count=len(sources))
        return sources

    async def _sitemap_sources(self) -> list[DocumentSource]:
        sitemap_url = self._settings.sitemap_url
        if not sitemap_url:
            return []
        try:
            xml = await self._fetcher.fetch(sitemap_url)
        except Exception:
            self._log.error("sitemap_fetch_failed", url=sitemap_url, exc_info=True)
            return []
        return [
            DocumentSource(url=f"{loc}{self._settings.url_suffix}", name=name_from_url(loc))
            for loc in parse_sitemap(xml, self._settings.url_prefix)
        ]

    async def _content_index_sources(self) -> list[DocumentSource]:
        index_url = self._settings.content_index_url
        if not index_url:
            return []
        try:
            paths = parse_content_index(await self._fetcher.fetch(index_url))
        except Exception:
            self._log.error("content_index_fetch_failed", url=index_url, exc_info=True)
            return []
        return [
            DocumentSource(
                url=f"{self._settings.content_base_url}{path}",
                name=name_from_url(path, self._settings.url_suffix),
                title_prefix=section_prefix(path),
            )
            for path in paths
        ]

    async def load(self) -> int:
        """Discover and ingest everything. Returns the number of documents registered."""
        started = time.monotonic()
        self._log.info("corpus_load_started")
        registered_before = len(self._corpus)

        sources = await self.discover()
        for url in self._settings.reference_urls:
            await self.load_references(url)

        queue: asyncio.Queue[DocumentSource] = asyncio.Queue()
        for source in sources:
            queue.put_nowait(source)

        workers = [
            asyncio.create_task(self._worker(queue))
            for _ in range(min(self._concurrency, len(sources)))
        ]
        try:
            await asyncio.gather(*workers)
        except BaseException:
            for worker in workers:
                worker.cancel()
            raise

        registered = len(self._corpus) - registered_before
        self._log.info(
            "corpus_load_complete",
            documents=registered,
            duration_ms=round((time.monotonic() - started) * 1000),
        )
        return registered

    async def _worker(self, queue: asyncio.Queue[DocumentSource]) -> None:
        while True:
            try:
                source = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            await self.ingest(source)

    async def ingest(self, source: DocumentSource) -> int:
        """Fetch, structure and register a single document. Never raises on fetch failure."""
        try:
            raw = await self._fetcher.fetch(source.url)
            file = process_markdown(raw)
        except Exception:
            self._log.warning(
                "document_load_failed",
                url=source.url,
                name=source.name,
                kind=source.kind,
                exc_info=True,
            )
            body = fallback_body(source.kind, source.name)
            return self._corpus.store.register(
                title=self._prefixed(source, source.title or source.name),
                description=source.description,
                preview=make_preview(body) or source.description or source.name,
                content=static_content(body),
            )

        title = self._prefixed(source, source.title or file.title or source.name)
        description = source.description or file.description
        if self._settings.lazy_content:
            content = self._lazy_content(source.url)
        else:
            content = static_content(file.content)
        return self._corpus.store.register(
            title=title,
            description=description,
            preview=make_preview(file.content) or description or title,
            headings=file.headings,
            content=content,
        )

    @staticmethod
    def _prefixed(source: DocumentSource, title: str) -> str:
        return f"{source.title_prefix} - {title}" if source.title_prefix else title

    async def load_references(self, url: str) -> int:
        """Register every entry of a JSON reference dump. Returns the number registered.

        A dump that cannot be fetched or decoded registers nothing; an
        individual malformed entry is skipped.
        """
        try:
            raw_entries = _RAW_ENTRIES.validate_json(await self._fetcher.fetch(url))
        except Exception:
            self._log.error("reference_fetch_failed", url=url, exc_info=True)
            return 0

        registered = 0
        for raw_entry in raw_entries:
            try:
                entry = ReferenceEntry.model_validate(raw_entry)
            except ValidationError as exc:
                self._log.warning(
                    "reference_entry_invalid", url=url, name=raw_entry.get("name"), error=str(exc)
                )
                continue
            self.register_reference(entry)
            registered += 1

        self._log.info("references_loaded", url=url, documents=registered)
        return registered

    def register_reference(self, entry: ReferenceEntry) -> int:
        """Render a reference entry to markdown and register it.

        An entry that fails to render is registered with the fallback body.
        """
        title = entry.name_with_module
        preview = entry.description or f"{entry.project} {entry.module_title} {entry.name}"
        try:
            file = process_markdown(entry.as_markdown())
        except Exception:
            self._log.warning("reference_render_failed", name=title, exc_info=True)
            return self._corpus.store.register(
                title=title,
                description=entry.description,
                preview=preview,
                content=static_content(fallback_body("reference", title)),
            )
        return self._corpus.store.register(
            title=title,
            description=entry.description,
            preview=preview,
            headings=file.headings,
            content=static_content(file.content),
        )

    def start(self) -> asyncio.Task[int]:
        """Run ``load()`` in the background; failures are logged, not raised."""
        return asyncio.create_task(self._run(), name=f"load:{self._corpus.name}")

    async def _run(self) -> int:
        try:
            return await self.load()
        except asyncio.CancelledError:
            self._log.info("corpus_load_cancelled", documents=len(self._corpus))
            raise
        except Exception:
            self._log.error("corpus_load_error", exc_info=True)
            return 0

    def _lazy_content(self, url: str) -> ContentProducer:
        async def produce() -> str:
            raw = await self._fetcher.fetch(url)
            return process_markdown(raw).content

        return produce
