"""Unit tests for docshelf.store."""

from __future__ import annotations

import asyncio

import pytest

from docshelf.models.documents import Heading, static_content
from docshelf.store import DocumentStore


def _register(store: DocumentStore, title: str, **kwargs) -> int:
    return store.register(
        title=title,
        preview=kwargs.pop("preview", f"{title} preview"),
        content=kwargs.pop("content", static_content(f"# {title}")),
        **kwargs,
    )


class TestRegister:
    def test_ids_are_sequential_from_zero(self) -> None:
        store = DocumentStore()
        assert [_register(store, name) for name in ("a", "b", "c")] == [0, 1, 2]
        assert len(store) == 3

    def test_entry_is_indexed_on_register(self) -> None:
        store = DocumentStore()
        doc_id = _register(store, "Bun.build", description="Bundler")
        assert doc_id in store.index
        assert [entry.id for entry in store.search("bundler")] == [doc_id]

    def test_entry_fields_frozen(self) -> None:
        store = DocumentStore()
        headings = [Heading(depth=1, text="Intro", line=1)]
        doc_id = _register(store, "Intro", description="d", headings=headings)
        entry = store.get(doc_id)
        assert entry is not None
        assert entry.headings == (Heading(depth=1, text="Intro", line=1),)
        with pytest.raises(AttributeError):
            entry.title = "changed"  # type: ignore[misc]

    def test_empty_title_rejected_without_consuming_id(self) -> None:
        store = DocumentStore()
        with pytest.raises(ValueError):
            _register(store, "")
        assert _register(store, "ok") == 0
        assert len(store.index) == 1

    async def test_concurrent_registration_keeps_store_and_index_in_sync(self) -> None:
        store = DocumentStore()

        async def ingest(name: str, delay: float) -> int:
            await asyncio.sleep(delay)
            return _register(store, name)

        ids = await asyncio.gather(
            ingest("slow", 0.03), ingest("fast", 0.0), ingest("medium", 0.01)
        )
        assert sorted(ids) == [0, 1, 2]
        # Ids follow completion order, not issue order.
        assert store.get(0).title == "fast"  # type: ignore[union-attr]
        assert store.get(2).title == "slow"  # type: ignore[union-attr]
        assert len(store.index) == len(store) == 3


class TestGet:
    def test_unknown_id_returns_none(self) -> None:
        store = DocumentStore()
        _register(store, "a")
        assert store.get(1) is None
        assert store.get(999) is None

    def test_negative_id_returns_none(self) -> None:
        store = DocumentStore()
        _register(store, "a")
        assert store.get(-1) is None

    async def test_content_producer_returns_text(self) -> None:
        store = DocumentStore()
        doc_id = _register(store, "a", content=static_content("hello\nworld"))
        entry = store.get(doc_id)
        assert entry is not None
        assert await entry.content() == "hello\nworld"
