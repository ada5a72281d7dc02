"""Unit tests for docshelf.search."""

from __future__ import annotations

import pytest

from docshelf.search import SearchIndex, tokenize


def _index(*docs: dict[str, str | None], **options) -> SearchIndex:
    index = SearchIndex(**options)
    for document_id, fields in enumerate(docs):
        index.add(document_id, fields)
    return index


def _ids(index: SearchIndex, query: str) -> list[int]:
    return [hit.document_id for hit in index.search(query)]


class TestTokenize:
    def test_splits_on_punctuation(self) -> None:
        assert tokenize("Bun.build") == ["bun", "build"]

    def test_lowercases(self) -> None:
        assert tokenize("HTTP Server") == ["http", "server"]

    def test_underscores_split(self) -> None:
        assert tokenize("read_file") == ["read", "file"]

    def test_none_and_empty(self) -> None:
        assert tokenize(None) == []
        assert tokenize("") == []


class TestSearchIndex:
    def test_title_match_outranks_description_match(self) -> None:
        index = _index(
            {"title": "Getting started", "description": "How to build and run your first app"},
            {"title": "Bun.build", "description": None, "preview": "Bundle code."},
        )
        assert _ids(index, "build") == [1, 0]

    def test_prefix_match(self) -> None:
        index = _index(
            {"title": "bun install"},
            {"title": "Bun.build"},
            {"title": "Node compatibility"},
        )
        assert sorted(_ids(index, "bun")) == [0, 1]
        assert _ids(index, "inst") == [0]

    def test_case_insensitive(self) -> None:
        index = _index({"title": "WebSockets"})
        assert _ids(index, "websockets") == [0]
        assert _ids(index, "WEBSOCKETS") == [0]

    def test_multiple_fields_searched(self) -> None:
        index = _index(
            {"title": "Alpha", "description": "Something about sqlite"},
            {"title": "Beta", "preview": "Uses sqlite under the hood"},
        )
        assert sorted(_ids(index, "sqlite")) == [0, 1]

    def test_multiple_terms_or_combined(self) -> None:
        index = _index(
            {"title": "HTTP server"},
            {"title": "File system"},
            {"title": "HTTP client"},
        )
        results = _ids(index, "http server")
        assert results[0] == 0
        assert set(results) == {0, 2}

    def test_no_match_returns_empty(self) -> None:
        index = _index({"title": "Bun.build"})
        assert index.search("qwertyuiop") == []

    def test_empty_query_returns_empty(self) -> None:
        index = _index({"title": "Bun.build"})
        assert index.search("") == []
        assert index.search("   ...  ") == []

    def test_empty_index_returns_empty(self) -> None:
        assert SearchIndex().search("build") == []

    def test_ties_broken_by_lower_id(self) -> None:
        index = _index({"title": "Plugins"}, {"title": "Plugins"}, {"title": "Plugins"})
        assert _ids(index, "plugins") == [0, 1, 2]

    def test_results_truncated(self) -> None:
        index = _index(*({"title": f"Page {i} bundler"} for i in range(80)))
        hits = index.search("bundler")
        assert len(hits) == 50
        assert [hit.document_id for hit in hits] == list(range(50))

    def test_max_results_configurable(self) -> None:
        index = _index(*({"title": "bundler"} for _ in range(10)), max_results=3)
        assert len(index.search("bundler")) == 3

    def test_fuzzy_match_single_typo(self) -> None:
        index = _index({"title": "Bundler"}, {"title": "Install"})
        assert _ids(index, "bundlr") == [0]

    def test_fuzzy_disabled(self) -> None:
        index = _index({"title": "Bundler"}, fuzzy=False)
        assert index.search("bundlr") == []

    def test_exact_match_outranks_prefix_match(self) -> None:
        index = _index({"title": "testing utilities"}, {"title": "test runner"})
        assert _ids(index, "test") == [1, 0]

    def test_duplicate_id_rejected(self) -> None:
        index = _index({"title": "One"})
        with pytest.raises(ValueError):
            index.add(0, {"title": "Again"})
        assert len(index) == 1
