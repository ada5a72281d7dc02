"""Integration test fixtures.

Provides a fully wired AppState around the in-memory corpus from
tests/conftest.py (populated_corpus), plus the environment for
subprocess-based MCP wire tests.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import httpx
import pytest

from docshelf.config import CorpusSettings, Settings, StaticPage
from docshelf.corpus import DocumentCorpus
from docshelf.fetcher import Fetcher
from docshelf.models.documents import static_content
from docshelf.state import AppState

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture()
def subprocess_env(tmp_path: "Path") -> dict[str, str]:
    """Baseline env dict for subprocess-based MCP integration tests.

    Forces stdio transport and points the only corpus at an unreachable
    sitemap with a single fetch attempt, so the server starts with an empty
    corpus and never touches the network.
    """
    env = os.environ.copy()
    env["DOCSHELF__SERVER__TRANSPORT"] = "stdio"
    env["DOCSHELF__FETCHER__MAX_ATTEMPTS"] = "1"
    env["DOCSHELF__FETCHER__RETRY_DELAY_SECONDS"] = "0"
    env["DOCSHELF__CORPORA"] = (
        '[{"name": "bun", "sitemap_url": "http://127.0.0.1:1/sitemap.xml"}]'
    )
    # Keep a user-level docshelf.yaml from leaking in
    env["HOME"] = str(tmp_path)
    env["XDG_CONFIG_HOME"] = str(tmp_path / "config")
    return env


@pytest.fixture()
async def app_state(populated_corpus: DocumentCorpus) -> AppState:
    """AppState with two corpora: ``test`` (populated) and ``guides`` (one page)."""
    guides = DocumentCorpus("guides")
    guides.store.register(
        title="Getting started",
        preview="Start here.",
        content=static_content("# Getting started\n\nStart here."),
    )

    settings = Settings(
        corpora=[
            CorpusSettings(name="test"),
            CorpusSettings(name="guides", pages=[StaticPage(url="https://example.com/a.md")]),
        ]
    )
    async with httpx.AsyncClient() as client:
        state = AppState(
            settings=settings,
            corpora={"test": populated_corpus, "guides": guides},
            http_client=client,
            fetcher=Fetcher(client, retry_delay_seconds=0),
        )
        yield state
