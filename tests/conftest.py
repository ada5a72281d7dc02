"""Shared test fixtures for the docshelf test suite."""

from __future__ import annotations

import asyncio

import pytest

from docshelf.corpus import DocumentCorpus
from docshelf.models.documents import Heading, static_content

BUN_BUILD_PAGE = """# Bun.build

Bun's fast native bundler.

## Basic example

```ts
# not a heading
await Bun.build({ entrypoints: ["./index.tsx"] })
```

## Plugins

Plugins intercept imports.

### Loader plugins

Custom loaders.

## Reference

Full API reference."""


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubFetcher:
    """In-memory FetcherProtocol implementation.

    ``responses`` maps URL → text or exception. ``delay`` suspends each fetch
    so tests can observe concurrency.
    """

    def __init__(self, responses: dict[str, str | Exception], delay: float = 0.0) -> None:
        self.responses = responses
        self.delay = delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def fetch(self, url: str) -> str:
        self.calls.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            result = self.responses.get(url)
            if result is None:
                raise RuntimeError(f"no stub for {url}")
            if isinstance(result, Exception):
                raise result
            return result
        finally:
            self.in_flight -= 1


@pytest.fixture()
def bun_build_page() -> str:
    return BUN_BUILD_PAGE


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def corpus(clock: FakeClock) -> DocumentCorpus:
    """Empty corpus with a controllable cache clock."""
    return DocumentCorpus("test", clock=clock)


@pytest.fixture()
def populated_corpus(corpus: DocumentCorpus) -> DocumentCorpus:
    """Corpus with three documents registered in a known order."""
    corpus.store.register(
        title="Bun.build",
        description="Bun's native bundler",
        preview="Bundle code for the browser.",
        headings=(
            Heading(depth=1, text="Bun.build", line=1),
            Heading(depth=2, text="Basic example", line=5),
            Heading(depth=2, text="Plugins", line=12),
            Heading(depth=3, text="Loader plugins", line=16),
            Heading(depth=2, text="Reference", line=20),
        ),
        content=static_content(BUN_BUILD_PAGE),
    )
    corpus.store.register(
        title="Installation",
        description="How to install on macOS, Linux and Windows.",
        preview="Install with curl.",
        content=static_content("# Installation\n\ncurl -fsSL https://bun.sh/install | bash"),
    )
    corpus.store.register(
        title="Large file",
        preview="line 1",
        content=static_content("\n".join(f"line {i}" for i in range(1, 501))),
    )
    return corpus


@pytest.fixture()
def stub_fetcher_factory():
    return StubFetcher
