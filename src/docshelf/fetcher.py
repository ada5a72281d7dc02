"""HTTP documentation fetcher with bounded fixed-delay retry.

All network I/O for loading documentation goes through a single Fetcher
instance shared by every corpus. The Fetcher receives an httpx.AsyncClient
via constructor injection and the lifespan owns the client lifecycle.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import httpx
import structlog

from docshelf import __version__
from docshelf.errors import DocShelfError, ErrorCode

if TYPE_CHECKING:
    from docshelf.config import FetcherSettings

log = structlog.get_logger()

_RETRYABLE_STATUS = frozenset({408, 429})


def build_http_client(settings: FetcherSettings | None = None) -> httpx.AsyncClient:
    """Create the shared httpx client. Called once at startup."""
    timeout = settings.timeout_seconds if settings is not None else 30.0
    return httpx.AsyncClient(
        follow_redirects=True,
        timeout=httpx.Timeout(timeout),
        headers={"User-Agent": f"docshelf/{__version__}"},
        limits=httpx.Limits(
            max_connections=20,
            max_keepalive_connections=10,
        ),
    )


def _is_retryable(status_code: int) -> bool:
    return status_code >= 500 or status_code in _RETRYABLE_STATUS


class Fetcher:
    """Fetches text documents, retrying transient failures on a fixed delay."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        max_attempts: int = 3,
        retry_delay_seconds: float = 3.0,
    ) -> None:
        self._client = client
        self._max_attempts = max(1, max_attempts)
        self._retry_delay_seconds = retry_delay_seconds

    @classmethod
    def from_settings(cls, client: httpx.AsyncClient, settings: FetcherSettings) -> Fetcher:
        return cls(
            client,
            max_attempts=settings.max_attempts,
            retry_delay_seconds=settings.retry_delay_seconds,
        )

    async def fetch(self, url: str) -> str:
        """Fetch a URL and return its text.

        Network errors, 5xx, 408 and 429 are retried up to ``max_attempts``
        in total. Raises DocShelfError once retries are exhausted or on any
        other non-2xx response.
        """
        last_error = ""

        for attempt in range(1, self._max_attempts + 1):
            try:
                response = await self._client.get(url)
            except httpx.HTTPError as exc:
                last_error = f"Network error fetching {url}: {exc}"
                log.warning("fetch_attempt_failed", url=url, attempt=attempt, error=str(exc))
            else:
                if response.is_success:
                    log.info(
                        "fetch_complete",
                        url=url,
                        status_code=response.status_code,
                        content_length=len(response.text),
                        attempt=attempt,
                    )
                    return response.text

                if not _is_retryable(response.status_code):
                    raise DocShelfError(
                        code=ErrorCode.DOCUMENT_FETCH_FAILED,
                        message=f"HTTP {response.status_code} fetching {url}",
                        suggestion="The documentation page does not exist at this URL.",
                        recoverable=False,
                    )

                last_error = f"HTTP {response.status_code} fetching {url}"
                log.warning(
                    "fetch_attempt_failed",
                    url=url,
                    attempt=attempt,
                    status_code=response.status_code,
                )

            if attempt < self._max_attempts:
                await asyncio.sleep(self._retry_delay_seconds)

        raise DocShelfError(
            code=ErrorCode.DOCUMENT_FETCH_FAILED,
            message=f"{last_error} (after {self._max_attempts} attempts)",
            suggestion="The documentation source may be temporarily unavailable.",
            recoverable=True,
        )
