"""Client for the external readability ("reader") service.

The service takes ``{base}/url/{quoted page url}`` and answers either JSON
(``title``, ``content``/``markdown``, ``author``, ``published_at``; possibly
wrapped in ``data``) or plain text, depending on the Accept header.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from brain_service.config import BRAIN_READER_BASE_URL, JINA_API_KEY
from brain_service.extraction.platform import classify
from brain_service.extraction.remote.base import RemoteExtractionError, RemoteExtractor, title_from_url
from brain_service.extraction.types import ExtractionResult, Platform

logger = logging.getLogger(__name__)


class ReaderClient:
    def __init__(
        self,
        *,
        http: httpx.AsyncClient,
        base_url: str = BRAIN_READER_BASE_URL,
        api_key: str | None = JINA_API_KEY,
    ) -> None:
        self._http = http
        self._base = base_url.rstrip("/")
        self._api_key = api_key

    def endpoint(self, url: str) -> str:
        return f"{self._base}/url/{quote(url, safe='')}"

    async def _get(self, url: str, accept: str) -> httpx.Response:
        headers = {"Accept": accept}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        try:
            resp = await self._http.get(self.endpoint(url), headers=headers)
        except httpx.HTTPError as e:
            raise RemoteExtractionError(f"Reader request failed: {e}") from e
        if resp.status_code >= 400:
            raise RemoteExtractionError(f"Reader error: {resp.status_code}")
        return resp

    async def read(self, url: str) -> dict[str, Any]:
        resp = await self._get(url, "application/json")
        try:
            data = resp.json()
        except ValueError as e:
            raise RemoteExtractionError("Reader returned invalid JSON") from e
        if not isinstance(data, dict):
            raise RemoteExtractionError("Reader returned an unexpected payload")
        inner = data.get("data")
        return inner if isinstance(inner, dict) else data

    async def read_text(self, url: str) -> str:
        resp = await self._get(url, "text/plain")
        return resp.text


class ReadabilityExtractor(RemoteExtractor):
    """Generic path for any platform without a dedicated extractor."""

    def __init__(self, *, reader: ReaderClient) -> None:
        self._reader = reader

    def can_handle(self, platform: Platform) -> bool:
        return True

    async def extract(self, url: str, *, cookie: str | None = None) -> ExtractionResult:
        payload = await self._reader.read(url)
        logger.debug("Reader returned %d fields for %s", len(payload), url)
        return ExtractionResult(
            url=url,
            title=str(payload.get("title") or "").strip() or title_from_url(url),
            author=str(payload.get("author") or "").strip(),
            content=str(payload.get("content") or payload.get("markdown") or ""),
            platform=classify(url),
            publish_date=payload.get("published_at") or payload.get("publishedTime"),
        )
