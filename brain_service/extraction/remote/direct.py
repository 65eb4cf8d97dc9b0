from __future__ import annotations

import asyncio

import httpx

from brain_service.extraction.document import PageDocument
from brain_service.extraction.heuristics import DomHeuristicExtractor
from brain_service.extraction.platform import classify
from brain_service.extraction.remote.base import RemoteExtractionError, RemoteExtractor, title_from_url
from brain_service.extraction.remote.guard import PublicAddressGuard
from brain_service.extraction.types import ExtractionResult, Platform


class DirectFetchExtractor(RemoteExtractor):
    """Fetch the page ourselves and run the DOM heuristics on it."""

    def __init__(
        self,
        *,
        http: httpx.AsyncClient,
        heuristics: DomHeuristicExtractor,
        guard: PublicAddressGuard | None = None,
    ) -> None:
        self._http = http
        self._heuristics = heuristics
        self._guard = guard or PublicAddressGuard()

    def can_handle(self, platform: Platform) -> bool:
        return True

    async def extract(self, url: str, *, cookie: str | None = None) -> ExtractionResult:
        headers = {"Accept": "text/html,application/xhtml+xml"}
        if cookie:
            headers["Cookie"] = cookie
        resp = await self._guard.fetch(self._http, url, headers=headers)
        if resp.status_code >= 400:
            raise RemoteExtractionError(f"Fetch returned {resp.status_code}")

        document = PageDocument(url=url, html=resp.text, headers=dict(resp.headers))
        platform = classify(url)
        fields = await asyncio.to_thread(self._heuristics.extract, document, platform)
        return ExtractionResult(
            url=url,
            title=fields.title or title_from_url(url),
            author=fields.author,
            content=fields.content,
            platform=platform,
        )
