"""URL-driven extraction for callers without a live page.

Dedicated platform extractors first, then the generic path (reader service,
or a direct fetch through the DOM heuristics), then a stub built from the
URL alone. ``extract`` always returns a result.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import httpx

from brain_service.extraction.heuristics import DomHeuristicExtractor
from brain_service.extraction.platform import classify
from brain_service.extraction.remote.base import RemoteExtractor, title_from_url
from brain_service.extraction.remote.direct import DirectFetchExtractor
from brain_service.extraction.remote.guard import PublicAddressGuard
from brain_service.extraction.remote.reader import ReadabilityExtractor, ReaderClient
from brain_service.extraction.remote.xiaohongshu import XiaohongshuExtractor
from brain_service.extraction.remote.youtube import YouTubeExtractor
from brain_service.extraction.settings import ExtractionSettings
from brain_service.extraction.text import truncate_text
from brain_service.extraction.types import ExtractionResult, Platform

logger = logging.getLogger(__name__)


class UrlExtractionService:
    def __init__(
        self,
        *,
        http: httpx.AsyncClient,
        settings: ExtractionSettings | None = None,
        reader: ReaderClient | None = None,
        extractors: Sequence[RemoteExtractor] | None = None,
        guard: PublicAddressGuard | None = None,
    ) -> None:
        self._settings = settings or ExtractionSettings()
        self._reader = reader or ReaderClient(http=http)
        if extractors is None:
            extractors = (
                YouTubeExtractor(http=http, reader=self._reader),
                XiaohongshuExtractor(http=http, reader=self._reader),
            )
        self._extractors = tuple(extractors)
        self._readability = ReadabilityExtractor(reader=self._reader)
        self._direct = DirectFetchExtractor(
            http=http,
            heuristics=DomHeuristicExtractor(self._settings),
            guard=guard,
        )

    async def extract(
        self,
        url: str,
        *,
        platform_cookie: str | None = None,
        use_external_readability: bool = True,
    ) -> ExtractionResult:
        platform = classify(url)

        dedicated = next((e for e in self._extractors if e.can_handle(platform)), None)
        if dedicated is not None:
            try:
                return self._finalize(await dedicated.extract(url, cookie=platform_cookie), platform)
            except Exception as e:
                logger.warning("%s failed for %s, using generic path: %s", type(dedicated).__name__, url, e)

        generic = self._readability if use_external_readability else self._direct
        try:
            return self._finalize(await generic.extract(url, cookie=platform_cookie), platform)
        except Exception as e:
            logger.warning("%s failed for %s, returning stub: %s", type(generic).__name__, url, e)

        return ExtractionResult(
            url=url,
            title=title_from_url(url),
            author="",
            content="",
            platform=platform,
        )

    def _finalize(self, result: ExtractionResult, platform: Platform) -> ExtractionResult:
        s = self._settings
        author = (result.author or "").strip()
        if len(author) >= s.author_max_chars:
            author = ""
        return ExtractionResult(
            url=result.url,
            title=(result.title or "").strip(),
            author=author,
            content=truncate_text((result.content or "").strip(), s.max_content_chars, s.truncation_marker),
            platform=platform,
            publish_date=result.publish_date,
            thumbnail=result.thumbnail,
        )
