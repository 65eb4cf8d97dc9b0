from __future__ import annotations

import logging
import re
from typing import Any

import httpx

from brain_service.extraction.remote.base import RemoteExtractionError, RemoteExtractor
from brain_service.extraction.remote.reader import ReaderClient
from brain_service.extraction.types import ExtractionResult, Platform

logger = logging.getLogger(__name__)

NOEMBED_URL = "https://noembed.com/embed"
OEMBED_URL = "https://www.youtube.com/oembed"

_VIDEO_ID_PATTERNS = (
    re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/embed/)([^&\n?#/]+)"),
    re.compile(r"^([a-zA-Z0-9_-]{11})$"),
)


def extract_video_id(url: str) -> str | None:
    for pattern in _VIDEO_ID_PATTERNS:
        m = pattern.search(url)
        if m:
            return m.group(1)
    return None


class YouTubeExtractor(RemoteExtractor):
    """oEmbed metadata (noembed first, then YouTube's own) plus reader text."""

    def __init__(self, *, http: httpx.AsyncClient, reader: ReaderClient) -> None:
        self._http = http
        self._reader = reader

    def can_handle(self, platform: Platform) -> bool:
        return platform is Platform.YOUTUBE

    async def _metadata(self, endpoint: str, params: dict[str, str]) -> dict[str, Any]:
        try:
            resp = await self._http.get(endpoint, params=params)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("YouTube metadata lookup via %s failed: %s", endpoint, e)
            return {}
        if not isinstance(data, dict) or data.get("error"):
            return {}
        return data

    async def extract(self, url: str, *, cookie: str | None = None) -> ExtractionResult:
        video_id = extract_video_id(url)
        if not video_id:
            raise RemoteExtractionError(f"Cannot parse YouTube URL: {url}")
        watch_url = f"https://www.youtube.com/watch?v={video_id}"

        info = await self._metadata(NOEMBED_URL, {"url": watch_url})
        oembed = await self._metadata(OEMBED_URL, {"url": watch_url, "format": "json"})

        try:
            body = (await self._reader.read_text(watch_url)).strip()
        except RemoteExtractionError as e:
            logger.warning("Reader text for %s failed: %s", watch_url, e)
            body = ""

        if not (info or oembed or body):
            raise RemoteExtractionError(f"No data for YouTube video {video_id}")

        return ExtractionResult(
            url=url,
            title=info.get("title") or oembed.get("title") or "YouTube 视频",
            author=info.get("author_name") or oembed.get("author_name") or "",
            content=body or str(oembed.get("description") or ""),
            platform=Platform.YOUTUBE,
            thumbnail=oembed.get("thumbnail_url") or info.get("thumbnail_url"),
        )
