from __future__ import annotations

import logging
import re
from typing import Any

import httpx

from brain_service.extraction.remote.base import RemoteExtractionError, RemoteExtractor
from brain_service.extraction.remote.reader import ReaderClient
from brain_service.extraction.types import ExtractionResult, Platform

logger = logging.getLogger(__name__)

SITE_URL = "https://www.xiaohongshu.com"
NOTE_API_URL = f"{SITE_URL}/api/web/notebook/detail"
DEFAULT_TITLE = "小红书笔记"

_NOTE_ID_PATTERNS = (
    re.compile(r"xiaohongshu\.com/explore/([a-zA-Z0-9]+)"),
    re.compile(r"xhscdn\.com/group/([a-zA-Z0-9]+)"),
    re.compile(r"note\.app/([a-zA-Z0-9]+)"),
)


def extract_note_id(url: str) -> str | None:
    for pattern in _NOTE_ID_PATTERNS:
        m = pattern.search(url)
        if m:
            return m.group(1)
    return None


def split_reader_text(text: str) -> tuple[str, str]:
    """First heading (or first non-empty line) is the title, the rest is body."""
    title = ""
    body: list[str] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not title:
            if stripped.startswith("# "):
                title = stripped[2:].strip()
            elif stripped.startswith("Title:"):
                title = stripped[len("Title:"):].strip()
            elif stripped:
                title = stripped
            continue
        body.append(line)
    return title, "\n".join(body).strip()


def _note_content(note: dict[str, Any]) -> str:
    parts: list[str] = []
    if note.get("desc"):
        parts.append(f"标题: {note['desc']}")
    if note.get("note_comments"):
        parts.append(f"正文:\n{note['note_comments']}")
    images = note.get("image_list")
    if isinstance(images, list) and images:
        parts.append(f"图片数量: {len(images)}张")
    return "\n\n".join(parts)


class XiaohongshuExtractor(RemoteExtractor):
    """Logged-in web API first (needs the user's cookie), reader text second."""

    def __init__(self, *, http: httpx.AsyncClient, reader: ReaderClient) -> None:
        self._http = http
        self._reader = reader

    def can_handle(self, platform: Platform) -> bool:
        return platform is Platform.XIAOHONGSHU

    async def extract(self, url: str, *, cookie: str | None = None) -> ExtractionResult:
        note_id = extract_note_id(url)
        if not note_id:
            raise RemoteExtractionError(f"Cannot parse Xiaohongshu URL: {url}")

        note = await self._fetch_note(note_id, cookie)
        if note is None:
            return await self._via_reader(url)

        user = note.get("user") if isinstance(note.get("user"), dict) else {}
        return ExtractionResult(
            url=url,
            title=note.get("title") or note.get("desc") or DEFAULT_TITLE,
            author=str(user.get("nickname") or ""),
            content=_note_content(note),
            platform=Platform.XIAOHONGSHU,
        )

    async def _fetch_note(self, note_id: str, cookie: str | None) -> dict[str, Any] | None:
        headers = {
            "Accept": "application/json, text/plain, */*",
            "Accept-Language": "zh-CN,zh;q=0.9",
            "Referer": SITE_URL,
        }
        if cookie:
            headers["Cookie"] = cookie
        try:
            resp = await self._http.get(NOTE_API_URL, params={"note_id": note_id}, headers=headers)
        except httpx.HTTPError as e:
            logger.warning("Xiaohongshu API request failed for %s: %s", note_id, e)
            return None
        if resp.status_code >= 400:
            logger.info("Xiaohongshu API returned %d for %s", resp.status_code, note_id)
            return None
        try:
            data = resp.json()
        except ValueError:
            return None
        if isinstance(data, dict) and data.get("success") and isinstance(data.get("data"), dict):
            return data["data"]
        return None

    async def _via_reader(self, url: str) -> ExtractionResult:
        text = await self._reader.read_text(url)
        title, body = split_reader_text(text)
        return ExtractionResult(
            url=url,
            title=title or DEFAULT_TITLE,
            author="",
            content=body,
            platform=Platform.XIAOHONGSHU,
        )
