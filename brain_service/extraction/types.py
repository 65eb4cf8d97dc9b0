from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Platform(str, Enum):
    ZHIHU = "zhihu"
    WECHAT = "wechat"
    XIAOHONGSHU = "xiaohongshu"
    YOUTUBE = "youtube"
    JUEJIN = "juejin"
    DOUBAN = "douban"
    MEDIUM = "medium"
    WEIBO = "weibo"
    TWITTER = "twitter"
    V2EX = "v2ex"
    ARTICLE = "article"  # generic fallback

    @property
    def label(self) -> str:
        return _PLATFORM_LABELS[self]


_PLATFORM_LABELS: dict[Platform, str] = {
    Platform.ZHIHU: "知乎",
    Platform.WECHAT: "微信公众号",
    Platform.XIAOHONGSHU: "小红书",
    Platform.YOUTUBE: "YouTube",
    Platform.JUEJIN: "掘金",
    Platform.DOUBAN: "豆瓣",
    Platform.MEDIUM: "Medium",
    Platform.WEIBO: "微博",
    Platform.TWITTER: "Twitter/X",
    Platform.V2EX: "V2EX",
    Platform.ARTICLE: "链接",
}


@dataclass(frozen=True)
class PageFields:
    """Best-effort fields pulled out of a page by the DOM heuristics."""

    title: str
    author: str
    content: str


@dataclass(frozen=True)
class ExtractionResult:
    url: str
    title: str
    author: str
    content: str
    platform: Platform
    ocr_text: str | None = None  # None: OCR did not run; "": ran, nothing usable
    need_ocr: bool = False
    enable_ocr: bool = False
    publish_date: str | None = None
    thumbnail: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "url": self.url,
            "title": self.title,
            "author": self.author,
            "content": self.content,
            "platform": self.platform.value,
            "needOcr": self.need_ocr,
            "enableOcr": self.enable_ocr,
        }
        if self.ocr_text is not None:
            out["ocrText"] = self.ocr_text
        if self.publish_date:
            out["publishDate"] = self.publish_date
        if self.thumbnail:
            out["thumbnail"] = self.thumbnail
        return out


@dataclass(frozen=True)
class ImageCandidate:
    url: str
    width: float
    height: float


@dataclass(frozen=True)
class OcrProgress:
    current: int
    total: int

    def to_dict(self) -> dict[str, Any]:
        return {"action": "ocrProgress", "current": self.current, "total": self.total}


class ImageState(str, Enum):
    PENDING = "pending"
    RECOGNIZING = "recognizing"
    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"  # recognized, but too little text to keep
    FAILED = "failed"


@dataclass
class ImageRecognition:
    candidate: ImageCandidate
    state: ImageState = ImageState.PENDING
    text: str = ""
    error: str | None = None


@dataclass(frozen=True)
class OcrOutcome:
    ran: bool
    text: str = ""
    error: str | None = None
    csp_blocked: bool = False
    images: tuple[ImageRecognition, ...] = field(default_factory=tuple)
