from __future__ import annotations

import re
from abc import ABC, abstractmethod
from urllib.parse import unquote, urlparse

from brain_service.extraction.types import ExtractionResult, Platform

_EXTENSION_RE = re.compile(r"\.\w+$")


class RemoteExtractionError(RuntimeError):
    """A URL-driven extractor could not produce content."""


class RemoteExtractor(ABC):
    @abstractmethod
    def can_handle(self, platform: Platform) -> bool: ...

    @abstractmethod
    async def extract(self, url: str, *, cookie: str | None = None) -> ExtractionResult: ...


def title_from_url(url: str) -> str:
    """Readable title guess from the last path segment (or the host)."""
    try:
        parsed = urlparse(url)
        segments = [s for s in parsed.path.split("/") if s]
        if not segments:
            return (parsed.hostname or url)[:100]
        title = unquote(segments[-1]).replace("-", " ").replace("_", " ")
        return _EXTENSION_RE.sub("", title)[:100]
    except ValueError:
        return url
