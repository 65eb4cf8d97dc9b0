"""DOM heuristics for title, author and main content.

Content selection, in order: platform floating layer, well-known article
containers, then the longest text block promoted into its container while
the container holds meaningfully more text (``ancestor_promotion_ratio``).
All work happens on a copy of ``<body>``; the parsed snapshot is never
modified, so repeated runs return identical fields.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Mapping

from bs4 import Tag

from brain_service.extraction.document import PageDocument
from brain_service.extraction.floating import (
    DEFAULT_FLOATING_PROFILES,
    FloatingLayerProfile,
    extract_floating_content,
    find_floating_layer,
)
from brain_service.extraction.settings import ExtractionSettings
from brain_service.extraction.text import collapse_whitespace, truncate_text, visible_text
from brain_service.extraction.types import PageFields, Platform

logger = logging.getLogger(__name__)

NOISE_SELECTORS: tuple[str, ...] = (
    "script",
    "style",
    "nav",
    "header",
    "footer",
    "aside",
    ".advertisement",
    ".ad",
    ".ads",
    ".comment",
    ".comments",
    ".sidebar",
    ".siderbar",
    ".related",
    ".recommend",
    '[role="navigation"]',
    '[role="banner"]',
    '[role="complementary"]',
)

MAIN_SELECTORS: tuple[str, ...] = (
    "article",
    '[role="main"]',
    "main",
    ".post-content",
    ".article-content",
    ".entry-content",
    ".content-body",
    ".rich-text",
    ".zb-content",
    ".detail-content",
)

AUTHOR_SELECTORS: tuple[str, ...] = (
    'meta[name="author"]',
    'meta[property="article:author"]',
    ".author-name",
    ".user-name",
    ".nickname",
    '[rel="author"]',
    ".zu-top-authentication-bar li:first-child span",
    ".creator-info",
    ".name-card",
    '[class*="author"]',
    '[class*="user-name"]',
    '[class*="username"]',
    '[class*="nickname"]',
    ".note-author",
    ".author-info",
)

BLOCK_SELECTOR = "p, h1, h2, h3, h4, h5, h6, li, div"

CLEANUP_TAGS: tuple[str, ...] = ("style", "script", "iframe", "img", "video", "audio")
FLOATING_CLEANUP_TAGS: tuple[str, ...] = CLEANUP_TAGS + ("nav", "header", "footer")
_INVISIBLE_TAGS: tuple[str, ...] = ("script", "style", "noscript", "template")


def _remove_all(root: Tag, selectors: Iterable[str]) -> None:
    for sel in selectors:
        for el in root.select(sel):
            if not el.decomposed:
                el.decompose()


def largest_text_block(root: Tag) -> tuple[Tag | None, int]:
    """First element (document order) with the strictly longest text."""
    best: Tag | None = None
    best_length = 0
    for el in root.select(BLOCK_SELECTOR):
        n = len(visible_text(el))
        if n > best_length:
            best, best_length = el, n
    return best, best_length


def promote_to_container(seed: Tag, seed_length: int, root: Tag, ratio: float) -> tuple[Tag, int]:
    """Walk up from ``seed`` while each ancestor holds > ratio x the best text.

    Stops at the first ancestor that fails the test and never returns
    ``root`` itself.
    """
    best, best_length = seed, seed_length
    parent = seed.parent
    while parent is not None and parent is not root:
        length = len(visible_text(parent))
        if length <= best_length * ratio:
            break
        best, best_length = parent, length
        parent = parent.parent
    return best, best_length


class DomHeuristicExtractor:
    def __init__(
        self,
        settings: ExtractionSettings | None = None,
        floating_profiles: Mapping[Platform, FloatingLayerProfile] | None = None,
    ) -> None:
        self._settings = settings or ExtractionSettings()
        self._profiles = dict(DEFAULT_FLOATING_PROFILES if floating_profiles is None else floating_profiles)

    def extract(self, document: PageDocument, platform: Platform) -> PageFields:
        return PageFields(
            title=self.extract_title(document),
            author=self.extract_author(document),
            content=self.extract_content(document, platform),
        )

    # -- Title ----------------------------------------------------------------

    def extract_title(self, document: PageDocument) -> str:
        og = document.select_one('meta[property="og:title"]')
        if og is not None:
            value = og.get("content")
            if isinstance(value, str) and value.strip():
                return value.strip()

        title_el = document.soup.title
        if title_el is not None:
            title = collapse_whitespace(title_el.get_text())
            if title:
                return title

        return visible_text(document.select_one("h1"))

    # -- Author ---------------------------------------------------------------

    def extract_author(self, document: PageDocument) -> str:
        limit = self._settings.author_max_chars
        for sel in AUTHOR_SELECTORS:
            el = document.select_one(sel)
            if el is None:
                continue
            text = visible_text(el)
            if not text:
                attr = el.get("content")
                text = attr.strip() if isinstance(attr, str) else ""
            # A long match is almost always a paragraph, not a name
            if 0 < len(text) < limit:
                return text
        return ""

    # -- Content --------------------------------------------------------------

    def extract_content(self, document: PageDocument, platform: Platform) -> str:
        clone = copy.copy(document.body)
        _remove_all(clone, NOISE_SELECTORS)

        profile = self._profiles.get(platform)
        if profile is not None and find_floating_layer(document, profile) is not None:
            logger.debug("Floating layer detected on %s", document.url)
            text = extract_floating_content(clone, profile, self._clean_floating)
            if text:
                return text

        main = self._find_main(clone)
        if main is None:
            seed, seed_length = largest_text_block(clone)
            if seed is not None:
                main, _ = promote_to_container(
                    seed, seed_length, clone, self._settings.ancestor_promotion_ratio
                )

        if main is not None:
            return self._clean(main, CLEANUP_TAGS)

        body = copy.copy(document.body)
        _remove_all(body, _INVISIBLE_TAGS)
        return self._cap(visible_text(body))

    def _find_main(self, root: Tag) -> Tag | None:
        for sel in MAIN_SELECTORS:
            el = root.select_one(sel)
            if el is not None and len(visible_text(el)) > self._settings.min_content_chars:
                return el
        return None

    def _clean_floating(self, element: Tag) -> str:
        return self._clean(element, FLOATING_CLEANUP_TAGS)

    def _clean(self, element: Tag, remove: Iterable[str]) -> str:
        tmp = copy.copy(element)
        _remove_all(tmp, remove)
        return self._cap(collapse_whitespace(tmp.get_text(" ")))

    def _cap(self, text: str) -> str:
        s = self._settings
        return truncate_text(text, s.max_content_chars, s.truncation_marker)
