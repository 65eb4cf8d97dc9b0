"""Floating-layer (overlay/drawer) detection and extraction.

Some platforms open detail content in a full-screen layer above a feed
without navigating. The mechanism is generic; the selector lists are
per-platform tuning data kept in ``DEFAULT_FLOATING_PROFILES``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from bs4 import Tag

from brain_service.extraction.document import PageDocument, element_box, is_visible
from brain_service.extraction.text import visible_text
from brain_service.extraction.types import Platform

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FloatingLayerProfile:
    detect_selectors: tuple[str, ...]
    content_selectors: tuple[str, ...]
    title_selector: str = 'h1, h2, [class*="title"], [class*="header"]'
    overlay_selector: str | None = None
    min_width: float = 300
    min_height: float = 400
    overlay_viewport_fraction: float = 0.5
    # Accepted content length window, exclusive on both ends
    min_text_chars: int = 100
    max_text_chars: int = 50_000
    walk_min_chars: int = 200


XIAOHONGSHU_PROFILE = FloatingLayerProfile(
    detect_selectors=(
        '[class*="note-detail"]',
        '[class*="drawer"]',
        '[class*="modal"]',
        '[class*="popup"]',
        '[class*="overlay"]',
        '[class*="layer"]',
        ".note-content-wrapper",
        ".note-detail-container",
    ),
    content_selectors=(
        '[class*="note-detail"]',
        '[class*="note_content"]',
        '[class*="detail-container"]',
        '[class*="content-wrapper"]',
        ".note-content",
        ".note-detail-container",
        '[class*="main-content"]',
        '[class*="article-content"]',
        '[class*="post-text"]',
        ".rich-text",
        ".content-wrap",
        ".detail-wrapper",
        ".content-wrapper",
        ".note-wrapper",
    ),
    overlay_selector='.xgplayer-overlay, [class*="overlay"], [class*="modal"]',
)

DEFAULT_FLOATING_PROFILES: dict[Platform, FloatingLayerProfile] = {
    Platform.XIAOHONGSHU: XIAOHONGSHU_PROFILE,
}


def find_floating_layer(document: PageDocument, profile: FloatingLayerProfile) -> Tag | None:
    """Return the first visible layer big enough to be a detail overlay."""
    for sel in profile.detect_selectors:
        for el in document.select(sel):
            box = element_box(el, document.viewport)
            if box.width > profile.min_width and box.height > profile.min_height and is_visible(el):
                return el

    if profile.overlay_selector:
        overlay = document.select_one(profile.overlay_selector)
        if overlay is not None:
            box = element_box(overlay, document.viewport)
            vp = document.viewport
            if (
                box.width > vp.width * profile.overlay_viewport_fraction
                and box.height > vp.height * profile.overlay_viewport_fraction
            ):
                return overlay
    return None


def extract_floating_content(
    root: Tag,
    profile: FloatingLayerProfile,
    clean: Callable[[Tag], str],
) -> str | None:
    """Pull the detail text out of ``root`` (a stripped body clone)."""
    for sel in profile.content_selectors:
        el = root.select_one(sel)
        if el is None:
            continue
        n = len(visible_text(el))
        if profile.min_text_chars < n < profile.max_text_chars:
            logger.debug("Floating layer content matched %s (%d chars)", sel, n)
            return clean(el)

    # No container matched: grow outward from the heading until the
    # surrounding block holds enough paragraph text.
    title_el = root.select_one(profile.title_selector)
    if title_el is None:
        return None
    node = title_el.parent
    while node is not None and node is not root:
        total = sum(len(visible_text(s)) for s in node.select("p, div, span"))
        if total > profile.walk_min_chars:
            logger.debug("Floating layer content found by heading walk (<%s>)", node.name)
            return clean(node)
        node = node.parent
    return None
