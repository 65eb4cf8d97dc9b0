from __future__ import annotations

from bs4 import Tag


def collapse_whitespace(text: str) -> str:
    if not text:
        return ""
    # Remove null bytes, then fold every whitespace run into one space
    return " ".join(text.replace("\x00", "").split())


def visible_text(tag: Tag | None) -> str:
    """Rendered-ish text of an element: descendant strings, whitespace collapsed."""
    if tag is None:
        return ""
    return collapse_whitespace(tag.get_text(" "))


def truncate_text(text: str, limit: int, marker: str = "...") -> str:
    """Cap ``text`` at ``limit`` characters, marker included."""
    if len(text) <= limit:
        return text
    return text[: max(limit - len(marker), 0)] + marker
