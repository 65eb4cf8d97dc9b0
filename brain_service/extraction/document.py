"""Page snapshots and the layout model used in place of a live browser DOM.

A ``PageDocument`` is what a capturing client sends: the page URL, its
serialized HTML, optionally the response headers and the viewport size.
Geometry and visibility are read from inline styles and sizing attributes:

- ``style="width: 640px; height: 80vh"`` (``px``, unitless, ``%``, ``vw``,
  ``vh``; percentages resolve against the viewport)
- ``width="640" height="480"`` attributes when the style has no size
- ``display:none`` on the element or an ancestor, the ``hidden`` attribute,
  and the nearest declared ``visibility``

An element with no sizing information gets a zero box, like an element the
browser never laid out.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass

from bs4 import BeautifulSoup, Tag

_LENGTH_RE = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*(px|%|vw|vh)?\s*$", re.IGNORECASE)


@dataclass(frozen=True)
class Viewport:
    width: int = 1280
    height: int = 800


@dataclass(frozen=True)
class Box:
    width: float
    height: float


class PageDocument:
    def __init__(
        self,
        *,
        url: str,
        html: str,
        headers: Mapping[str, str] | None = None,
        viewport: Viewport | None = None,
    ) -> None:
        self.url = url
        self.html = html or ""
        self.headers = {k.lower(): v for k, v in (headers or {}).items()}
        self.viewport = viewport or Viewport()
        self._soup: BeautifulSoup | None = None

    @property
    def soup(self) -> BeautifulSoup:
        if self._soup is None:
            self._soup = BeautifulSoup(self.html, "lxml")
        return self._soup

    @property
    def body(self) -> Tag:
        return self.soup.body or self.soup

    def select_one(self, selector: str) -> Tag | None:
        return self.soup.select_one(selector)

    def select(self, selector: str) -> list[Tag]:
        return list(self.soup.select(selector))


def parse_style(tag: Tag) -> dict[str, str]:
    raw = tag.get("style") if isinstance(tag, Tag) else None
    if not raw or not isinstance(raw, str):
        return {}
    out: dict[str, str] = {}
    for decl in raw.split(";"):
        name, sep, value = decl.partition(":")
        if not sep:
            continue
        value = value.replace("!important", "").strip().lower()
        out[name.strip().lower()] = value
    return out


def _length(raw: str | None, *, axis: str, viewport: Viewport) -> float | None:
    if not raw:
        return None
    m = _LENGTH_RE.match(raw)
    if not m:
        return None
    value = float(m.group(1))
    unit = (m.group(2) or "px").lower()
    if unit == "px":
        return value
    if unit == "vw":
        return value * viewport.width / 100
    if unit == "vh":
        return value * viewport.height / 100
    extent = viewport.width if axis == "width" else viewport.height
    return value * extent / 100


def _is_displayed(tag: Tag) -> bool:
    node: Tag | None = tag
    while isinstance(node, Tag):
        if node.has_attr("hidden") or parse_style(node).get("display") == "none":
            return False
        node = node.parent
    return True


def is_visible(tag: Tag) -> bool:
    if not _is_displayed(tag):
        return False
    node: Tag | None = tag
    while isinstance(node, Tag):
        visibility = parse_style(node).get("visibility")
        if visibility:
            return visibility not in ("hidden", "collapse")
        node = node.parent
    return True


def element_box(tag: Tag, viewport: Viewport) -> Box:
    """Approximate ``getBoundingClientRect()`` size of an element."""
    if not _is_displayed(tag):
        return Box(0.0, 0.0)
    style = parse_style(tag)
    dims: dict[str, float] = {}
    for axis in ("width", "height"):
        value = _length(style.get(axis), axis=axis, viewport=viewport)
        if value is None:
            attr = tag.get(axis)
            value = _length(attr if isinstance(attr, str) else None, axis=axis, viewport=viewport)
        dims[axis] = max(value or 0.0, 0.0)
    return Box(dims["width"], dims["height"])
