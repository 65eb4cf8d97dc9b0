from __future__ import annotations

from urllib.parse import urljoin

from brain_service.extraction.document import PageDocument, element_box
from brain_service.extraction.types import ImageCandidate

# Avatars, icons and stickers rarely carry readable text
EXCLUDED_MARKERS: tuple[str, ...] = ("avatar", "icon", "emoticon")


def discover_images(
    document: PageDocument,
    *,
    min_px: int = 100,
    max_images: int = 10,
    excluded_markers: tuple[str, ...] = EXCLUDED_MARKERS,
) -> list[ImageCandidate]:
    """Rendered ``<img>`` elements worth sending to OCR, first-seen order."""
    seen: set[str] = set()
    out: list[ImageCandidate] = []
    for img in document.select("img"):
        box = element_box(img, document.viewport)
        if not (box.width > min_px and box.height > min_px):
            continue
        src = img.get("src")
        if not isinstance(src, str) or not src.strip():
            continue
        url = urljoin(document.url, src.strip())
        lowered = url.lower()
        if lowered.startswith("data:"):
            continue
        if any(m in lowered for m in excluded_markers):
            continue
        if url in seen:
            continue
        seen.add(url)
        out.append(ImageCandidate(url=url, width=box.width, height=box.height))
        if len(out) >= max_images:
            break
    return out
