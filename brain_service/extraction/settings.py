from __future__ import annotations

import os
from dataclasses import dataclass


def _get_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in ("1", "true", "t", "yes", "y", "on")


def _get_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None:
        return default
    return int(v)


def _get_float(name: str, default: float) -> float:
    v = os.getenv(name)
    if v is None:
        return default
    return float(v)


@dataclass(frozen=True)
class ExtractionSettings:
    # Content heuristics
    max_content_chars: int = 15_000
    min_content_chars: int = 200
    ancestor_promotion_ratio: float = 1.5
    author_max_chars: int = 50
    truncation_marker: str = "..."

    # OCR
    ocr_enabled: bool = False
    ocr_max_images: int = 10
    ocr_min_image_px: int = 100
    ocr_min_text_chars: int = 10
    ocr_max_image_bytes: int = 8 * 1024 * 1024

    # OCR / Document AI
    docai_project: str | None = None
    docai_location: str | None = None
    docai_processor_id: str | None = None

    @classmethod
    def from_env(cls) -> ExtractionSettings:
        return cls(
            max_content_chars=_get_int("BRAIN_MAX_CONTENT_CHARS", 15_000),
            min_content_chars=_get_int("BRAIN_MIN_CONTENT_CHARS", 200),
            ancestor_promotion_ratio=_get_float("BRAIN_ANCESTOR_PROMOTION_RATIO", 1.5),
            author_max_chars=_get_int("BRAIN_AUTHOR_MAX_CHARS", 50),
            ocr_enabled=_get_bool("BRAIN_OCR_ENABLED", False),
            ocr_max_images=_get_int("BRAIN_OCR_MAX_IMAGES", 10),
            ocr_min_image_px=_get_int("BRAIN_OCR_MIN_IMAGE_PX", 100),
            ocr_min_text_chars=_get_int("BRAIN_OCR_MIN_TEXT_CHARS", 10),
            ocr_max_image_bytes=_get_int("BRAIN_OCR_MAX_IMAGE_BYTES", 8 * 1024 * 1024),
            docai_project=os.getenv("BRAIN_DOC_AI_PROJECT"),
            docai_location=os.getenv("BRAIN_DOC_AI_LOCATION"),
            docai_processor_id=os.getenv("BRAIN_DOC_AI_PROCESSOR_ID"),
        )

    def validate(self) -> None:
        if self.max_content_chars <= len(self.truncation_marker):
            raise ValueError("BRAIN_MAX_CONTENT_CHARS must exceed the truncation marker length")
        if self.min_content_chars < 0:
            raise ValueError("BRAIN_MIN_CONTENT_CHARS must be >= 0")
        if self.ancestor_promotion_ratio <= 1.0:
            raise ValueError("BRAIN_ANCESTOR_PROMOTION_RATIO must be > 1")
        if self.author_max_chars < 1:
            raise ValueError("BRAIN_AUTHOR_MAX_CHARS must be >= 1")
        if self.ocr_max_images < 1:
            raise ValueError("BRAIN_OCR_MAX_IMAGES must be >= 1")
        if self.ocr_max_image_bytes < 1:
            raise ValueError("BRAIN_OCR_MAX_IMAGE_BYTES must be >= 1")

        if self.ocr_enabled:
            missing = [
                k
                for k, v in {
                    "BRAIN_DOC_AI_PROJECT": self.docai_project,
                    "BRAIN_DOC_AI_LOCATION": self.docai_location,
                    "BRAIN_DOC_AI_PROCESSOR_ID": self.docai_processor_id,
                }.items()
                if not v
            ]
            if missing:
                raise ValueError(f"OCR enabled but missing DocAI config: {', '.join(missing)}")
