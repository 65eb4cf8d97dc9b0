"""Lazily initialized, process-wide recognition engine."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Protocol

import httpx

from brain_service.extraction.settings import ExtractionSettings
from brain_service.extraction.types import ImageCandidate

logger = logging.getLogger(__name__)


class RecognitionEngine(Protocol):
    async def recognize(self, candidate: ImageCandidate) -> str:
        ...


class OcrEngineUnavailable(RuntimeError):
    """The recognition engine could not be initialized."""


EngineFactory = Callable[[], RecognitionEngine]


class EngineLoader:
    """Builds the engine on first use and hands out the cached instance.

    Construction runs once per process (it loads credentials and opens a
    client). A failed construction is not cached; ``last_error`` keeps the
    reason for readiness checks until a later load succeeds.
    """

    def __init__(self, factory: EngineFactory) -> None:
        self._factory = factory
        self._engine: RecognitionEngine | None = None
        self._lock = asyncio.Lock()
        self.last_error: str | None = None

    @property
    def loaded(self) -> bool:
        return self._engine is not None

    async def get(self) -> RecognitionEngine:
        if self._engine is not None:
            return self._engine
        async with self._lock:
            if self._engine is None:
                logger.info("Loading OCR recognition engine")
                try:
                    self._engine = await asyncio.to_thread(self._factory)
                except Exception as e:
                    self.last_error = str(e) or type(e).__name__
                    raise OcrEngineUnavailable(self.last_error) from e
                self.last_error = None
        return self._engine


def build_docai_engine_factory(
    settings: ExtractionSettings,
    http_client: Callable[[], httpx.AsyncClient],
) -> EngineFactory:
    """Factory for the Document AI engine; imports the client lazily."""

    def factory() -> RecognitionEngine:
        if not (settings.docai_project and settings.docai_location and settings.docai_processor_id):
            raise OcrEngineUnavailable("Document AI is not configured")

        from brain_service.extraction.ocr.document_ai import (
            DocAIConfig,
            DocumentAIClient,
            DocumentAIRecognizer,
        )

        cfg = DocAIConfig(
            project=settings.docai_project,
            location=settings.docai_location,
            processor_id=settings.docai_processor_id,
        )
        return DocumentAIRecognizer(
            docai=DocumentAIClient(cfg=cfg),
            http=http_client(),
            max_bytes=settings.ocr_max_image_bytes,
        )

    return factory
