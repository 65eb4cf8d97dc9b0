from __future__ import annotations

import asyncio
import logging

from brain_service.extraction.document import PageDocument
from brain_service.extraction.ocr.engine import EngineLoader, OcrEngineUnavailable
from brain_service.extraction.ocr.images import discover_images
from brain_service.extraction.progress import BestEffortChannel, NullChannel, ProgressChannel
from brain_service.extraction.security import (
    CSP_BLOCKED_MESSAGE,
    ScriptInjectionProbe,
    SecurityPolicyDetector,
)
from brain_service.extraction.settings import ExtractionSettings
from brain_service.extraction.types import ImageRecognition, ImageState, OcrOutcome, OcrProgress

logger = logging.getLogger(__name__)

OCR_DISABLED_MESSAGE = "OCR is disabled on this server"


def image_block(index: int, text: str) -> str:
    return f"【图片{index}文字】\n{text}"


class OcrPipeline:
    def __init__(
        self,
        *,
        loader: EngineLoader,
        detector: SecurityPolicyDetector,
        settings: ExtractionSettings,
    ) -> None:
        self._loader = loader
        self._detector = detector
        self._settings = settings

    async def run(
        self,
        document: PageDocument,
        *,
        use_ocr: bool = True,
        probe: ScriptInjectionProbe | None = None,
        progress: ProgressChannel | None = None,
    ) -> OcrOutcome:
        if await asyncio.to_thread(self._detector.is_restricted, document.url, probe):
            logger.info("OCR blocked by security policy on %s", document.url)
            return OcrOutcome(ran=False, error=CSP_BLOCKED_MESSAGE, csp_blocked=True)

        if not use_ocr:
            return OcrOutcome(ran=False)
        if not self._settings.ocr_enabled:
            return OcrOutcome(ran=False, error=OCR_DISABLED_MESSAGE)

        candidates = await asyncio.to_thread(
            discover_images,
            document,
            min_px=self._settings.ocr_min_image_px,
            max_images=self._settings.ocr_max_images,
        )
        logger.info("OCR: %d candidate images on %s", len(candidates), document.url)
        if not candidates:
            return OcrOutcome(ran=True)

        try:
            engine = await self._loader.get()
        except OcrEngineUnavailable as e:
            logger.warning("OCR engine unavailable, skipping image text: %s", e)
            return OcrOutcome(ran=True, error=f"OCR unavailable: {e}")

        # Progress delivery never interrupts recognition
        channel = BestEffortChannel(progress.send) if progress is not None else NullChannel()
        records = [ImageRecognition(candidate=c) for c in candidates]
        total = len(records)
        blocks: list[str] = []

        # One image at a time: bounded memory, and progress stays in order
        for i, rec in enumerate(records):
            rec.state = ImageState.RECOGNIZING
            try:
                text = (await engine.recognize(rec.candidate)).strip()
            except Exception as e:
                rec.state = ImageState.FAILED
                rec.error = str(e) or type(e).__name__
                logger.warning("OCR failed for image %d/%d (%s): %s", i + 1, total, rec.candidate.url, e)
            else:
                rec.text = text
                if len(text) > self._settings.ocr_min_text_chars:
                    rec.state = ImageState.SUCCEEDED
                    blocks.append(image_block(i + 1, text))
                else:
                    rec.state = ImageState.SKIPPED

            channel.send(OcrProgress(current=i + 1, total=total))

        return OcrOutcome(ran=True, text="\n\n".join(blocks), images=tuple(records))
