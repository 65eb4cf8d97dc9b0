"""Page-side extraction: one snapshot in, one ExtractionResult out.

``extract`` answers immediately with title/author/content; ``do_ocr`` is the
optional second phase that reads text out of the page's images and reports
progress along the way. ``extract_with_ocr`` runs both in one call.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from weakref import WeakKeyDictionary

from brain_service.extraction.document import PageDocument
from brain_service.extraction.heuristics import DomHeuristicExtractor
from brain_service.extraction.ocr.pipeline import OcrPipeline
from brain_service.extraction.platform import classify
from brain_service.extraction.progress import ProgressChannel
from brain_service.extraction.security import ScriptInjectionProbe, SecurityPolicyDetector
from brain_service.extraction.settings import ExtractionSettings
from brain_service.extraction.types import ExtractionResult, OcrOutcome, PageFields

logger = logging.getLogger(__name__)


class PageExtractionOrchestrator:
    def __init__(
        self,
        *,
        detector: SecurityPolicyDetector,
        ocr: OcrPipeline,
        settings: ExtractionSettings | None = None,
        heuristics: DomHeuristicExtractor | None = None,
    ) -> None:
        self._detector = detector
        self._ocr = ocr
        self._heuristics = heuristics or DomHeuristicExtractor(settings)
        # One probe per page snapshot, evaluated at most once
        self._probes: WeakKeyDictionary[PageDocument, ScriptInjectionProbe] = WeakKeyDictionary()

    def probe_for(self, document: PageDocument) -> ScriptInjectionProbe:
        probe = self._probes.get(document)
        if probe is None:
            probe = ScriptInjectionProbe(document)
            self._probes[document] = probe
        return probe

    def is_restricted(self, document: PageDocument) -> bool:
        return self._detector.is_restricted(document.url, self.probe_for(document))

    async def extract(self, document: PageDocument, *, enable_ocr: bool = False) -> ExtractionResult:
        platform = classify(document.url)
        logger.debug("Extracting %s (platform=%s)", document.url, platform.value)

        try:
            # Parsing and scoring are CPU-bound; keep them off the event loop
            fields = await asyncio.to_thread(self._heuristics.extract, document, platform)
        except Exception:
            # Partial results beat a failed save; the UI asks for manual input
            logger.exception("DOM extraction failed for %s", document.url)
            fields = PageFields(title="", author="", content="")

        probe = self.probe_for(document)
        restricted = await asyncio.to_thread(self._detector.is_restricted, document.url, probe)
        logger.info(
            "Extracted %s: platform=%s title=%r content_chars=%d",
            document.url,
            platform.value,
            fields.title[:50],
            len(fields.content),
        )
        return ExtractionResult(
            url=document.url,
            title=fields.title,
            author=fields.author,
            content=fields.content,
            platform=platform,
            need_ocr=enable_ocr and not restricted,
            enable_ocr=enable_ocr,
        )

    async def do_ocr(
        self,
        document: PageDocument,
        *,
        use_ocr: bool = True,
        progress: ProgressChannel | None = None,
    ) -> OcrOutcome:
        try:
            return await self._ocr.run(
                document,
                use_ocr=use_ocr,
                probe=self.probe_for(document),
                progress=progress,
            )
        except Exception as e:
            logger.exception("OCR pass failed for %s", document.url)
            return OcrOutcome(ran=False, error=str(e) or type(e).__name__)

    async def extract_with_ocr(
        self,
        document: PageDocument,
        *,
        progress: ProgressChannel | None = None,
    ) -> ExtractionResult:
        result = await self.extract(document, enable_ocr=True)
        outcome = await self.do_ocr(document, use_ocr=True, progress=progress)
        return dataclasses.replace(
            result,
            ocr_text=outcome.text if outcome.ran else None,
            need_ocr=False,
        )
