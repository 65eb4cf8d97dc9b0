"""Unit tests for the page extraction orchestrator (extract, do_ocr, extract_with_ocr)."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

from brain_service.extraction.document import PageDocument
from brain_service.extraction.heuristics import DomHeuristicExtractor
from brain_service.extraction.ocr.engine import EngineLoader
from brain_service.extraction.ocr.pipeline import OcrPipeline, image_block
from brain_service.extraction.orchestrator import PageExtractionOrchestrator
from brain_service.extraction.security import SecurityPolicyDetector
from brain_service.extraction.settings import ExtractionSettings
from brain_service.extraction.types import OcrOutcome, PageFields, Platform

ARTICLE_BODY = f"<article><h1>Heading</h1><p>{'word ' * 60}</p></article>"
IMAGE = '<img src="/pic.png" width="400" height="300">'


def _doc(body: str = ARTICLE_BODY + IMAGE, url: str = "https://blog.example.com/post/1", headers=None) -> PageDocument:
    html = f"<html><head><title>Example post</title></head><body>{body}</body></html>"
    return PageDocument(url=url, html=html, headers=headers)


def _orchestrator(engine=None, *, ocr_enabled: bool = True, heuristics=None) -> PageExtractionOrchestrator:
    settings = ExtractionSettings(ocr_enabled=ocr_enabled)
    detector = SecurityPolicyDetector(restricted_domains=("zhihu.com",))
    return PageExtractionOrchestrator(
        detector=detector,
        ocr=OcrPipeline(loader=EngineLoader(lambda: engine), detector=detector, settings=settings),
        settings=settings,
        heuristics=heuristics,
    )


class TestExtract:
    async def test_fields_and_platform(self) -> None:
        result = await _orchestrator().extract(_doc())
        assert result.title == "Example post"
        assert result.content.startswith("Heading word word")
        assert result.platform is Platform.ARTICLE
        assert result.need_ocr is False
        assert result.enable_ocr is False
        assert result.ocr_text is None

    async def test_ocr_requested_on_open_page(self) -> None:
        result = await _orchestrator().extract(_doc(), enable_ocr=True)
        assert result.need_ocr is True
        assert result.enable_ocr is True

    async def test_ocr_not_needed_on_restricted_domain(self) -> None:
        result = await _orchestrator().extract(_doc(url="https://www.zhihu.com/question/1"), enable_ocr=True)
        assert result.platform is Platform.ZHIHU
        assert result.need_ocr is False
        assert result.enable_ocr is True

    async def test_ocr_not_needed_under_blocking_csp(self) -> None:
        doc = _doc(headers={"Content-Security-Policy": "default-src 'self'"})
        result = await _orchestrator().extract(doc, enable_ocr=True)
        assert result.need_ocr is False

    async def test_heuristic_failure_gives_empty_fields(self) -> None:
        broken = MagicMock(spec=DomHeuristicExtractor)
        broken.extract.side_effect = RuntimeError("parser exploded")
        result = await _orchestrator(heuristics=broken).extract(_doc())
        assert (result.title, result.author, result.content) == ("", "", "")
        assert result.url == "https://blog.example.com/post/1"

    async def test_heuristics_run_off_the_event_loop(self) -> None:
        import threading

        real = DomHeuristicExtractor(ExtractionSettings())
        seen: list[int] = []

        def recording_extract(document, platform):
            seen.append(threading.get_ident())
            return real.extract(document, platform)

        heuristics = MagicMock(spec=DomHeuristicExtractor)
        heuristics.extract.side_effect = recording_extract
        result = await _orchestrator(heuristics=heuristics).extract(_doc())
        assert result.title == "Example post"
        assert seen and seen[0] != threading.get_ident()

    async def test_slow_page_does_not_stall_other_requests(self) -> None:
        import asyncio
        import time

        def slow_extract(document, platform):
            time.sleep(0.3)
            return PageFields(title="t", author="", content="")

        heuristics = MagicMock(spec=DomHeuristicExtractor)
        heuristics.extract.side_effect = slow_extract
        ticks = 0

        async def ticker() -> None:
            nonlocal ticks
            while True:
                await asyncio.sleep(0.01)
                ticks += 1

        task = asyncio.create_task(ticker())
        try:
            await _orchestrator(heuristics=heuristics).extract(_doc())
        finally:
            task.cancel()
        assert ticks >= 5

    def test_probe_is_shared_per_document(self) -> None:
        orchestrator = _orchestrator()
        doc = _doc()
        assert orchestrator.probe_for(doc) is orchestrator.probe_for(doc)
        assert orchestrator.probe_for(doc) is not orchestrator.probe_for(_doc())


class TestDoOcr:
    async def test_text_from_images(self, make_engine) -> None:
        engine = make_engine({"https://blog.example.com/pic.png": "chart of sea levels"})
        outcome = await _orchestrator(engine).do_ocr(_doc())
        assert outcome.ran is True
        assert outcome.text == image_block(1, "chart of sea levels")

    async def test_restricted_page(self, fake_engine) -> None:
        outcome = await _orchestrator(fake_engine).do_ocr(_doc(url="https://www.zhihu.com/p/1"))
        assert outcome.csp_blocked is True
        assert fake_engine.calls == []

    async def test_pipeline_error_is_contained(self) -> None:
        orchestrator = _orchestrator()
        orchestrator._ocr = MagicMock(run=AsyncMock(side_effect=RuntimeError("boom")))
        outcome = await orchestrator.do_ocr(_doc())
        assert outcome == OcrOutcome(ran=False, error="boom")


class TestExtractWithOcr:
    async def test_merges_ocr_text(self, make_engine) -> None:
        engine = make_engine({"https://blog.example.com/pic.png": "chart of sea levels"})
        events = []

        class _Channel:
            def send(self, event) -> None:
                events.append(event)

        result = await _orchestrator(engine).extract_with_ocr(_doc(), progress=_Channel())
        assert result.ocr_text == image_block(1, "chart of sea levels")
        assert result.need_ocr is False
        assert result.enable_ocr is True
        assert [(e.current, e.total) for e in events] == [(1, 1)]
        assert result.to_dict()["ocrText"] == result.ocr_text

    async def test_ocr_that_did_not_run_leaves_text_unset(self, fake_engine) -> None:
        result = await _orchestrator(fake_engine, ocr_enabled=False).extract_with_ocr(_doc())
        assert result.ocr_text is None
        assert "ocrText" not in result.to_dict()
        assert result.content
