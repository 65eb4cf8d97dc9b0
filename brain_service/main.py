from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path

from brain_service.cli import build_parser
from brain_service.extraction.document import PageDocument
from brain_service.extraction.ocr.engine import EngineLoader, build_docai_engine_factory
from brain_service.extraction.ocr.pipeline import OcrPipeline
from brain_service.extraction.orchestrator import PageExtractionOrchestrator
from brain_service.extraction.progress import BestEffortChannel
from brain_service.extraction.remote.service import UrlExtractionService
from brain_service.extraction.security import SecurityPolicyDetector
from brain_service.extraction.settings import ExtractionSettings
from brain_service.extraction.types import ExtractionResult, OcrProgress
from brain_service.http_client import close_http_client, get_http_client
from brain_service.logging_config import setup_logging


def _print_progress(event: OcrProgress) -> None:
    print(f"OCR {event.current}/{event.total}", file=sys.stderr)


async def _amain() -> int:
    parser = build_parser()
    args = parser.parse_args()

    setup_logging(level=args.log_level.upper())
    logger = logging.getLogger("brain_service.cli")

    settings = ExtractionSettings.from_env()
    settings.validate()

    if args.ocr and not args.html:
        parser.error("--ocr needs a page snapshot (--html)")

    result: ExtractionResult
    try:
        if args.html:
            html = Path(args.html).read_text(encoding="utf-8", errors="ignore")
            document = PageDocument(url=args.url, html=html)
            detector = SecurityPolicyDetector()
            orchestrator = PageExtractionOrchestrator(
                detector=detector,
                ocr=OcrPipeline(
                    loader=EngineLoader(build_docai_engine_factory(settings, get_http_client)),
                    detector=detector,
                    settings=settings,
                ),
                settings=settings,
            )
            if args.ocr:
                result = await orchestrator.extract_with_ocr(document, progress=BestEffortChannel(_print_progress))
            else:
                result = await orchestrator.extract(document)
        else:
            service = UrlExtractionService(http=get_http_client(), settings=settings)
            result = await service.extract(
                args.url,
                platform_cookie=args.cookie,
                use_external_readability=not args.no_readability,
            )
    finally:
        await close_http_client()

    logger.info("Extracted %d chars from %s (%s)", len(result.content), args.url, result.platform.label)
    print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    return 0 if (result.content or result.title) else 2


def main() -> None:
    raise SystemExit(asyncio.run(_amain()))


if __name__ == "__main__":
    main()
