"""FastAPI entry point for the extraction service.

Endpoints:
- POST /v1/extract         : URL-driven extraction (no live page available)
- POST /v1/page/extract    : Extract title/author/content from a page snapshot
- POST /v1/page/ocr        : Second phase: text from the snapshot's images
- POST /v1/page/ocr/stream : Same as above, with SSE progress events
- GET  /liveness           : Health check
- GET  /readiness          : OCR engine status
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any
from urllib.parse import urlparse

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from sse_starlette.sse import EventSourceResponse

from brain_service.config import (
    BRAIN_CORS_ALLOW_CREDENTIALS,
    BRAIN_CORS_ALLOW_HEADERS,
    BRAIN_CORS_ALLOW_METHODS,
    BRAIN_CORS_ALLOW_ORIGIN_REGEX,
    BRAIN_CORS_ALLOW_ORIGINS,
    BRAIN_LOG_LEVEL,
)
from brain_service.extraction.document import PageDocument, Viewport
from brain_service.extraction.ocr.engine import EngineLoader, build_docai_engine_factory
from brain_service.extraction.ocr.pipeline import OcrPipeline
from brain_service.extraction.orchestrator import PageExtractionOrchestrator
from brain_service.extraction.progress import BestEffortChannel
from brain_service.extraction.remote.service import UrlExtractionService
from brain_service.extraction.security import SecurityPolicyDetector
from brain_service.extraction.settings import ExtractionSettings
from brain_service.extraction.types import OcrProgress
from brain_service.http_client import close_http_client, get_http_client
from brain_service.logging_config import (
    bind_request_id,
    generate_request_id,
    reset_request_id,
    setup_logging,
)
from brain_service.models import (
    ExtractionResponse,
    HealthResponse,
    OcrResponse,
    PageExtractRequest,
    PageOcrRequest,
    PageSnapshotRequest,
    UrlExtractRequest,
)

logger = logging.getLogger(__name__)

_settings = ExtractionSettings.from_env()
_detector = SecurityPolicyDetector()
_engine_loader = EngineLoader(build_docai_engine_factory(_settings, get_http_client))
_page_orchestrator = PageExtractionOrchestrator(
    detector=_detector,
    ocr=OcrPipeline(loader=_engine_loader, detector=_detector, settings=_settings),
    settings=_settings,
)


def _url_service() -> UrlExtractionService:
    return UrlExtractionService(http=get_http_client(), settings=_settings)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: validate settings on startup, close HTTP on shutdown."""
    setup_logging(level=BRAIN_LOG_LEVEL)
    _settings.validate()
    logger.info("Extraction service started (ocr_enabled=%s)", _settings.ocr_enabled)
    yield
    await close_http_client()
    logger.info("Extraction service stopped")


app = FastAPI(
    title="Brain Extractor API",
    version="0.1.0",
    lifespan=lifespan,
)

# -- Rate limiting ------------------------------------------------------------

limiter = Limiter(key_func=get_remote_address, default_limits=["120/minute"])
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def _rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(status_code=429, content={"detail": "Rate limit exceeded"})


if BRAIN_CORS_ALLOW_CREDENTIALS and "*" in BRAIN_CORS_ALLOW_ORIGINS:
    raise RuntimeError("Invalid CORS config: wildcard origin cannot be combined with credentials=true")

app.add_middleware(
    CORSMiddleware,
    allow_origins=BRAIN_CORS_ALLOW_ORIGINS,
    allow_origin_regex=BRAIN_CORS_ALLOW_ORIGIN_REGEX,
    allow_credentials=BRAIN_CORS_ALLOW_CREDENTIALS,
    allow_methods=BRAIN_CORS_ALLOW_METHODS,
    allow_headers=BRAIN_CORS_ALLOW_HEADERS,
)


# -- Body size limit ----------------------------------------------------------

_MAX_BODY_BYTES = 10 * 1024 * 1024  # 10 MB


@app.middleware("http")
async def body_size_middleware(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Reject requests with bodies exceeding the size limit."""
    content_length = request.headers.get("content-length")
    if content_length is not None and int(content_length) > _MAX_BODY_BYTES:
        return JSONResponse(status_code=413, content={"detail": "Request body too large"})
    return await call_next(request)


# -- Request ID middleware ----------------------------------------------------


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Attach a unique request ID for trace correlation."""
    request_id = request.headers.get("x-request-id") or generate_request_id()
    request.state.request_id = request_id
    token = bind_request_id(request_id)
    try:
        response = await call_next(request)
    finally:
        reset_request_id(token)
    response.headers["x-request-id"] = request_id
    return response


def is_valid_url(url: str) -> bool:
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _to_document(body: PageSnapshotRequest) -> PageDocument:
    viewport = Viewport(width=body.viewport.width, height=body.viewport.height) if body.viewport else None
    return PageDocument(url=body.url, html=body.html, headers=body.headers, viewport=viewport)


# -- Health -------------------------------------------------------------------


@app.get("/liveness", response_model=HealthResponse)
async def liveness() -> HealthResponse:
    return HealthResponse(status="ok")


@app.get("/readiness", response_model=HealthResponse)
async def readiness() -> HealthResponse:
    if _settings.ocr_enabled and _engine_loader.last_error:
        return HealthResponse(status="degraded", error=f"OCR engine unavailable: {_engine_loader.last_error}")
    return HealthResponse(status="ok")


# -- URL extraction -------------------------------------------------------------


@app.post("/v1/extract", response_model=ExtractionResponse, response_model_exclude_none=True)
@limiter.limit("30/minute")
async def extract_url(request: Request, body: UrlExtractRequest) -> ExtractionResponse:
    """Server-side extraction: platform extractor -> reader/direct fetch -> URL stub."""
    url = (body.url or "").strip()
    if not url:
        raise HTTPException(status_code=400, detail="URL must not be blank")
    if not is_valid_url(url):
        raise HTTPException(status_code=400, detail="Invalid URL")

    try:
        result = await _url_service().extract(
            url,
            platform_cookie=body.platform_cookie,
            use_external_readability=body.use_external_readability,
        )
    except Exception as e:
        logger.exception("URL extraction failed for %s", url)
        raise HTTPException(status_code=500, detail="Extraction failed") from e

    return ExtractionResponse.from_result(result)


# -- Page snapshot extraction ---------------------------------------------------


@app.post("/v1/page/extract", response_model=ExtractionResponse, response_model_exclude_none=True)
async def extract_page(body: PageExtractRequest) -> ExtractionResponse:
    if not is_valid_url(body.url):
        raise HTTPException(status_code=400, detail="Invalid URL")
    result = await _page_orchestrator.extract(_to_document(body), enable_ocr=body.enable_ocr)
    return ExtractionResponse.from_result(result)


@app.post("/v1/page/ocr", response_model=OcrResponse, response_model_exclude_none=True)
@limiter.limit("10/minute")
async def page_ocr(request: Request, body: PageOcrRequest) -> OcrResponse:
    if not is_valid_url(body.url):
        raise HTTPException(status_code=400, detail="Invalid URL")
    outcome = await _page_orchestrator.do_ocr(_to_document(body), use_ocr=body.use_ocr)
    return OcrResponse.from_outcome(outcome)


@app.post("/v1/page/ocr/stream")
@limiter.limit("10/minute")
async def page_ocr_stream(request: Request, body: PageOcrRequest) -> EventSourceResponse:
    """OCR with one ``ocrProgress`` event per image, then an ``ocrResult`` event."""
    if not is_valid_url(body.url):
        raise HTTPException(status_code=400, detail="Invalid URL")
    return EventSourceResponse(
        ocr_event_stream(_page_orchestrator, _to_document(body), use_ocr=body.use_ocr)
    )


async def ocr_event_stream(
    orchestrator: PageExtractionOrchestrator,
    document: PageDocument,
    *,
    use_ocr: bool,
) -> AsyncIterator[dict[str, Any]]:
    queue: asyncio.Queue[OcrProgress] = asyncio.Queue()
    task = asyncio.create_task(
        orchestrator.do_ocr(document, use_ocr=use_ocr, progress=BestEffortChannel(queue.put_nowait))
    )
    try:
        while True:
            getter = asyncio.ensure_future(queue.get())
            done, _ = await asyncio.wait({getter, task}, return_when=asyncio.FIRST_COMPLETED)
            if getter in done:
                yield {"event": "ocrProgress", "data": json.dumps(getter.result().to_dict())}
                continue
            getter.cancel()
            break
    finally:
        # Listener went away mid-stream
        if not task.done():
            task.cancel()

    while not queue.empty():
        yield {"event": "ocrProgress", "data": json.dumps(queue.get_nowait().to_dict())}

    payload = OcrResponse.from_outcome(task.result()).model_dump(by_alias=True, exclude_none=True)
    yield {"event": "ocrResult", "data": json.dumps(payload, ensure_ascii=False)}
