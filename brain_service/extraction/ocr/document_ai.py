from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

import httpx
from google.api_core.client_options import ClientOptions
from google.cloud import documentai_v1 as documentai

from brain_service.extraction.remote.guard import PublicAddressGuard
from brain_service.extraction.types import ImageCandidate


@dataclass(frozen=True)
class DocAIConfig:
    project: str
    location: str
    processor_id: str

    @property
    def processor_name(self) -> str:
        return f"projects/{self.project}/locations/{self.location}/processors/{self.processor_id}"

    @property
    def api_endpoint(self) -> str:
        return f"{self.location}-documentai.googleapis.com"


class DocumentAIClient:
    """Minimal Document AI helper for online OCR of single images."""

    def __init__(self, *, cfg: DocAIConfig) -> None:
        self._cfg = cfg
        self._doc_client = documentai.DocumentProcessorServiceClient(
            client_options=ClientOptions(api_endpoint=cfg.api_endpoint)
        )

    def ocr_online(self, *, content: bytes, mime_type: str) -> tuple[str, dict[str, Any]]:
        req = documentai.ProcessRequest(
            name=self._cfg.processor_name,
            raw_document=documentai.RawDocument(content=content, mime_type=mime_type),
        )
        resp = self._doc_client.process_document(request=req)
        text = resp.document.text or ""
        meta = {
            "provider": "documentai",
            "mode": "online",
            "mime_type": mime_type,
            "pages": len(resp.document.pages) if resp.document.pages else None,
        }
        return text, meta


class DocumentAIRecognizer:
    """Recognition engine: download the image, OCR it with Document AI."""

    def __init__(
        self,
        *,
        docai: DocumentAIClient,
        http: httpx.AsyncClient,
        guard: PublicAddressGuard | None = None,
        max_bytes: int = 8 * 1024 * 1024,
    ) -> None:
        self._docai = docai
        self._http = http
        self._guard = guard or PublicAddressGuard()
        self._max_bytes = max_bytes

    async def recognize(self, candidate: ImageCandidate) -> str:
        resp = await self._guard.fetch(self._http, candidate.url, max_bytes=self._max_bytes)
        if resp.status_code >= 400:
            raise ValueError(f"Image fetch returned {resp.status_code}: {candidate.url}")
        mime = resp.headers.get("content-type", "image/png").split(";")[0].strip().lower()
        if not mime.startswith("image/"):
            raise ValueError(f"Not an image ({mime}): {candidate.url}")
        # The Document AI client is synchronous
        text, _meta = await asyncio.to_thread(self._docai.ocr_online, content=resp.content, mime_type=mime)
        return text.strip()
