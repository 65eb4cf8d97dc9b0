"""Pydantic request/response schemas for the extraction API.

Wire names are camelCase (``enableOcr``, ``ocrText``) to match the browser
extension; Python attributes stay snake_case.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from brain_service.extraction.types import ExtractionResult, OcrOutcome


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# -- URL extraction -------------------------------------------------------------


class UrlExtractRequest(_CamelModel):
    url: str | None = Field(None, max_length=8_192, description="Page URL to extract")
    platform_cookie: str | None = Field(
        None, max_length=16_384, description="Login cookie for platform APIs"
    )
    use_external_readability: bool = Field(
        True, description="Use the reader service for generic pages"
    )


# -- Page snapshot extraction ---------------------------------------------------


class ViewportModel(_CamelModel):
    width: int = Field(1280, ge=1, le=20_000)
    height: int = Field(800, ge=1, le=20_000)


class PageSnapshotRequest(_CamelModel):
    url: str = Field(..., min_length=1, max_length=8_192, description="Address of the captured page")
    html: str = Field(..., max_length=8_000_000, description="Serialized document HTML")
    headers: dict[str, str] | None = Field(None, description="Response headers of the page")
    viewport: ViewportModel | None = None


class PageExtractRequest(PageSnapshotRequest):
    enable_ocr: bool = False


class PageOcrRequest(PageSnapshotRequest):
    use_ocr: bool = True


# -- Responses ------------------------------------------------------------------


class ExtractionResponse(_CamelModel):
    url: str
    title: str
    author: str
    content: str
    platform: str
    ocr_text: str | None = None
    need_ocr: bool = False
    enable_ocr: bool = False
    publish_date: str | None = None
    thumbnail: str | None = None

    @classmethod
    def from_result(cls, result: ExtractionResult) -> ExtractionResponse:
        return cls(
            url=result.url,
            title=result.title,
            author=result.author,
            content=result.content,
            platform=result.platform.value,
            ocr_text=result.ocr_text,
            need_ocr=result.need_ocr,
            enable_ocr=result.enable_ocr,
            publish_date=result.publish_date,
            thumbnail=result.thumbnail,
        )


class OcrResponse(_CamelModel):
    ocr_text: str = ""
    error: str | None = None
    csp_blocked: bool | None = None

    @classmethod
    def from_outcome(cls, outcome: OcrOutcome) -> OcrResponse:
        return cls(
            ocr_text=outcome.text,
            error=outcome.error,
            csp_blocked=True if outcome.csp_blocked else None,
        )


# -- Health -------------------------------------------------------------------


class HealthResponse(BaseModel):
    status: str
    error: str | None = None
