"""Shared test fixtures for the brain-extractor test suite."""

from __future__ import annotations

import pytest

from brain_service.extraction.document import PageDocument


@pytest.fixture
def make_document():
    """Build a page snapshot from an HTML fragment."""

    def _make(html: str, url: str = "https://blog.example.com/post/1", **kwargs) -> PageDocument:
        return PageDocument(url=url, html=html, **kwargs)

    return _make
