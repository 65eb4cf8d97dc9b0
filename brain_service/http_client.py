"""Process-wide httpx client for outbound calls (reader, platform APIs, images)."""

from __future__ import annotations

import logging

import httpx

from brain_service.config import BRAIN_HTTP_TIMEOUT_SECONDS, BRAIN_HTTP_USER_AGENT

logger = logging.getLogger(__name__)

_client: httpx.AsyncClient | None = None


def build_client(**kwargs: object) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=httpx.Timeout(BRAIN_HTTP_TIMEOUT_SECONDS),
        follow_redirects=True,
        headers={"User-Agent": BRAIN_HTTP_USER_AGENT},
        **kwargs,  # type: ignore[arg-type]
    )


def get_http_client() -> httpx.AsyncClient:
    """Shared client, created on first use."""
    global _client
    if _client is None or _client.is_closed:
        _client = build_client()
        logger.debug("Created shared HTTP client")
    return _client


async def close_http_client() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
