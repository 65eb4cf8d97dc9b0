"""Outbound fetches of client-supplied URLs.

Pages fetched directly and images sent to OCR come from URLs the caller
chose, so every hop (including each redirect) must resolve to a public
address, and bodies are read with a size cap.
"""

from __future__ import annotations

import asyncio
import ipaddress
import logging
import socket
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from urllib.parse import urlparse

import httpx

from brain_service.config import (
    BRAIN_ALLOW_PRIVATE_FETCH,
    BRAIN_FETCH_MAX_REDIRECTS,
    BRAIN_MAX_PAGE_BYTES,
)
from brain_service.extraction.remote.base import RemoteExtractionError

logger = logging.getLogger(__name__)

Resolver = Callable[[str], Awaitable[list[str]]]


class UnsafeUrlError(RemoteExtractionError):
    """The URL points at a host the service must not reach."""


class ResponseTooLarge(RemoteExtractionError):
    """The response body exceeded the configured cap."""


async def system_resolver(host: str) -> list[str]:
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(host, None, type=socket.SOCK_STREAM)
    return [info[4][0] for info in infos]


def is_public_address(addr: ipaddress.IPv4Address | ipaddress.IPv6Address) -> bool:
    if isinstance(addr, ipaddress.IPv6Address) and addr.ipv4_mapped is not None:
        addr = addr.ipv4_mapped
    return addr.is_global and not (addr.is_multicast or addr.is_reserved or addr.is_unspecified)


@dataclass(frozen=True)
class FetchedResource:
    url: str
    status_code: int
    headers: httpx.Headers
    content: bytes
    encoding: str | None = None

    @property
    def text(self) -> str:
        return self.content.decode(self.encoding or "utf-8", errors="replace")


class PublicAddressGuard:
    def __init__(
        self,
        resolver: Resolver | None = None,
        *,
        allow_private: bool = BRAIN_ALLOW_PRIVATE_FETCH,
        max_redirects: int = BRAIN_FETCH_MAX_REDIRECTS,
    ) -> None:
        self._resolve = resolver or system_resolver
        self._allow_private = allow_private
        self._max_redirects = max_redirects

    async def check(self, url: str) -> None:
        """Raise ``UnsafeUrlError`` unless every address of the URL's host is public."""
        parsed = urlparse(url)
        host = parsed.hostname
        if parsed.scheme not in ("http", "https") or not host:
            raise UnsafeUrlError(f"Unsupported URL: {url}")
        if self._allow_private:
            return

        try:
            addresses = [ipaddress.ip_address(host)]
        except ValueError:
            try:
                raw = await self._resolve(host)
            except OSError as e:
                raise UnsafeUrlError(f"Cannot resolve {host}: {e}") from e
            # Strip IPv6 zone ids ("fe80::1%eth0")
            addresses = [ipaddress.ip_address(a.split("%", 1)[0]) for a in raw]

        if not addresses:
            raise UnsafeUrlError(f"Cannot resolve {host}")
        for addr in addresses:
            if not is_public_address(addr):
                logger.warning("Refusing to fetch %s (%s resolves to %s)", url, host, addr)
                raise UnsafeUrlError(f"Host {host} is not a public address")

    async def fetch(
        self,
        http: httpx.AsyncClient,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        max_bytes: int = BRAIN_MAX_PAGE_BYTES,
    ) -> FetchedResource:
        """GET ``url``, following redirects by hand so each hop is checked."""
        for _ in range(self._max_redirects + 1):
            await self.check(url)
            try:
                async with http.stream("GET", url, headers=headers, follow_redirects=False) as resp:
                    if resp.is_redirect:
                        url = str(resp.url.join(resp.headers["location"]))
                        continue
                    content = await _read_capped(resp, max_bytes)
                    return FetchedResource(
                        url=str(resp.url),
                        status_code=resp.status_code,
                        headers=resp.headers,
                        content=content,
                        encoding=resp.charset_encoding,
                    )
            except httpx.HTTPError as e:
                raise RemoteExtractionError(f"Fetch failed: {e}") from e
        raise RemoteExtractionError(f"Too many redirects for {url}")


async def _read_capped(resp: httpx.Response, max_bytes: int) -> bytes:
    declared = resp.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > max_bytes:
        raise ResponseTooLarge(f"Response of {declared} bytes exceeds {max_bytes}")
    chunks: list[bytes] = []
    total = 0
    async for chunk in resp.aiter_bytes():
        total += len(chunk)
        if total > max_bytes:
            raise ResponseTooLarge(f"Response exceeds {max_bytes} bytes")
        chunks.append(chunk)
    return b"".join(chunks)
