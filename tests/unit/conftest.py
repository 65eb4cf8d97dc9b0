"""Unit test conftest: no network, no Document AI credentials required."""

from __future__ import annotations

from pathlib import Path

import pytest

from brain_service.extraction.types import ImageCandidate


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the saved page snapshots."""
    return Path(__file__).resolve().parent.parent / "fixtures" / "pages"


class FakeEngine:
    """Recognition engine returning canned text per image URL.

    A value that is an exception instance is raised instead of returned.
    """

    def __init__(self, responses: dict[str, object] | None = None, default: str = "") -> None:
        self.responses = responses or {}
        self.default = default
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def recognize(self, candidate: ImageCandidate) -> str:
        import asyncio

        self.calls.append(candidate.url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            value = self.responses.get(candidate.url, self.default)
            if isinstance(value, Exception):
                raise value
            return str(value)
        finally:
            self.in_flight -= 1


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def make_engine():
    """Return the FakeEngine class for tests that need canned responses."""
    return FakeEngine


async def resolve_public(host: str) -> list[str]:
    """Resolver that maps every hostname to a public address."""
    return ["93.184.216.34"]


@pytest.fixture
def public_guard():
    """Fetch guard whose DNS lookups always land on a public address."""
    from brain_service.extraction.remote.guard import PublicAddressGuard

    return PublicAddressGuard(resolve_public, allow_private=False)
