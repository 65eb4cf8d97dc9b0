"""Unit tests for the brain-extract command line entry point."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from brain_service.extraction.types import ExtractionResult, Platform


def _run(argv: list[str]) -> int:
    from brain_service.main import main

    with patch("sys.argv", ["brain-extract", *argv]), patch("brain_service.main.setup_logging"):
        with pytest.raises(SystemExit) as exc:
            main()
    return exc.value.code


class TestCli:
    def test_parser_defaults(self) -> None:
        from brain_service.cli import build_parser

        args = build_parser().parse_args(["https://a.example/"])
        assert args.html is None
        assert args.ocr is False
        assert args.no_readability is False
        assert args.log_level == "WARNING"

    def test_html_snapshot(self, fixtures_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
        code = _run(["https://coastal.example.org/tide-pools", "--html", str(fixtures_dir / "article.html")])
        assert code == 0
        out = json.loads(capsys.readouterr().out)
        assert out["title"] == "Why Tide Pools Matter"
        assert out["platform"] == "article"
        assert "ocrText" not in out

    def test_ocr_needs_html(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run(["https://a.example/", "--ocr"]) == 2
        assert "--ocr needs a page snapshot" in capsys.readouterr().err

    def test_url_mode_uses_service(self, capsys: pytest.CaptureFixture[str]) -> None:
        service = MagicMock()
        service.extract = AsyncMock(
            return_value=ExtractionResult(url="https://a.example/x", title="", author="", content="", platform=Platform.ARTICLE)
        )
        with patch("brain_service.main.UrlExtractionService", return_value=service):
            code = _run(["https://a.example/x", "--no-readability", "--cookie", "k=v"])
        assert code == 2
        service.extract.assert_awaited_once_with(
            "https://a.example/x", platform_cookie="k=v", use_external_readability=False
        )
        assert json.loads(capsys.readouterr().out)["url"] == "https://a.example/x"
