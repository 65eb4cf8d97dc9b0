"""Unit tests for the security-policy detector and the CSP probe."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from brain_service.extraction.document import PageDocument
from brain_service.extraction.security import ScriptInjectionProbe, SecurityPolicyDetector


def _doc(headers: dict[str, str] | None = None, head: str = "", url: str = "https://blog.example.com/a") -> PageDocument:
    return PageDocument(url=url, html=f"<html><head>{head}</head><body><p>x</p></body></html>", headers=headers)


class TestDomainList:
    @pytest.mark.parametrize(
        "url",
        [
            "https://www.xiaohongshu.com/explore/1",
            "https://www.zhihu.com/question/2",
            "https://book.douban.com/subject/3",
            "https://weibo.com/u/4",
        ],
    )
    def test_restricted_domains(self, url: str) -> None:
        assert SecurityPolicyDetector().is_restricted(url) is True

    def test_unrestricted_without_probe(self) -> None:
        assert SecurityPolicyDetector().is_restricted("https://blog.example.com/a") is False

    def test_custom_domain_list(self) -> None:
        detector = SecurityPolicyDetector(restricted_domains=["Example.COM"])
        assert detector.is_restricted("https://blog.example.com/a") is True
        assert detector.is_restricted("https://www.zhihu.com/") is False

    def test_domain_hit_skips_probe(self) -> None:
        probe = ScriptInjectionProbe(_doc())
        with patch("brain_service.extraction.security._collect_policies") as collect:
            assert SecurityPolicyDetector().is_restricted("https://www.zhihu.com/q", probe) is True
        collect.assert_not_called()


class TestScriptInjectionProbe:
    def test_no_policy_allows(self) -> None:
        assert ScriptInjectionProbe(_doc()).blocked is False

    def test_header_without_data_blocks(self) -> None:
        doc = _doc(headers={"Content-Security-Policy": "script-src 'self' https://cdn.example.com"})
        assert ScriptInjectionProbe(doc).blocked is True

    def test_header_with_data_allows(self) -> None:
        doc = _doc(headers={"content-security-policy": "script-src 'self' data:"})
        assert ScriptInjectionProbe(doc).blocked is False

    def test_default_src_applies_when_script_src_missing(self) -> None:
        doc = _doc(headers={"Content-Security-Policy": "default-src 'self'; img-src *"})
        assert ScriptInjectionProbe(doc).blocked is True

    def test_script_src_elem_takes_precedence(self) -> None:
        doc = _doc(headers={"Content-Security-Policy": "script-src 'self'; script-src-elem 'self' data:"})
        assert ScriptInjectionProbe(doc).blocked is False

    def test_none_source_blocks(self) -> None:
        doc = _doc(headers={"Content-Security-Policy": "script-src 'none' data:"})
        assert ScriptInjectionProbe(doc).blocked is True

    def test_unrelated_directives_allow(self) -> None:
        doc = _doc(headers={"Content-Security-Policy": "img-src 'self'; frame-ancestors 'none'"})
        assert ScriptInjectionProbe(doc).blocked is False

    def test_meta_policy_is_honored(self) -> None:
        meta = '<meta http-equiv="Content-Security-Policy" content="script-src \'self\'">'
        assert ScriptInjectionProbe(_doc(head=meta)).blocked is True

    def test_every_policy_must_allow(self) -> None:
        doc = _doc(headers={"Content-Security-Policy": "script-src data:, default-src 'self'"})
        assert ScriptInjectionProbe(doc).blocked is True

    def test_result_is_memoized(self) -> None:
        probe = ScriptInjectionProbe(_doc())
        with patch("brain_service.extraction.security._collect_policies", return_value=[]) as collect:
            assert probe.blocked is False
            assert probe.blocked is False
        assert collect.call_count == 1

    def test_evaluation_error_means_blocked(self) -> None:
        probe = ScriptInjectionProbe(_doc())
        with patch("brain_service.extraction.security._collect_policies", side_effect=RuntimeError("boom")):
            assert probe.blocked is True

    def test_detector_uses_probe(self) -> None:
        doc = _doc(headers={"Content-Security-Policy": "script-src 'self'"})
        assert SecurityPolicyDetector().is_restricted(doc.url, ScriptInjectionProbe(doc)) is True
