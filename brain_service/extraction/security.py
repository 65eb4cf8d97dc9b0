from __future__ import annotations

import logging
from collections.abc import Iterable
from functools import cached_property

from brain_service.config import BRAIN_CSP_RESTRICTED_DOMAINS
from brain_service.extraction.document import PageDocument

logger = logging.getLogger(__name__)

CSP_BLOCKED_MESSAGE = "当前平台安全策略限制，无法使用 OCR 功能"

# Checked in order; the first directive present decides.
_SCRIPT_DIRECTIVES = ("script-src-elem", "script-src", "default-src")


def _collect_policies(document: PageDocument) -> list[str]:
    raw: list[str] = []
    header = document.headers.get("content-security-policy")
    if header:
        # Several policies may be folded into one header with commas
        raw.extend(header.split(","))
    for meta in document.soup.select("meta[http-equiv]"):
        equiv = meta.get("http-equiv")
        if isinstance(equiv, str) and equiv.strip().lower() == "content-security-policy":
            content = meta.get("content")
            if isinstance(content, str):
                raw.append(content)
    return [p for p in raw if p.strip()]


def _parse_directives(policy: str) -> dict[str, list[str]]:
    out: dict[str, list[str]] = {}
    for part in policy.split(";"):
        tokens = part.split()
        if not tokens:
            continue
        # Repeated directives are ignored after the first one
        out.setdefault(tokens[0].lower(), [t.lower() for t in tokens[1:]])
    return out


def _allows_source(directives: dict[str, list[str]], scheme: str) -> bool:
    for name in _SCRIPT_DIRECTIVES:
        if name in directives:
            sources = directives[name]
            if not sources or "'none'" in sources:
                return False
            return scheme in sources
    return True


class ScriptInjectionProbe:
    """Would this page accept an injected script reference?

    Evaluated once, on first access of ``blocked``, against the page's
    content-security-policies. One probe belongs to one page snapshot.
    """

    PROBE_SOURCE = "data:text/javascript,void(0)"

    def __init__(self, document: PageDocument) -> None:
        self._document = document

    @cached_property
    def blocked(self) -> bool:
        try:
            policies = _collect_policies(self._document)
            scheme = self.PROBE_SOURCE.split(":", 1)[0] + ":"
            return not all(_allows_source(_parse_directives(p), scheme) for p in policies)
        except Exception:
            logger.debug("CSP probe failed for %s; treating as blocked", self._document.url, exc_info=True)
            return True


class SecurityPolicyDetector:
    def __init__(self, restricted_domains: Iterable[str] = BRAIN_CSP_RESTRICTED_DOMAINS) -> None:
        self._domains = tuple(d.lower() for d in restricted_domains if d)

    def restricted_by_domain(self, url: str) -> bool:
        lowered = (url or "").lower()
        return any(d in lowered for d in self._domains)

    def is_restricted(self, url: str, probe: ScriptInjectionProbe | None = None) -> bool:
        if self.restricted_by_domain(url):
            return True
        return bool(probe is not None and probe.blocked)
