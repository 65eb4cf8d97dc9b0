"""Environment-variable-driven configuration for the extraction service.

Heuristic thresholds live in ``brain_service.extraction.settings``; this module
holds service-level knobs (HTTP, CORS, reader service, logging).
"""

from __future__ import annotations

import os


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_csv(name: str, default: str) -> list[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


# -- Reader (external readability service) ------------------------------------
BRAIN_READER_BASE_URL: str = os.getenv("BRAIN_READER_BASE_URL", "https://r.jina.ai")
JINA_API_KEY: str | None = os.getenv("JINA_API_KEY")

# -- Outbound HTTP ------------------------------------------------------------
BRAIN_HTTP_TIMEOUT_SECONDS: float = float(os.getenv("BRAIN_HTTP_TIMEOUT_SECONDS", "20"))
BRAIN_HTTP_USER_AGENT: str = os.getenv(
    "BRAIN_HTTP_USER_AGENT",
    "Mozilla/5.0 (compatible; brain-extractor/0.1; +https://localhost)",
)

# -- Security policy ----------------------------------------------------------
BRAIN_CSP_RESTRICTED_DOMAINS: list[str] = _env_csv(
    "BRAIN_CSP_RESTRICTED_DOMAINS",
    "xiaohongshu.com,zhihu.com,douban.com,weibo.com",
)

# -- Outbound fetch safety ----------------------------------------------------
# Client-supplied page and image URLs must resolve to public addresses unless enabled
BRAIN_ALLOW_PRIVATE_FETCH: bool = _env_bool("BRAIN_ALLOW_PRIVATE_FETCH", False)
BRAIN_MAX_PAGE_BYTES: int = int(os.getenv("BRAIN_MAX_PAGE_BYTES", str(10 * 1024 * 1024)))
BRAIN_FETCH_MAX_REDIRECTS: int = int(os.getenv("BRAIN_FETCH_MAX_REDIRECTS", "5"))

# -- CORS ---------------------------------------------------------------------
BRAIN_CORS_ALLOW_ORIGINS: list[str] = _env_csv(
    "BRAIN_CORS_ALLOW_ORIGINS",
    "http://localhost:3000",
)
BRAIN_CORS_ALLOW_ORIGIN_REGEX: str | None = os.getenv(
    "BRAIN_CORS_ALLOW_ORIGIN_REGEX", r"chrome-extension://.*"
)
BRAIN_CORS_ALLOW_METHODS: list[str] = _env_csv(
    "BRAIN_CORS_ALLOW_METHODS",
    "GET,POST,OPTIONS",
)
BRAIN_CORS_ALLOW_HEADERS: list[str] = _env_csv(
    "BRAIN_CORS_ALLOW_HEADERS",
    "Content-Type,X-Request-Id",
)
BRAIN_CORS_ALLOW_CREDENTIALS: bool = _env_bool("BRAIN_CORS_ALLOW_CREDENTIALS", False)

# -- Logging ------------------------------------------------------------------
BRAIN_LOG_LEVEL: str = os.getenv("BRAIN_LOG_LEVEL", "INFO")
