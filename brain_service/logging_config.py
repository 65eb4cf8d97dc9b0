"""Logging setup: plain text locally, structured JSON when deployed.

Every record carries the id of the request being served (``-`` outside a
request), so extraction and OCR lines for one page can be grouped. JSON
output uses python-json-logger and reports the level as ``severity``, the
key Cloud Logging reads.
"""

from __future__ import annotations

import logging
import os
import uuid
from contextvars import ContextVar, Token

from pythonjsonlogger.json import JsonFormatter

_request_id: ContextVar[str] = ContextVar("brain_request_id", default="-")

# Chatty third-party loggers that would drown extraction debug output.
_QUIET_LOGGERS = ("httpx", "httpcore", "sse_starlette.sse")

JSON_FORMAT = "%(message)s %(name)s %(funcName)s %(lineno)d %(request_id)s"
TEXT_FORMAT = "%(asctime)s %(levelname)-8s [%(request_id)s] %(name)s:%(lineno)d  %(message)s"


def generate_request_id() -> str:
    """Generate a unique request ID for trace correlation."""
    return uuid.uuid4().hex[:16]


def bind_request_id(request_id: str) -> Token[str]:
    """Attach ``request_id`` to log records emitted from the current context."""
    return _request_id.set(request_id)


def reset_request_id(token: Token[str]) -> None:
    _request_id.reset(token)


def current_request_id() -> str:
    return _request_id.get()


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = _request_id.get()
        return True


class SeverityJsonFormatter(JsonFormatter):
    """JSON formatter reporting the log level as ``severity``."""

    def add_fields(
        self,
        log_record: dict[str, object],
        record: logging.LogRecord,
        message_dict: dict[str, object],
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["severity"] = record.levelname
        log_record.pop("levelname", None)
        if log_record.get("request_id") == "-":
            log_record.pop("request_id")


def _want_json() -> bool:
    if os.getenv("K_SERVICE"):
        return True
    return (os.getenv("BRAIN_LOG_JSON") or "").strip().lower() in {"1", "true", "yes", "on"}


def setup_logging(*, level: str = "INFO") -> None:
    """Configure root logging; JSON on Cloud Run or with BRAIN_LOG_JSON set."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for h in root.handlers[:]:
        root.removeHandler(h)

    handler = logging.StreamHandler()
    handler.addFilter(RequestIdFilter())
    if _want_json():
        handler.setFormatter(SeverityJsonFormatter(fmt=JSON_FORMAT, rename_fields={"name": "logger"}))
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt="%H:%M:%S"))

    root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(root.level, logging.WARNING))
