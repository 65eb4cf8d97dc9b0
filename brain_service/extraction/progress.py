"""Progress notifications to whoever asked for an extraction.

Delivery is best effort with no acknowledgement: the listener (an extension
popup, an SSE stream) may already be gone, and that never affects the work
being reported on.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol

from brain_service.extraction.types import OcrProgress

logger = logging.getLogger(__name__)


class ProgressChannel(Protocol):
    def send(self, event: OcrProgress) -> None:
        ...


class NullChannel:
    def send(self, event: OcrProgress) -> None:
        return None


class BestEffortChannel:
    """Non-blocking send; delivery errors are logged and dropped."""

    def __init__(self, sink: Callable[[OcrProgress], object]) -> None:
        self._sink = sink
        self.dropped = 0

    def send(self, event: OcrProgress) -> None:
        try:
            self._sink(event)
        except Exception as e:
            self.dropped += 1
            logger.debug("Progress %d/%d not delivered: %s", event.current, event.total, e)
