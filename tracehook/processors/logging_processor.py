"""Span processor that logs spans when they end."""

from __future__ import annotations

import logging
from typing import Optional

from tracehook.processors.base import SpanProcessor
from tracehook.tracer.record import SpanRecord
from tracehook.utils.helpers import format_span_id, format_trace_id


class LoggingSpanProcessor(SpanProcessor):
    """Logs a one-line span summary on end using the standard logging module."""

    def __init__(self, logger: Optional[logging.Logger] = None, level: int = logging.INFO) -> None:
        self.logger = logger or logging.getLogger("tracehook.spans")
        self.level = level

    def on_end(self, span: SpanRecord) -> None:
        if not self.logger.isEnabledFor(self.level):
            return
        parent = format_span_id(span.parent_span_id) if span.parent_span_id else "-"
        msg = (
            f"[span] name={span.name} trace_id={format_trace_id(span.trace_id)} "
            f"span_id={format_span_id(span.span_id)} parent_span_id={parent} "
            f"duration_ns={span.duration_ns} sampled={span.is_recording} "
            f"attrs={span.attributes}"
        )
        self.logger.log(self.level, msg)
