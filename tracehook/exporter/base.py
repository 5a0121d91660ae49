"""Exporter interface.

The SDK's responsibility ends at these calls. They run synchronously on the
thread that closed the span or emitted the event, so implementations must
hand work off rather than transmit inline.
"""

from __future__ import annotations

from typing import Optional

from tracehook.tracer.record import LogRecord, SpanRecord


class SpanExporter:
    """Base exporter. Every method is a no-op by default."""

    def export(self, span: SpanRecord) -> None:
        """Receive a closed, sampled span snapshot."""
        pass

    def export_log_record(self, record: LogRecord) -> None:
        """Receive a log record correlated to a span."""
        pass

    def force_flush(self, timeout: Optional[float] = None) -> None:
        pass

    def shutdown(self) -> None:
        pass


def safe_export(call, payload, logger) -> None:
    """Invoke an exporter hook; exporter failures never reach the host."""
    try:
        call(payload)
    except Exception:
        logger.warning("Exporter %r failed on %r", getattr(call, "__qualname__", call), payload, exc_info=True)
