"""Span processor interface."""

from __future__ import annotations

from typing import Optional

from tracehook.tracer.record import SpanRecord


class SpanProcessor:
    """
    Hooks run by the span layer on every span, sampled or not.

    ``on_end`` receives the finished record after it has left the store.
    """

    def on_start(self, span: SpanRecord) -> None:
        pass

    def on_end(self, span: SpanRecord) -> None:
        pass

    def shutdown(self) -> None:
        """Shutdown the processor."""
        pass

    def force_flush(self, timeout: Optional[float] = None) -> None:
        """Force flush any pending spans."""
        pass
