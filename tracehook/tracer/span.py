"""Span handle returned by the tracer."""

from __future__ import annotations

from typing import Any, Mapping, Optional, TYPE_CHECKING

from tracehook.context.context import pop_span, push_span
from tracehook.tracer.store import Handle

if TYPE_CHECKING:
    from tracehook.tracer.record import SpanRecord
    from tracehook.tracer.tracer import Tracer


class Span:
    """
    Host-side handle for one span.

    The handle carries no identity of its own; trace and span ids live in
    the layer's record for ``handle``.
    """

    def __init__(self, tracer: "Tracer", handle: Handle, name: str) -> None:
        self.tracer = tracer
        self.handle = handle
        self.name = name
        self._ended = False
        self._activation_token = None

    @property
    def ended(self) -> bool:
        return self._ended

    def record(self, fields: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> None:
        """Set or overwrite attributes on the span."""
        if self._ended:
            return
        updates = dict(fields or {})
        updates.update(kwargs)
        if updates:
            self.tracer._dispatch_record(self.handle, updates)

    def set_attribute(self, key: str, value: Any) -> None:
        self.record({key: value})

    def record_exception(self, error: BaseException) -> None:
        self.record({
            "exception.type": type(error).__name__,
            "exception.message": str(error),
        })

    def event(self, name: str, fields: Optional[Mapping[str, Any]] = None, level: str = "INFO") -> bool:
        """Emit an event owned by this span regardless of what is current."""
        return self.tracer.event(name, fields, parent=self, level=level)

    def set_parent(self, token: Optional[str]) -> bool:
        """
        Adopt a remote parent from a propagation token.

        Call right after creation, before entering the span or starting
        children under it.
        """
        return self.tracer._dispatch_remote_parent(self.handle, token)

    def propagation_token(self) -> str:
        """Token identifying this span to a downstream process."""
        return self.tracer.layer.propagation_token(self.handle)

    @property
    def is_recording(self) -> bool:
        return self.tracer.layer.is_recording(self.handle)

    def get_record(self) -> Optional["SpanRecord"]:
        """Snapshot of the live record, or None once ended."""
        return self.tracer.layer.get_record(self.handle)

    def end(self) -> None:
        """End the span. Later calls are ignored."""
        if self._ended:
            return
        self._ended = True
        self.tracer._dispatch_close(self.handle)

    # Context manager support
    def __enter__(self) -> "Span":
        self._activation_token = push_span(self.handle)
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        try:
            if exc:
                self.record_exception(exc)
            self.end()
        finally:
            if self._activation_token:
                pop_span(self._activation_token)
                self._activation_token = None
        return False

    async def __aenter__(self) -> "Span":
        return self.__enter__()

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return self.__exit__(exc_type, exc, tb)

    def __repr__(self) -> str:
        return f"Span(name={self.name!r}, handle={self.handle}, ended={self._ended})"
