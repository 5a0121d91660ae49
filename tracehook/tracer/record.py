"""Span records and the values routed alongside them."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from tracehook.tracer.ids import SpanId, TraceId


def to_attribute_value(value: Any) -> str:
    """Strings are stored verbatim, everything else by its repr."""
    if isinstance(value, str):
        return value
    return repr(value)


def to_attributes(fields: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    if not fields:
        return {}
    return {str(k): to_attribute_value(v) for k, v in fields.items()}


@dataclass(frozen=True)
class RemoteParent:
    """
    Identity of a parent span that lives in another process.

    Tokens parsed by ``decode`` always carry ``sampled``. It is None only on a
    hand-built parent whose upstream decision is unknown, in which case the
    layer asks its own sampler.
    """

    trace_id: TraceId
    span_id: SpanId
    sampled: Optional[bool] = None

    def is_valid(self) -> bool:
        return bool(self.trace_id and self.span_id)


@dataclass(frozen=True)
class SpanEvent:
    name: str
    timestamp_ns: int
    attributes: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class LogRecord:
    """Standalone record correlated to a span by its ids."""

    name: str
    timestamp_ns: int
    trace_id: TraceId
    span_id: SpanId
    attributes: Dict[str, str] = field(default_factory=dict)
    severity: str = "INFO"


@dataclass
class SpanRecord:
    """
    Identity, timing and attributes of one span.

    ``is_recording`` is fixed when the record is created. ``parent_span_id``
    is a copy of the parent's id, never a reference to the parent record.
    """

    name: str
    trace_id: TraceId
    span_id: SpanId
    parent_span_id: Optional[SpanId]
    is_recording: bool
    start_time_ns: int
    end_time_ns: Optional[int] = None
    attributes: Dict[str, str] = field(default_factory=dict)
    events: List[SpanEvent] = field(default_factory=list)

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "is_recording" and "is_recording" in self.__dict__:
            raise AttributeError("is_recording is fixed when the span is created")
        super().__setattr__(name, value)

    @property
    def duration_ns(self) -> Optional[int]:
        if self.end_time_ns is None:
            return None
        return self.end_time_ns - self.start_time_ns

    def merge_attributes(self, fields: Optional[Mapping[str, Any]]) -> None:
        self.attributes.update(to_attributes(fields))

    def snapshot(self) -> "SpanRecord":
        """Detached copy handed to exporters after close."""
        return copy.deepcopy(self)
