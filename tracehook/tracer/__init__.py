"""Span identity, records and the live-record store."""

from tracehook.tracer.ids import SpanId, ThreadLocalIdGenerator, TraceId
from tracehook.tracer.record import LogRecord, RemoteParent, SpanEvent, SpanRecord
from tracehook.tracer.store import Handle, SpanStore

__all__ = [
    "SpanId",
    "TraceId",
    "ThreadLocalIdGenerator",
    "LogRecord",
    "RemoteParent",
    "SpanEvent",
    "SpanRecord",
    "Handle",
    "SpanStore",
]
