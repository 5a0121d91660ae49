"""Console exporter for developer visibility."""

from __future__ import annotations

import sys

from tracehook.exporter.base import SpanExporter
from tracehook.tracer.record import LogRecord, SpanRecord
from tracehook.utils.helpers import format_span_id, format_trace_id


class ConsoleExporter(SpanExporter):
    """Simple exporter that prints spans to stdout (or provided stream)."""

    def __init__(self, stream=None) -> None:
        self.stream = stream or sys.stdout

    def export(self, span: SpanRecord) -> None:
        parent = format_span_id(span.parent_span_id) if span.parent_span_id else "-"
        line = (
            f"[span] name={span.name} trace_id={format_trace_id(span.trace_id)} "
            f"span_id={format_span_id(span.span_id)} parent_span_id={parent} "
            f"duration_ns={span.duration_ns}"
        )
        if span.attributes:
            line += f" attrs={span.attributes}"
        for event in span.events:
            line += f"\n  [event] name={event.name} ts={event.timestamp_ns} attrs={event.attributes}"
        print(line, file=self.stream)

    def export_log_record(self, record: LogRecord) -> None:
        line = (
            f"[log] {record.severity} name={record.name} "
            f"trace_id={format_trace_id(record.trace_id)} "
            f"span_id={format_span_id(record.span_id)}"
        )
        if record.attributes:
            line += f" attrs={record.attributes}"
        print(line, file=self.stream)

    def force_flush(self, timeout=None) -> None:
        self.stream.flush()
