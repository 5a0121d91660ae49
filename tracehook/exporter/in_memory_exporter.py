"""Exporter that keeps everything in memory, mostly for tests."""

from __future__ import annotations

import threading
from typing import List

from tracehook.exporter.base import SpanExporter
from tracehook.tracer.record import LogRecord, SpanRecord


class InMemoryExporter(SpanExporter):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._spans: List[SpanRecord] = []
        self._log_records: List[LogRecord] = []
        self._shutdown = False

    def export(self, span: SpanRecord) -> None:
        with self._lock:
            if not self._shutdown:
                self._spans.append(span)

    def export_log_record(self, record: LogRecord) -> None:
        with self._lock:
            if not self._shutdown:
                self._log_records.append(record)

    def get_finished_spans(self) -> List[SpanRecord]:
        with self._lock:
            return list(self._spans)

    def get_log_records(self) -> List[LogRecord]:
        with self._lock:
            return list(self._log_records)

    def clear(self) -> None:
        with self._lock:
            self._spans.clear()
            self._log_records.clear()

    def shutdown(self) -> None:
        with self._lock:
            self._shutdown = True
