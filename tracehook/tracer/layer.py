"""Span-lifecycle layer turning host callbacks into span records.

The host calls ``on_span_start``, ``on_span_record``, ``on_event`` and
``on_span_close`` with its own opaque span handles. The layer keeps one
``SpanRecord`` per live handle, assigns trace and span ids, links children
to parents by copying the parent's identity, and applies the sampling
decision once per trace at its root.

The host guarantees at most one callback in flight per handle. Callbacks
for different handles may run concurrently; the store locks one slot at a
time and never across exporter calls.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple

from tracehook.config import TracingConfig
from tracehook.context.propagators import decode, encode
from tracehook.errors import IntegrationError
from tracehook.exporter.base import SpanExporter, safe_export
from tracehook.processors.base import SpanProcessor
from tracehook.processors.event_router import EventDescriptor, EventRouter, ExportMode, default_owner
from tracehook.processors.logging_processor import LoggingSpanProcessor
from tracehook.tracer.ids import SpanId, ThreadLocalIdGenerator, TraceId
from tracehook.tracer.record import RemoteParent, SpanRecord
from tracehook.tracer.store import Handle, SpanStore
from tracehook.utils.helpers import end_time_ns, now_ns

logger = logging.getLogger(__name__)

ParentResolver = Callable[[], Optional[Handle]]


class SpanLayer:
    """
    Host callback adapter owning the live span records.

    Args:
        config: Export mode, sampler and store sizing
        exporter: Receives sampled spans on close and routed log records
        processors: Run on every span; defaults to a logging diagnostic
        id_generator: Source of trace and span ids
    """

    def __init__(
        self,
        config: Optional[TracingConfig] = None,
        exporter: Optional[SpanExporter] = None,
        processors: Optional[Sequence[SpanProcessor]] = None,
        id_generator: Optional[ThreadLocalIdGenerator] = None,
    ) -> None:
        self.config = config or TracingConfig()
        self.sampler = self.config.sampler
        self.exporter = exporter
        self.id_generator = id_generator or ThreadLocalIdGenerator()
        self._processors: List[SpanProcessor] = (
            list(processors) if processors is not None else [LoggingSpanProcessor()]
        )
        self._store = SpanStore(self.config.store_shards)
        self._router = EventRouter(self._store, exporter, self.config.export_mode)

    @property
    def export_mode(self) -> ExportMode:
        return self.config.export_mode

    # Host callbacks

    def on_span_start(
        self,
        handle: Handle,
        name: str,
        initial_fields: Optional[Mapping[str, Any]] = None,
        parent_resolver: Optional[ParentResolver] = None,
        remote_parent: Optional[RemoteParent] = None,
    ) -> None:
        """
        Create the record for a newly started span.

        A valid ``remote_parent`` wins over any local parent. Otherwise the
        resolver names the local parent handle, if any. Only roots consult
        the sampler.
        """
        parent_identity = None
        if remote_parent is not None and remote_parent.is_valid():
            is_recording = remote_parent.sampled
            if is_recording is None:
                is_recording = bool(self.sampler.should_sample(remote_parent.trace_id))
            parent_identity = (remote_parent.trace_id, remote_parent.span_id, is_recording)
        elif parent_resolver is not None:
            parent_handle = parent_resolver()
            if parent_handle is not None:
                parent_identity = self._copy_identity(parent_handle)

        if parent_identity is not None:
            trace_id, parent_span_id, is_recording = parent_identity
        else:
            trace_id = self.id_generator.generate_trace_id()
            parent_span_id = None
            is_recording = bool(self.sampler.should_sample(trace_id))

        record = SpanRecord(
            name=name,
            trace_id=trace_id,
            span_id=self.id_generator.generate_span_id(),
            parent_span_id=parent_span_id,
            is_recording=is_recording,
            start_time_ns=now_ns(),
        )
        record.merge_attributes(initial_fields)
        self._store.insert(handle, record)

        for processor in self._processors:
            try:
                processor.on_start(record)
            except Exception:
                logger.warning("Span processor %r failed on start", processor, exc_info=True)

    def on_span_record(self, handle: Handle, field_updates: Optional[Mapping[str, Any]]) -> None:
        with self._store.locked(handle) as record:
            if record is None:
                return
            record.merge_attributes(field_updates)

    def on_event(self, event: EventDescriptor, current_span_resolver: ParentResolver) -> bool:
        return self._router.route_event(event, lambda e: default_owner(e, current_span_resolver))

    def on_span_close(self, handle: Handle) -> SpanRecord:
        """Finish and remove the record. Returns the finished record."""
        record = self._store.remove(handle)
        if record is None:
            raise IntegrationError("Close for a span handle with no live record", {"handle": handle})
        record.end_time_ns = end_time_ns(record.start_time_ns)

        for processor in self._processors:
            try:
                processor.on_end(record)
            except Exception:
                logger.warning("Span processor %r failed on end", processor, exc_info=True)

        if record.is_recording and self.exporter is not None:
            safe_export(self.exporter.export, record.snapshot(), logger)
        return record

    # Propagation

    def set_remote_parent(self, handle: Handle, serialized_context: Optional[str]) -> bool:
        """
        Re-parent a just-created span under a span from another process.

        Must run before the span is entered or has children. Only the trace
        id and parent span id change; the sampling decision stays. A
        malformed token leaves the span as a root and returns False.
        """
        context = decode(serialized_context)
        with self._store.locked(handle) as record:
            if record is None:
                raise IntegrationError("Remote parent set on a span handle with no live record", {"handle": handle})
            if not context.is_valid():
                logger.debug("Ignoring malformed remote parent for span %r", record.name)
                return False
            record.trace_id = context.trace_id
            record.parent_span_id = context.span_id
        return True

    def propagation_token(self, handle: Handle) -> str:
        with self._store.locked(handle) as record:
            if record is None:
                raise IntegrationError("Propagation requested for a span handle with no live record", {"handle": handle})
            return encode(record)

    # Inspection

    def get_record(self, handle: Handle) -> Optional[SpanRecord]:
        """Detached copy of a live record, or None."""
        with self._store.locked(handle) as record:
            return record.snapshot() if record is not None else None

    def is_recording(self, handle: Handle) -> bool:
        with self._store.locked(handle) as record:
            return record is not None and record.is_recording

    @property
    def active_span_count(self) -> int:
        return len(self._store)

    def force_flush(self, timeout: Optional[float] = None) -> None:
        for processor in self._processors:
            try:
                processor.force_flush(timeout)
            except Exception:
                logger.warning("Span processor %r failed on flush", processor, exc_info=True)
        if self.exporter is not None:
            safe_export(self.exporter.force_flush, timeout, logger)

    def shutdown(self) -> None:
        for processor in self._processors:
            try:
                processor.shutdown()
            except Exception:
                logger.warning("Span processor %r failed on shutdown", processor, exc_info=True)
        if self.exporter is not None:
            try:
                self.exporter.shutdown()
            except Exception:
                logger.warning("Exporter %r failed on shutdown", self.exporter, exc_info=True)

    def _copy_identity(self, parent_handle: Handle) -> Optional[Tuple[TraceId, SpanId, bool]]:
        with self._store.locked(parent_handle) as parent:
            if parent is None:
                return None
            return TraceId(parent.trace_id), SpanId(parent.span_id), parent.is_recording
