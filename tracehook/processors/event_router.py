"""Routing of host events to span events or standalone log records."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional

from tracehook.exporter.base import SpanExporter, safe_export
from tracehook.tracer.record import LogRecord, SpanEvent, to_attributes
from tracehook.tracer.store import Handle, SpanStore
from tracehook.utils.helpers import now_ns

logger = logging.getLogger(__name__)


class ExportMode(Enum):
    SPAN_EVENT = "span_event"
    LOG_RECORD = "log_record"


@dataclass(frozen=True)
class EventDescriptor:
    """
    What the host knows about an event when it fires.

    ``parent`` is an explicit owning span handle. ``contextual`` events with
    no explicit parent belong to whichever span is current.
    """

    name: str
    fields: Dict[str, Any] = field(default_factory=dict)
    parent: Optional[Handle] = None
    contextual: bool = True
    level: str = "INFO"


OwnerResolver = Callable[[EventDescriptor], Optional[Handle]]


def default_owner(event: EventDescriptor, current: Callable[[], Optional[Handle]]) -> Optional[Handle]:
    if event.parent is not None:
        return event.parent
    if event.contextual:
        return current()
    return None


class EventRouter:
    """
    Sends each event to the owning span's record or to the exporter.

    Span events are only kept for sampled spans. Log records are emitted for
    every resolvable span, sampled or not.
    """

    def __init__(self, store: SpanStore, exporter: Optional[SpanExporter], mode: ExportMode) -> None:
        self._store = store
        self._exporter = exporter
        self.mode = mode

    def route_event(self, event: EventDescriptor, owning_span_resolver: OwnerResolver) -> bool:
        """Returns True when the event was attached or emitted."""
        handle = owning_span_resolver(event)
        if handle is None:
            logger.debug("Dropping event %r with no owning span", event.name)
            return False

        timestamp = now_ns()
        attributes = to_attributes(event.fields)

        with self._store.locked(handle) as record:
            if record is None:
                logger.debug("Dropping event %r for closed span handle %s", event.name, handle)
                return False
            if self.mode is ExportMode.SPAN_EVENT:
                if not record.is_recording:
                    return False
                record.events.append(SpanEvent(name=event.name, timestamp_ns=timestamp, attributes=attributes))
                return True
            log_record = LogRecord(
                name=event.name,
                timestamp_ns=timestamp,
                trace_id=record.trace_id,
                span_id=record.span_id,
                attributes=attributes,
                severity=event.level,
            )

        # Exporter runs outside the slot lock.
        if self._exporter is not None:
            safe_export(self._exporter.export_log_record, log_record, logger)
        return True
