"""Cross-process propagation of span identity.

The token is four colon-separated decimal fields::

    trace_id:span_id:parent_span_id:flags

``parent_span_id`` is ``0`` when the span is a root and bit 0 of ``flags``
is the sampling decision. Decoding is lenient: anything malformed yields
the zero context instead of an exception, so one bad inbound header can
never fail the request carrying it.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Mapping, MutableMapping, Optional

from tracehook.tracer.ids import SPAN_ID_BITS, TRACE_ID_BITS, SpanId, TraceId
from tracehook.tracer.record import RemoteParent, SpanRecord

logger = logging.getLogger(__name__)

DEFAULT_HEADER = "uber-trace-id"

_FIELD_COUNT = 4
_SAMPLED_FLAG = 0x1
_DECIMAL = re.compile(r"[0-9]+")
_MAX_TRACE_ID = (1 << TRACE_ID_BITS) - 1
_MAX_SPAN_ID = (1 << SPAN_ID_BITS) - 1


@dataclass(frozen=True)
class PropagatedContext:
    """Decoded token. ``span_id`` is the sender's span."""

    trace_id: TraceId
    span_id: SpanId
    parent_span_id: Optional[SpanId] = None
    sampled: Optional[bool] = None

    def is_valid(self) -> bool:
        return bool(self.trace_id and self.span_id)

    def as_remote_parent(self) -> RemoteParent:
        return RemoteParent(trace_id=self.trace_id, span_id=self.span_id, sampled=self.sampled)


INVALID_CONTEXT = PropagatedContext(trace_id=TraceId(0), span_id=SpanId(0))


def encode(record: SpanRecord) -> str:
    """Format a record's identity and sampling decision as a token."""
    parent = record.parent_span_id or 0
    flags = _SAMPLED_FLAG if record.is_recording else 0
    return f"{record.trace_id}:{record.span_id}:{parent}:{flags}"


def _parse_field(value: str, maximum: int) -> Optional[int]:
    if not _DECIMAL.fullmatch(value):
        return None
    number = int(value)
    if number > maximum:
        return None
    return number


def decode(token: Optional[str]) -> PropagatedContext:
    """
    Parse a token, returning ``INVALID_CONTEXT`` when it is malformed.

    Never raises.
    """
    if not token or not isinstance(token, str):
        return INVALID_CONTEXT

    fields = token.split(":")
    if len(fields) != _FIELD_COUNT:
        logger.debug("Ignoring propagation token with %d fields", len(fields))
        return INVALID_CONTEXT

    trace_id = _parse_field(fields[0], _MAX_TRACE_ID)
    span_id = _parse_field(fields[1], _MAX_SPAN_ID)
    parent_span_id = _parse_field(fields[2], _MAX_SPAN_ID)
    flags = _parse_field(fields[3], _MAX_SPAN_ID)
    if trace_id is None or span_id is None or parent_span_id is None or flags is None:
        logger.debug("Ignoring propagation token with a non-numeric field")
        return INVALID_CONTEXT

    return PropagatedContext(
        trace_id=TraceId(trace_id),
        span_id=SpanId(span_id),
        parent_span_id=SpanId(parent_span_id) if parent_span_id else None,
        sampled=bool(flags & _SAMPLED_FLAG),
    )


def inject(headers: MutableMapping[str, str], record: SpanRecord, header: str = DEFAULT_HEADER) -> None:
    """Set the propagation header for ``record`` on an outbound carrier."""
    headers[header] = encode(record)


def extract_token(headers: Mapping[str, str], header: str = DEFAULT_HEADER) -> Optional[str]:
    """Case-insensitive lookup of the propagation header."""
    wanted = header.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


def extract(headers: Mapping[str, str], header: str = DEFAULT_HEADER) -> Optional[PropagatedContext]:
    """Decode the propagation header, or None when absent or malformed."""
    token = extract_token(headers, header)
    if token is None:
        return None
    context = decode(token)
    if not context.is_valid():
        return None
    return context
