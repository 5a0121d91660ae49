"""HTTP server helpers for extracting context and creating server spans."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from tracehook.context.propagators import DEFAULT_HEADER, PropagatedContext, extract
from tracehook.tracer.span import Span
from tracehook.tracer.tracer import Tracer


def extract_remote_parent(
    headers: Mapping[str, str],
    header: str = DEFAULT_HEADER,
) -> Optional[PropagatedContext]:
    """Decode the propagation header, or None when it is absent or malformed."""
    return extract(headers, header)


def start_server_span(
    tracer: Tracer,
    name: str,
    headers: Mapping[str, str],
    attributes: Optional[Mapping[str, Any]] = None,
) -> Span:
    """
    Start a span for an inbound request, parented to the caller's span.

    Returns the span (caller should use 'with' or 'async with'). A missing or
    malformed header yields a root span.
    """
    parent_ctx = extract_remote_parent(headers, tracer.propagation_header)
    return tracer.start_span(name, attributes=attributes, remote_parent=parent_ctx)
