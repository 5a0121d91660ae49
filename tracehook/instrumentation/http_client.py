"""HTTP client helpers for context propagation."""

from __future__ import annotations

from typing import MutableMapping

from tracehook.tracer.tracer import Tracer


def inject_headers(tracer: Tracer, headers: MutableMapping[str, str]) -> MutableMapping[str, str]:
    """
    Set the propagation header from the current span, if a current span exists.

    Returns the same headers mapping for convenience.
    """
    span = tracer.current_span()
    if span is not None and not span.ended:
        headers[tracer.propagation_header] = span.propagation_token()
    return headers
