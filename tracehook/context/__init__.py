"""Context utilities for the tracing SDK."""

from tracehook.context.context import get_current_span, pop_span, push_span
from tracehook.context.propagators import (
    DEFAULT_HEADER,
    INVALID_CONTEXT,
    PropagatedContext,
    decode,
    encode,
    extract,
    extract_token,
    inject,
)

__all__ = [
    "get_current_span",
    "push_span",
    "pop_span",
    "DEFAULT_HEADER",
    "INVALID_CONTEXT",
    "PropagatedContext",
    "decode",
    "encode",
    "extract",
    "extract_token",
    "inject",
]
