"""Utility functions for Tracehook SDK."""

from tracehook.utils.helpers import (
    end_time_ns,
    format_span_id,
    format_trace_id,
    now_ns,
)

__all__ = [
    "end_time_ns",
    "format_span_id",
    "format_trace_id",
    "now_ns",
]
