"""Formatting and clock helpers."""

from __future__ import annotations

import time
from typing import Optional


def format_trace_id(trace_id: int) -> str:
    """
    Format a trace id as a hex string.

    Args:
        trace_id: 128-bit trace id

    Returns:
        32-character hex string
    """
    return format(trace_id, '032x')


def format_span_id(span_id: int) -> str:
    """
    Format a span id as a hex string.

    Args:
        span_id: 64-bit span id

    Returns:
        16-character hex string
    """
    return format(span_id, '016x')


def now_ns() -> int:
    return time.time_ns()


def end_time_ns(start_time_ns: int, now: Optional[int] = None) -> int:
    """Wall clock may step backwards; a span never ends before it starts."""
    current = now_ns() if now is None else now
    return max(current, start_time_ns)
