"""Span processors, samplers and event routing."""

from tracehook.processors.base import SpanProcessor
from tracehook.processors.event_router import EventDescriptor, EventRouter, ExportMode
from tracehook.processors.logging_processor import LoggingSpanProcessor
from tracehook.processors.sampler import (
    DEFAULT_SAMPLER,
    AlwaysOffSampler,
    AlwaysOnSampler,
    RateLimitingSampler,
    Sampler,
    TraceIdRatioSampler,
)

__all__ = [
    "SpanProcessor",
    "EventDescriptor",
    "EventRouter",
    "ExportMode",
    "LoggingSpanProcessor",
    "DEFAULT_SAMPLER",
    "AlwaysOffSampler",
    "AlwaysOnSampler",
    "RateLimitingSampler",
    "Sampler",
    "TraceIdRatioSampler",
]
