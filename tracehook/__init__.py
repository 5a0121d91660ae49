"""Tracehook: a minimal distributed-tracing SDK built around span-lifecycle callbacks."""

from __future__ import annotations

import logging
import threading
from typing import Optional

from tracehook.config import TracingConfig, load_config
from tracehook.context.propagators import DEFAULT_HEADER, PropagatedContext, decode, encode
from tracehook.errors import ConfigError, EntropyError, IntegrationError, TracehookError
from tracehook.exporter import ConsoleExporter, InMemoryExporter, SpanExporter
from tracehook.processors import (
    AlwaysOffSampler,
    AlwaysOnSampler,
    EventDescriptor,
    ExportMode,
    RateLimitingSampler,
    Sampler,
    TraceIdRatioSampler,
)
from tracehook.tracer.layer import SpanLayer
from tracehook.tracer.record import LogRecord, RemoteParent, SpanEvent, SpanRecord
from tracehook.tracer.span import Span
from tracehook.tracer.tracer import Tracer

__version__ = "0.1.0"

logger = logging.getLogger(__name__)

_global_tracer: Optional[Tracer] = None
_global_config: Optional[TracingConfig] = None
_init_lock = threading.Lock()


def init(
    config: Optional[TracingConfig] = None,
    exporter: Optional[SpanExporter] = None,
) -> Tracer:
    """
    Build the process-wide tracer.

    Configuration is read with ``load_config()`` when not given. Calling
    ``init()`` again returns the existing tracer; a different configuration
    on a repeat call is ignored with a warning.
    """
    global _global_tracer, _global_config
    with _init_lock:
        if _global_tracer is not None:
            if config is not None and config != _global_config:
                logger.warning("tracehook.init() already called; ignoring new configuration")
            return _global_tracer
        _global_config = config or load_config()
        _global_tracer = Tracer(SpanLayer(_global_config, exporter=exporter))
        return _global_tracer


def get_tracer() -> Tracer:
    """Return the process-wide tracer, initializing it with defaults if needed."""
    tracer = _global_tracer
    if tracer is None:
        tracer = init()
    return tracer


def shutdown() -> None:
    """Flush and shut down the process-wide tracer so init() can run again."""
    global _global_tracer, _global_config
    with _init_lock:
        tracer = _global_tracer
        _global_tracer = None
        _global_config = None
    if tracer is not None:
        tracer.force_flush()
        tracer.shutdown()


__all__ = [
    "__version__",
    "init",
    "get_tracer",
    "shutdown",
    "Tracer",
    "Span",
    "SpanLayer",
    "TracingConfig",
    "load_config",
    "ExportMode",
    "EventDescriptor",
    "Sampler",
    "AlwaysOnSampler",
    "AlwaysOffSampler",
    "TraceIdRatioSampler",
    "RateLimitingSampler",
    "SpanExporter",
    "ConsoleExporter",
    "InMemoryExporter",
    "SpanRecord",
    "SpanEvent",
    "LogRecord",
    "RemoteParent",
    "PropagatedContext",
    "DEFAULT_HEADER",
    "encode",
    "decode",
    "TracehookError",
    "ConfigError",
    "IntegrationError",
    "EntropyError",
]
