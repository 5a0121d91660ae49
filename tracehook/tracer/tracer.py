"""Minimal in-process instrumentation host.

The tracer hands out span handles and turns span and event activity into
layer callbacks. Any other host that drives ``SpanLayer`` the same way works
equally well.
"""

from __future__ import annotations

import itertools
import threading
import weakref
from typing import Any, Mapping, Optional, Union

from tracehook.context.context import get_current_span
from tracehook.context.propagators import PropagatedContext, decode
from tracehook.processors.event_router import EventDescriptor
from tracehook.tracer.layer import SpanLayer
from tracehook.tracer.record import RemoteParent
from tracehook.tracer.span import Span
from tracehook.tracer.store import Handle

RemoteParentLike = Union[str, PropagatedContext, RemoteParent, None]

_handle_lock = threading.Lock()
_handle_counter = itertools.count(1)


def _next_handle() -> Handle:
    with _handle_lock:
        return next(_handle_counter)


def _as_remote_parent(value: RemoteParentLike) -> Optional[RemoteParent]:
    if value is None:
        return None
    if isinstance(value, RemoteParent):
        return value
    if isinstance(value, str):
        value = decode(value)
    if not value.is_valid():
        return None
    return value.as_remote_parent()


class Tracer:
    """
    Dispatches span lifecycle callbacks to one or more layers.

    The first layer is the primary one: span handles read their identity
    and propagation tokens from it.
    """

    def __init__(self, layer: SpanLayer, *extra_layers: SpanLayer) -> None:
        self.layer = layer
        self._layers = (layer,) + tuple(extra_layers)
        self._spans: "weakref.WeakValueDictionary[Handle, Span]" = weakref.WeakValueDictionary()

    @property
    def propagation_header(self) -> str:
        return self.layer.config.propagation_header

    def start_span(
        self,
        name: str,
        attributes: Optional[Mapping[str, Any]] = None,
        parent: Optional[Union[Span, Handle]] = None,
        remote_parent: RemoteParentLike = None,
    ) -> Span:
        """
        Start a new span.

        Args:
            name: Span name
            attributes: Initial attributes
            parent: Explicit local parent; defaults to the current span
            remote_parent: Parent from another process, as a token or
                decoded context. Takes precedence over local parents.

        Returns:
            Span handle (use ``with`` to make it current)
        """
        handle = _next_handle()
        if isinstance(parent, Span):
            parent = parent.handle

        if parent is not None:
            explicit_parent = parent
            resolver = lambda: explicit_parent
        else:
            resolver = get_current_span

        remote = _as_remote_parent(remote_parent)
        for layer in self._layers:
            layer.on_span_start(handle, name, attributes, resolver, remote)

        span = Span(self, handle, name)
        self._spans[handle] = span
        return span

    def event(
        self,
        name: str,
        fields: Optional[Mapping[str, Any]] = None,
        parent: Optional[Union[Span, Handle]] = None,
        contextual: bool = True,
        level: str = "INFO",
    ) -> bool:
        """
        Emit an event. Returns True if the primary layer kept or emitted it.

        Without an explicit parent, a contextual event belongs to the current
        span and a non-contextual one is dropped.
        """
        if isinstance(parent, Span):
            parent = parent.handle
        descriptor = EventDescriptor(
            name=name,
            fields=dict(fields or {}),
            parent=parent,
            contextual=contextual,
            level=level,
        )
        results = [layer.on_event(descriptor, get_current_span) for layer in self._layers]
        return results[0]

    def current_span(self) -> Optional[Span]:
        handle = get_current_span()
        if handle is None:
            return None
        return self._spans.get(handle)

    # Dispatch helpers used by Span

    def _dispatch_record(self, handle: Handle, fields: Mapping[str, Any]) -> None:
        for layer in self._layers:
            layer.on_span_record(handle, fields)

    def _dispatch_remote_parent(self, handle: Handle, token: Optional[str]) -> bool:
        results = [layer.set_remote_parent(handle, token) for layer in self._layers]
        return results[0]

    def _dispatch_close(self, handle: Handle) -> None:
        for layer in self._layers:
            layer.on_span_close(handle)
        self._spans.pop(handle, None)

    def force_flush(self, timeout: Optional[float] = None) -> None:
        for layer in self._layers:
            layer.force_flush(timeout)

    def shutdown(self) -> None:
        for layer in self._layers:
            layer.shutdown()
