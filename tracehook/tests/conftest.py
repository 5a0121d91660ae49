"""Shared fixtures for the tracehook test suite."""

import pytest

from tracehook.config import TracingConfig
from tracehook.exporter.in_memory_exporter import InMemoryExporter
from tracehook.processors.event_router import ExportMode
from tracehook.processors.sampler import AlwaysOnSampler
from tracehook.tracer.layer import SpanLayer
from tracehook.tracer.tracer import Tracer


@pytest.fixture
def exporter():
    return InMemoryExporter()


@pytest.fixture
def make_tracer(exporter):
    """Build a tracer over a fresh layer; the shared exporter is the default sink."""

    def _make(sampler=None, export_mode=ExportMode.SPAN_EVENT, sink=None):
        config = TracingConfig(export_mode=export_mode, sampler=sampler or AlwaysOnSampler())
        layer = SpanLayer(config, exporter=sink or exporter)
        return Tracer(layer)

    return _make


@pytest.fixture
def tracer(make_tracer):
    return make_tracer()
