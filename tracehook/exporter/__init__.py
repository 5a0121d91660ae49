"""Exporters receiving finished spans and routed log records."""

from tracehook.exporter.base import SpanExporter
from tracehook.exporter.console_exporter import ConsoleExporter
from tracehook.exporter.in_memory_exporter import InMemoryExporter

__all__ = ["SpanExporter", "ConsoleExporter", "InMemoryExporter"]
