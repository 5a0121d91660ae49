"""Instrumentation helpers for propagating spans over HTTP."""

from tracehook.instrumentation.http_client import inject_headers
from tracehook.instrumentation.http_server import extract_remote_parent, start_server_span

__all__ = [
    "inject_headers",
    "extract_remote_parent",
    "start_server_span",
]
