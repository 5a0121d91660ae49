"""Tracehook SDK error hierarchy and exceptions."""

from __future__ import annotations


class TracehookError(Exception):
    """Base exception for all Tracehook SDK errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ConfigError(TracehookError):
    """Raised when configuration is invalid or conflicting."""
    pass


class IntegrationError(TracehookError):
    """
    Raised when the host breaks the span-lifecycle contract.

    Double creation of a live handle, closing a handle that has no record,
    or patching a missing record all mean the integration is broken. These
    are not per-request errors and the SDK never catches them.
    """
    pass


class EntropyError(TracehookError):
    """Raised when the identifier generator cannot be seeded."""
    pass
