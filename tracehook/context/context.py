"""Active span tracking using OpenTelemetry's context API.

The value stored is the host handle of the active span, so it follows the
caller across threads that copy context and across asyncio tasks.
"""

from typing import Optional

from opentelemetry import context as context_api

from tracehook.tracer.store import Handle

_CURRENT_SPAN_KEY = context_api.create_key("tracehook-current-span")


def get_current_span(context: Optional[context_api.Context] = None) -> Optional[Handle]:
    """Return the handle of the currently active span, if any."""
    return context_api.get_value(_CURRENT_SPAN_KEY, context=context)


def push_span(handle: Handle) -> object:
    """
    Make ``handle`` the current span.

    Returns:
        Token needed to restore the previous state
    """
    ctx = context_api.set_value(_CURRENT_SPAN_KEY, handle)
    return context_api.attach(ctx)


def pop_span(token: object) -> None:
    """
    Restore the previous span context using the provided token.

    Args:
        token: Token returned by push_span()
    """
    context_api.detach(token)
