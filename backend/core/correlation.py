"""
Request correlation IDs.

Every request carries a short ID that ties together its log lines, its
Sentry events and the error body returned to the dashboard, so an admin
can quote it when reporting a problem.
"""

import uuid
from contextvars import ContextVar

# Request-scoped, empty outside of a request
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")


def generate_correlation_id() -> str:
    """
    Generate a new correlation ID.

    Returns:
        8 lowercase hex characters, e.g. "4f1c09ab".
    """
    return uuid.uuid4().hex[:8]


def get_correlation_id() -> str:
    """Return the correlation ID bound to the current context, or ""."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    """Bind a correlation ID to the current context."""
    correlation_id_var.set(correlation_id)
