"""Correlation ID utilities for structured logging.

Holds the per-request correlation identifier in a ContextVar so log records
emitted while serving a request (rendering, interaction handling) can carry
the same ``req_id``.
"""

from __future__ import annotations

from contextvars import ContextVar

_request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def set_request_id(request_id: str) -> None:
    """Set the current request correlation id."""
    _request_id_var.set(request_id)


def get_request_id() -> str:
    """Return the current request correlation id, or empty string."""
    return _request_id_var.get()
