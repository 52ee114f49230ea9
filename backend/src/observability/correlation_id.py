"""Correlation ID management.

The correlation ID identifies one request in logs and doubles as the
correlation ID of the Transaction recorded for a write, so a client can
poll its outcome with the value it sent (or received) in X-Correlation-ID.
"""

import uuid
from contextvars import ContextVar
from typing import Optional

CORRELATION_ID_HEADER = "X-Correlation-ID"

# Context variable for correlation_id (async-safe)
correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


def generate_correlation_id() -> str:
    """Generate a new unique correlation ID (UUID v4)"""
    return str(uuid.uuid4())


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID, or None outside a request"""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: Optional[str]) -> None:
    """Set correlation ID in current context"""
    correlation_id_var.set(correlation_id)
