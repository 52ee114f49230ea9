"""Observability module: structured logging, metrics, correlation IDs and health checks."""

from .logging_config import configure_logging, get_logger
from .metrics import (
    access_decisions_total,
    documents_created_total,
    http_request_duration_seconds,
    transactions_finished_total,
    validation_failures_total,
)
from .correlation_id import (
    CORRELATION_ID_HEADER,
    correlation_id_var,
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from .health import HealthStatus, ComponentHealth
from .middleware import CorrelationIDMiddleware

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    # Metrics
    "access_decisions_total",
    "documents_created_total",
    "http_request_duration_seconds",
    "transactions_finished_total",
    "validation_failures_total",
    # Correlation ID
    "CORRELATION_ID_HEADER",
    "correlation_id_var",
    "generate_correlation_id",
    "get_correlation_id",
    "set_correlation_id",
    # Health
    "HealthStatus",
    "ComponentHealth",
    # Middleware
    "CorrelationIDMiddleware",
]
