"""Prometheus metrics for the documents API.

Defines operational metrics for monitoring and alerting.
"""

from prometheus_client import Counter, Histogram

http_request_duration_seconds = Histogram(
    "kmf_documents_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "route", "status_code"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

documents_created_total = Counter(
    "kmf_documents_created_total",
    "Total documents created",
    ["document_type", "completion"]  # completion: sync|async
)

validation_failures_total = Counter(
    "kmf_documents_validation_failures_total",
    "Rejected submissions by error category",
    ["error"]  # validation_error|domain_rule_violation|unsupported_media_type
)

access_decisions_total = Counter(
    "kmf_documents_access_decisions_total",
    "Access resolver outcomes",
    ["decision"]  # allow|deny
)

transactions_finished_total = Counter(
    "kmf_documents_transactions_finished_total",
    "Transactions that reached a terminal state",
    ["status"]  # completed|failed
)
