"""Prometheus metrics for the ACM Import Operator."""

from prometheus_client import Counter, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "acm_import_operator_reconcile_total",
    "Total number of reconciliations",
    ["kind", "result"],
)

reconcile_duration_seconds = Histogram(
    "acm_import_operator_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    ["kind"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
)

error_total = Counter(
    "acm_import_operator_error_total",
    "Total number of reconciliation errors",
    ["kind", "error_type"],
)

# ACM certificate operation metrics
certificate_operations_total = Counter(
    "acm_import_operator_certificate_operations_total",
    "Total number of ACM certificate operations",
    ["operation", "result"],
)

# Service annotation metrics
annotation_operations_total = Counter(
    "acm_import_operator_annotation_operations_total",
    "Total number of Service annotation operations",
    ["operation", "result"],
)

# API call metrics
api_call_total = Counter(
    "acm_import_operator_api_call_total",
    "Total number of API calls",
    ["api_type", "operation", "result"],
)

api_call_duration_seconds = Histogram(
    "acm_import_operator_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["api_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)

# Retry metrics
reconcile_retries_total = Counter(
    "acm_import_operator_reconcile_retries_total",
    "Total number of reconciles handed back to kopf for another attempt",
    ["reason"],
)
