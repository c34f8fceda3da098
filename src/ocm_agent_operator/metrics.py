"""Prometheus metrics for the OCM Agent Operator."""

from prometheus_client import Counter, Gauge, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "ocm_agent_operator_reconcile_total",
    "Total number of reconciliations",
    ["kind", "result"],
)

reconcile_duration_seconds = Histogram(
    "ocm_agent_operator_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    ["kind"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# Managed resource write metrics
resource_operations_total = Counter(
    "ocm_agent_operator_resource_operations_total",
    "Total number of create, update and delete calls on managed resources",
    ["kind", "operation", "result"],
)

conflict_retries_total = Counter(
    "ocm_agent_operator_conflict_retries_total",
    "Total number of fetch-compare-write retries caused by write conflicts",
    ["kind"],
)

error_total = Counter(
    "ocm_agent_operator_error_total",
    "Total number of reconcile errors",
    ["kind", "error_type"],
)

# 1 while the reconciled OcmAgent cannot be found, 0 otherwise
resource_absent = Gauge(
    "ocm_agent_operator_resource_absent",
    "Whether the OcmAgent resource was absent on the last reconcile",
)

# API call metrics
api_call_total = Counter(
    "ocm_agent_operator_api_call_total",
    "Total number of API calls",
    ["api_type", "operation", "result"],
)

api_call_duration_seconds = Histogram(
    "ocm_agent_operator_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["api_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)

rate_limit_hits_total = Counter(
    "ocm_agent_operator_rate_limit_hits_total",
    "Total number of calls delayed by the client-side rate limiter",
    ["api_type"],
)
