"""Prometheus metrics for finance mutations and snapshot persistence"""

from prometheus_client import Counter, Histogram

# Mutation metrics
mutation_counter = Counter(
    "nivi_finance_mutations_total",
    "Finance state mutations applied",
    ["operation"],  # add_income | add_expense | transfer | ...
)

overspend_counter = Counter(
    "nivi_overspent_expenses_total",
    "Expenses that left their subcategory with a negative balance",
)

# Persistence metrics
snapshot_save_latency_histogram = Histogram(
    "nivi_snapshot_save_seconds",
    "Finance snapshot write time",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)

snapshot_save_failures_counter = Counter(
    "nivi_snapshot_save_failures_total",
    "Failed finance snapshot writes",
)

# Identity service metrics
identity_failures_counter = Counter(
    "nivi_identity_failures_total",
    "Failed identity service calls",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_mutation(operation: str, overspent: bool = False) -> None:
    """Record a mutation, and an overspend event when the expense pushed a line negative"""
    mutation_counter.labels(operation=operation).inc()
    if overspent:
        overspend_counter.inc()
