"""Prometheus metrics for the custom resource builders."""

from prometheus_client import Counter, Histogram

# Builder lifecycle metrics
BUILDER_OPERATIONS_TOTAL = Counter(
    "resource_builder_operations_total",
    "Total number of builder lifecycle operations",
    ["resource", "operation", "status"],
)

# Kubernetes API metrics
KUBE_API_CALLS = Counter(
    "resource_builder_kube_api_calls_total",
    "Total number of Kubernetes API calls",
    ["resource", "verb", "status"],
)

KUBE_API_DURATION = Histogram(
    "resource_builder_kube_api_duration_seconds",
    "Time spent in Kubernetes API calls",
    ["resource", "verb"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

KUBE_API_RETRIES = Counter(
    "resource_builder_kube_api_retries_total",
    "Total number of Kubernetes API call retries",
    ["verb"],
)

RATE_LIMIT_WAIT_SECONDS = Histogram(
    "resource_builder_rate_limit_wait_seconds",
    "Time spent waiting for rate limit slot",
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

OPERATIONS = ["create", "update", "delete"]
VERBS = ["get", "create", "update", "delete"]
STATUSES = ["success", "error"]


def init_metrics(resources: list[str]) -> None:
    """Initialize all metrics with zero values.

    Prometheus metrics with labels don't appear until used.
    This ensures all metrics are visible immediately at startup.
    """
    for resource in resources:
        for operation in OPERATIONS:
            for status in STATUSES:
                BUILDER_OPERATIONS_TOTAL.labels(
                    resource=resource, operation=operation, status=status
                )
        for verb in VERBS:
            KUBE_API_DURATION.labels(resource=resource, verb=verb)
            for status in STATUSES + ["not_found"]:
                KUBE_API_CALLS.labels(resource=resource, verb=verb, status=status)

    for verb in VERBS:
        KUBE_API_RETRIES.labels(verb=verb)
