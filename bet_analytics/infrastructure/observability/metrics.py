"""Prometheus metrics for monitoring aggregation throughput, failures and retries"""

from prometheus_client import Counter, Histogram

# Aggregation metrics
settlement_counter = Counter(
    "bet_analytics_settlements_total",
    "Settlements folded into the projections",
    ["financial_status"],
)

projection_failure_counter = Counter(
    "bet_analytics_projection_failures_total",
    "Failed projection sub-updates",
    ["projection"],  # overall | month | provider | market | tournament
)

projection_conflict_counter = Counter(
    "bet_analytics_projection_conflicts_total",
    "Projection saves rejected because the row version moved",
    ["projection"],
)

aggregation_latency_histogram = Histogram(
    "bet_analytics_aggregation_seconds",
    "Time to apply one settlement to every projection",
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)

# Dispatcher metrics
dispatch_retry_counter = Counter(
    "bet_analytics_dispatch_retries_total",
    "Aggregation attempts retried after a failure",
)

dead_letter_counter = Counter(
    "bet_analytics_dead_letters_total",
    "Settlements that exhausted every aggregation attempt",
)


def projection_kind(label: str) -> str:
    """Strip the key part of a projection label ("market:Handicap" -> "market")"""
    return label.split(":", 1)[0]


def record_settlement(financial_status: str) -> None:
    settlement_counter.labels(financial_status=financial_status).inc()


def record_projection_failure(label: str) -> None:
    projection_failure_counter.labels(projection=projection_kind(label)).inc()


def record_projection_conflict(label: str) -> None:
    projection_conflict_counter.labels(projection=projection_kind(label)).inc()
