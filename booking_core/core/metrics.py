"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Reservation metrics
reservation_attempts = Counter(
    'reservation_attempts_total',
    'Total reservation attempts',
    ['outcome']  # success, duplicate, capacity_exceeded, event_not_found, ...
)

reservation_latency = Histogram(
    'reservation_latency_seconds',
    'Reservation latency, cache lookup included',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)

unique_violation_races = Counter(
    'reservation_unique_violation_races_total',
    'Inserts rejected by the (event_id, user_id) constraint after passing the in-transaction check'
)

# Dedup cache metrics
cache_operations = Counter(
    'dedup_cache_operations_total',
    'Dedup cache operations',
    ['operation', 'result']  # get/set, hit/miss/ok/error/timeout
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_reservation(outcome: str, duration: float):
    """Record one reservation attempt and how long it took."""
    reservation_attempts.labels(outcome=outcome).inc()
    reservation_latency.observe(duration)


def record_cache_operation(operation: str, result: str):
    cache_operations.labels(operation=operation, result=result).inc()
