"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Registration metrics
registration_attempts = Counter(
    'registration_attempts_total',
    'Total registration attempts',
    ['outcome']  # created, already_registered, capacity_exceeded, event_not_found
)

registration_latency = Histogram(
    'registration_latency_seconds',
    'Registration request latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

registration_retries = Counter(
    'registration_retry_attempts_total',
    'Registration retries caused by event version conflicts'
)

# Ticket metrics
tickets_issued = Counter(
    'tickets_issued_total',
    'Tickets handed out by the issuer',
    ['result']  # created, existing
)

# Check-in metrics
check_in_attempts = Counter(
    'check_in_attempts_total',
    'Door check-in attempts',
    ['outcome']  # checked_in, already_checked_in, wrong_event, unknown_ticket, malformed_ticket
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)


def metrics_endpoint() -> Response:
    """Render the default registry in the Prometheus text format."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_registration(outcome: str):
    registration_attempts.labels(outcome=outcome).inc()


def record_registration_retry():
    registration_retries.inc()


def record_ticket_issued(created: bool):
    tickets_issued.labels(result="created" if created else "existing").inc()


def record_check_in(outcome: str):
    check_in_attempts.labels(outcome=outcome).inc()


def record_cache_operation(operation: str, hit: bool):
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
