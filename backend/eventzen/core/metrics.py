"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at the /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Booking metrics
booking_attempts = Counter(
    'eventzen_booking_attempts_total',
    'Total booking attempts',
    ['kind', 'status']  # kind: event, venue; status: success, conflict, not_found, invalid
)

booking_retries = Counter(
    'eventzen_booking_retries_total',
    'Ticket reservation retries due to version conflicts'
)

booking_transitions = Counter(
    'eventzen_booking_transitions_total',
    'Booking status transitions',
    ['to_status']
)

# Payment metrics
payment_intents = Counter(
    'eventzen_payment_intents_total',
    'Payment intents requested from the gateway',
    ['result']  # created, gateway_error, rejected
)

payment_confirmations = Counter(
    'eventzen_payment_confirmations_total',
    'Payment confirmations',
    ['result']  # completed, duplicate, rejected
)

gateway_latency = Histogram(
    'eventzen_payment_gateway_latency_seconds',
    'Payment gateway call latency',
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# Notification metrics
notification_pushes = Counter(
    'eventzen_notification_pushes_total',
    'Live notification pushes',
    ['result']  # delivered, offline, failed
)

# Cache metrics
cache_operations = Counter(
    'eventzen_cache_operations_total',
    'Cache operations',
    ["operation", "result"]  # get: hit/miss, set: stored
)


def metrics_endpoint() -> Response:
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_booking_attempt(kind: str, status: str):
    """Record booking attempt. Status: success, conflict, not_found, invalid"""
    booking_attempts.labels(kind=kind, status=status).inc()


def record_booking_transition(to_status: str):
    booking_transitions.labels(to_status=to_status).inc()


def record_payment_intent(result: str):
    payment_intents.labels(result=result).inc()


def record_payment_confirmation(result: str):
    payment_confirmations.labels(result=result).inc()


def record_notification_push(result: str):
    notification_pushes.labels(result=result).inc()


def record_cache_operation(operation: str, result: str):
    cache_operations.labels(operation=operation, result=result).inc()
