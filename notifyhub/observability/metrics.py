"""Prometheus metrics definitions."""

from prometheus_client import Counter, Histogram

# Send metrics
NOTIFICATIONS_SENT = Counter(
    "notifyhub_notifications_sent_total",
    "Total send attempts by outcome",
    ["channel", "status"],
)

VALIDATION_FAILURES = Counter(
    "notifyhub_validation_failures_total",
    "Total notifications rejected by validation",
    ["channel"],
)

PROVIDER_LATENCY = Histogram(
    "notifyhub_provider_latency_seconds",
    "Provider call latency in seconds",
    ["channel", "provider"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

# Retry metrics
RETRY_ATTEMPTS = Counter(
    "notifyhub_retry_attempts_total",
    "Retry decisions taken by retry policies",
    ["outcome"],
)

# Event metrics
EVENTS_PUBLISHED = Counter(
    "notifyhub_events_published_total",
    "Total lifecycle events published",
    ["event_type"],
)

EVENT_LISTENER_ERRORS = Counter(
    "notifyhub_event_listener_errors_total",
    "Total exceptions raised by event listeners",
    ["event_type"],
)
