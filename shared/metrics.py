"""Prometheus metrics for upstream calls, batch fan-out and webhooks.

Exposed via /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, make_asgi_app

# API counters
api_requests_total = Counter(
    "api_requests_total",
    "Total API requests",
    ["endpoint", "method", "status_code"],
)

# Upstream counters
upstream_errors_total = Counter(
    "upstream_errors_total",
    "Total failed Oura API calls",
    ["collection", "status"],  # status: HTTP status or "network"
)

batch_patients_total = Counter(
    "batch_patients_total",
    "Patients processed by batch summary requests",
    ["outcome"],  # outcome: success, error
)

webhook_events_total = Counter(
    "webhook_events_total",
    "Webhook notifications received",
    ["event_type", "data_type", "result"],
)

# Histograms
upstream_api_duration_seconds = Histogram(
    "upstream_api_duration_seconds",
    "Duration of Oura API calls",
    ["collection"],
)

api_response_duration_seconds = Histogram(
    "api_response_duration_seconds",
    "Duration of API responses",
    ["endpoint"],
)


def create_metrics_app():
    """Create ASGI app for /metrics endpoint."""
    return make_asgi_app()
