"""Prometheus metrics for inquiry cache efficiency and upstream API health"""

from prometheus_client import Counter, Histogram

# Inquiry metrics
inquiry_counter = Counter(
    "inquiry_requests_total",
    "Subscriber inquiries handled",
    ["outcome"],  # hit | miss | error
)

cache_write_failure_counter = Counter(
    "gateway_cache_write_failures_total",
    "Inquiry results that could not be written to the cache store",
)

# Upstream API metrics
upstream_latency_histogram = Histogram(
    "upstream_request_latency_seconds",
    "Upstream billing API response time per attempt",
    ["endpoint"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

upstream_failure_counter = Counter(
    "upstream_failures_total",
    "Failed upstream attempts",
    ["endpoint", "kind"],  # transport | http | decode | exhausted
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_inquiry(outcome: str) -> None:
    """Record one inquiry outcome for cache hit-rate dashboards"""
    inquiry_counter.labels(outcome=outcome).inc()
