"""
Prometheus metrics collection and exposition.
Tracks HTTP requests, database-name resolution outcomes, and request latencies.
"""

from prometheus_client import Counter, Histogram, generate_latest, REGISTRY


# HTTP request counter with labels
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
    registry=REGISTRY,
)

# Database-name derivation outcomes.
# source: override, url, database_name, site_name
# result: ok, refused, invalid
database_name_resolutions_total = Counter(
    "database_name_resolutions_total",
    "Total database name resolutions by source and outcome",
    ["source", "result"],
    registry=REGISTRY,
)

# Request latency histogram with buckets
request_latency_histogram = Histogram(
    "request_latency_ms",
    "Request latency in milliseconds",
    ["method", "path"],
    buckets=[1, 5, 10, 50, 100, 250, 500, 1000],
    registry=REGISTRY,
)


def generate_metrics() -> str:
    """
    Generate Prometheus-style metrics in text format.
    
    Returns:
        String in Prometheus exposition format
    """
    return generate_latest(REGISTRY).decode("utf-8")
