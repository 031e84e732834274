"""Prometheus metrics for the weather lookup pipeline."""

from prometheus_client import Counter

CACHE_LOOKUPS = Counter(
    "weather_cache_lookups_total",
    "Weather cache lookups by result",
    ["result"],
)
UPSTREAM_REQUESTS = Counter(
    "weather_upstream_requests_total",
    "Requests sent to the weather provider by outcome",
    ["outcome"],
)
