from .metrics import (
    Counter,
    Histogram,
    cache_lookups_total,
    http_responses_total,
    request_latency_seconds,
    token_refresh_total,
)

__all__ = [
    "Counter",
    "Histogram",
    "cache_lookups_total",
    "http_responses_total",
    "request_latency_seconds",
    "token_refresh_total",
]
