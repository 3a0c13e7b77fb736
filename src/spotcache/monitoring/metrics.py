from __future__ import annotations

import bisect
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple


@dataclass
class Counter:
    name: str
    help: str
    values: Dict[Tuple, float] = field(default_factory=dict)

    def inc(self, value: float = 1.0, **labels: Any) -> None:
        key = tuple(sorted(labels.items()))
        self.values[key] = self.values.get(key, 0.0) + value

    def get(self, **labels: Any) -> float:
        return self.values.get(tuple(sorted(labels.items())), 0.0)


@dataclass
class Histogram:
    name: str
    help: str
    buckets: List[float]
    # One slot per bucket plus a trailing +Inf slot.
    counts: Dict[Tuple, List[int]] = field(default_factory=dict)

    def observe(self, val: float, **labels: Any) -> None:
        key = tuple(sorted(labels.items()))
        slots = self.counts.setdefault(key, [0] * (len(self.buckets) + 1))
        slots[bisect.bisect_left(self.buckets, val)] += 1


# Predefined metrics
cache_lookups_total = Counter("spotcache_cache_lookups_total", "Pipeline cache lookups by result")
token_refresh_total = Counter("spotcache_token_refresh_total", "Token refresh attempts by outcome")
http_responses_total = Counter("spotcache_http_responses_total", "Catalog API responses by status")
request_latency_seconds = Histogram(
    "spotcache_request_latency_seconds",
    "Catalog API request latency",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)
