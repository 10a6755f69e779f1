"""In-process request, cache and upstream telemetry.

Components (HTTP middleware, cache, remote client) record lightweight events
here without embedding any aggregation logic themselves. Nothing is exported
to an external backend; the snapshot is served by ``GET /api/metrics``.

Collected domains:
        * Cache performance (hits, misses, hit rate)
        * Upstream calls per endpoint family (children / items) and failures
        * Endpoint latency & error rates (rolling sample window + aggregates)

Thread safety is provided by a shared re-entrant lock (`RLock`); summary
outputs are primitive-only dictionaries ready for JSON encoding.

Example::

        from gamepass_proxy.monitoring import get_monitor
        monitor = get_monitor()
        monitor.record_endpoint_request("GET /api/gamepasses", response_time=0.12)
        monitor.get_performance_summary()["api"]["total_requests"]  # -> 1
"""

from __future__ import annotations

import threading
from collections import defaultdict, deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass
class CacheMetrics:
    """Aggregate cache lookup counters.

    Attributes:
        hits: Lookups answered from a fresh entry.
        misses: Lookups that required an upstream fetch (absent, expired or forced).
        hit_rate: hits / (hits + misses), 0..1.
    """

    hits: int = 0
    misses: int = 0
    hit_rate: float = 0.0

    @property
    def total_requests(self) -> int:
        return self.hits + self.misses


@dataclass
class UpstreamMetrics:
    calls: int = 0
    failures: int = 0
    last_error: Optional[str] = None


@dataclass
class EndpointMetrics:
    """Aggregated metrics for a single route.

    Attributes:
        total_requests: Count of invocations.
        total_response_time: Cumulative latency (seconds).
        average_response_time: Mean latency (seconds).
        error_count: Requests answered with HTTP >= 400.
        error_rate: error_count / total_requests (0..1).
        last_accessed: Datetime of the most recent invocation.
        response_times: Rolling window of recent latencies.
    """

    total_requests: int = 0
    total_response_time: float = 0.0
    average_response_time: float = 0.0
    error_count: int = 0
    error_rate: float = 0.0
    last_accessed: Optional[datetime] = None
    response_times: deque = field(default_factory=lambda: deque(maxlen=100))


class PerformanceMonitor:
    """Central coordinator for recording and querying metrics.

    Intended to be shared as a singleton within a process via
    :func:`get_monitor`.
    """

    def __init__(self) -> None:
        self.start_time = datetime.now()
        self._lock = threading.RLock()
        self.cache_metrics = CacheMetrics()
        self.upstream_metrics: Dict[str, UpstreamMetrics] = defaultdict(
            UpstreamMetrics
        )
        self.endpoint_metrics: Dict[str, EndpointMetrics] = defaultdict(EndpointMetrics)
        self.recent_errors: deque = deque(maxlen=100)

    def record_cache_hit(self) -> None:
        with self._lock:
            self.cache_metrics.hits += 1
            self._update_hit_rate()

    def record_cache_miss(self) -> None:
        with self._lock:
            self.cache_metrics.misses += 1
            self._update_hit_rate()

    def _update_hit_rate(self) -> None:
        total = self.cache_metrics.total_requests
        if total > 0:
            self.cache_metrics.hit_rate = self.cache_metrics.hits / total

    def record_upstream_call(self, family: str, error: Optional[str] = None) -> None:
        """Record one outbound call.

        Args:
            family: Logical upstream endpoint ("children" or "items").
            error: Failure message when the call did not produce JSON.
        """
        with self._lock:
            metrics = self.upstream_metrics[family]
            metrics.calls += 1
            if error is not None:
                metrics.failures += 1
                metrics.last_error = error

    def record_endpoint_request(
        self, endpoint: str, response_time: float, status_code: int = 200
    ) -> None:
        """Record an API endpoint invocation.

        Args:
            endpoint: Logical endpoint name or path.
            response_time: Time in seconds for handling the request.
            status_code: HTTP status used to compute error rate (>=400 counts as error).
        """
        with self._lock:
            metrics = self.endpoint_metrics[endpoint]
            metrics.total_requests += 1
            metrics.total_response_time += response_time
            metrics.average_response_time = (
                metrics.total_response_time / metrics.total_requests
            )
            metrics.last_accessed = datetime.now()
            metrics.response_times.append(response_time)

            if status_code >= 400:
                metrics.error_count += 1
                self.recent_errors.append(
                    {
                        "endpoint": endpoint,
                        "status_code": status_code,
                        "timestamp": datetime.now().isoformat(),
                    }
                )
            metrics.error_rate = metrics.error_count / metrics.total_requests

    def get_performance_summary(self) -> Dict[str, Any]:
        """Return a consolidated snapshot of every recorded domain."""
        with self._lock:
            total_requests = sum(
                m.total_requests for m in self.endpoint_metrics.values()
            )
            return {
                "timestamp": datetime.now().isoformat(),
                "uptime_seconds": round(
                    (datetime.now() - self.start_time).total_seconds(), 2
                ),
                "cache": {
                    "hits": self.cache_metrics.hits,
                    "misses": self.cache_metrics.misses,
                    "total_requests": self.cache_metrics.total_requests,
                    "hit_rate_percent": round(self.cache_metrics.hit_rate * 100, 2),
                },
                "upstream": {
                    family: {
                        "calls": metrics.calls,
                        "failures": metrics.failures,
                        "last_error": metrics.last_error,
                    }
                    for family, metrics in self.upstream_metrics.items()
                },
                "api": {
                    "total_requests": total_requests,
                    "endpoints": [
                        {
                            "endpoint": endpoint,
                            "requests": metrics.total_requests,
                            "avg_response_time_ms": round(
                                metrics.average_response_time * 1000, 2
                            ),
                            "error_rate": round(metrics.error_rate * 100, 2),
                            "recent_max_response_time_ms": round(
                                max(metrics.response_times, default=0.0) * 1000, 2
                            ),
                            "last_accessed": (
                                metrics.last_accessed.isoformat()
                                if metrics.last_accessed
                                else None
                            ),
                        }
                        for endpoint, metrics in sorted(
                            self.endpoint_metrics.items(),
                            key=lambda x: x[1].total_requests,
                            reverse=True,
                        )
                    ],
                },
                "errors": {"total_recent_errors": len(self.recent_errors)},
            }

    def reset_metrics(self) -> None:
        """Reset all counters (primarily for tests)."""
        with self._lock:
            self.cache_metrics = CacheMetrics()
            self.upstream_metrics.clear()
            self.endpoint_metrics.clear()
            self.recent_errors.clear()
            self.start_time = datetime.now()


# Global performance monitor instance
_monitor: Optional[PerformanceMonitor] = None


def get_monitor() -> PerformanceMonitor:
    """Return (and lazily initialize) the process-wide monitor singleton."""
    global _monitor
    if _monitor is None:
        _monitor = PerformanceMonitor()
    return _monitor
