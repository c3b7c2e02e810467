# ==== PERFORMANCE METRICS RECORDER ==== #

"""
Rolling performance metrics for the analysis endpoint.

Keeps life-of-process counters plus a bounded window of recent latencies;
rates and averages are derived on read so they never drift from the counters.
"""

from collections import deque
from datetime import datetime, timezone
from typing import Any, Deque, Dict

from subject_analyzer.schemas.analysis import HealthStatus


# Health thresholds: error rate in percent, latency in milliseconds
DEGRADED_ERROR_RATE = 5.0
DEGRADED_LATENCY_MS = 3000.0
CRITICAL_ERROR_RATE = 10.0
CRITICAL_LATENCY_MS = 5000.0
THROTTLE_LATENCY_MS = 2000.0


class PerformanceRecorder:
    """Request counters and a moving latency average."""

    def __init__(self, window_size: int = 1000):
        if window_size < 1:
            raise ValueError("window_size must be at least 1")
        self.window_size = window_size
        self.reset()

    def reset(self) -> None:
        """Zero every counter; the operator-triggered reset."""
        self._latencies: Deque[float] = deque(maxlen=self.window_size)
        self._request_count = 0
        self._error_count = 0
        self._cache_hits = 0
        self._cache_misses = 0
        self._last_reset = datetime.now(timezone.utc)

    def record(self, latency_ms: float, from_cache: bool = False, is_error: bool = False) -> None:
        """Record one completed request.

        Args:
            latency_ms: Wall time spent on the request in milliseconds
            from_cache: Whether the response came from the cache
            is_error: Whether the request failed
        """
        self._request_count += 1
        self._latencies.append(latency_ms)

        if is_error:
            self._error_count += 1

        if from_cache:
            self._cache_hits += 1
        else:
            self._cache_misses += 1

    @property
    def average_response_time(self) -> float:
        if not self._latencies:
            return 0.0
        return sum(self._latencies) / len(self._latencies)

    @property
    def error_rate(self) -> float:
        if not self._request_count:
            return 0.0
        return (self._error_count / self._request_count) * 100

    @property
    def cache_hit_rate(self) -> float:
        lookups = self._cache_hits + self._cache_misses
        if not lookups:
            return 0.0
        return (self._cache_hits / lookups) * 100

    def snapshot(self) -> Dict[str, Any]:
        """Current metrics with derived rates (percent) and average latency (ms)."""
        return {
            "requestCount": self._request_count,
            "errorCount": self._error_count,
            "cacheHits": self._cache_hits,
            "cacheMisses": self._cache_misses,
            "averageResponseTime": self.average_response_time,
            "errorRate": self.error_rate,
            "cacheHitRate": self.cache_hit_rate,
            "lastReset": self._last_reset.isoformat()
        }

    def should_throttle(self) -> bool:
        """Whether average latency is high enough to shed optional work."""
        return self.average_response_time > THROTTLE_LATENCY_MS

    def health_status(self) -> HealthStatus:
        """Classify service health from error rate and average latency."""
        error_rate = self.error_rate
        latency = self.average_response_time

        if error_rate > CRITICAL_ERROR_RATE or latency > CRITICAL_LATENCY_MS:
            return "critical"
        if error_rate > DEGRADED_ERROR_RATE or latency > DEGRADED_LATENCY_MS:
            return "degraded"
        return "healthy"
