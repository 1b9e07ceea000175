"""
Shared metrics for the PTAlts client streams.
"""

from typing import Dict, Any, Optional
import threading

from prometheus_client import Counter, Gauge, CollectorRegistry


class StreamMetrics:
    """Prometheus metrics for event-stream subscriptions.

    Each collector owns a private registry unless one is supplied, so several
    clients (or tests) in one process never collide on metric names.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._lock = threading.Lock()
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up stream metrics."""

        self._metrics["events_received_total"] = Counter(
            "ptalts_sse_events_received_total",
            "Total decoded events delivered to listeners",
            ["feed"],
            registry=self.registry
        )

        self._metrics["decode_failures_total"] = Counter(
            "ptalts_sse_decode_failures_total",
            "Total frames dropped because the payload did not decode",
            ["feed"],
            registry=self.registry
        )

        self._metrics["stream_errors_total"] = Counter(
            "ptalts_sse_stream_errors_total",
            "Total streams terminated by a read error",
            ["feed"],
            registry=self.registry
        )

        self._metrics["active_subscriptions"] = Gauge(
            "ptalts_sse_active_subscriptions",
            "Currently open event-stream subscriptions",
            ["feed"],
            registry=self.registry
        )

    def record_event(self, feed: str):
        """Record a delivered event."""
        self._metrics["events_received_total"].labels(feed=feed).inc()

    def record_decode_failure(self, feed: str):
        """Record a dropped frame."""
        self._metrics["decode_failures_total"].labels(feed=feed).inc()

    def record_stream_error(self, feed: str):
        """Record a stream terminated by a read error."""
        self._metrics["stream_errors_total"].labels(feed=feed).inc()

    def subscription_opened(self, feed: str):
        with self._lock:
            self._metrics["active_subscriptions"].labels(feed=feed).inc()

    def subscription_closed(self, feed: str):
        with self._lock:
            self._metrics["active_subscriptions"].labels(feed=feed).dec()

    def get_value(self, name: str, feed: str) -> float:
        """Read the current sample value of a metric for one feed."""
        sample_name = f"ptalts_sse_{name}"
        value = self.registry.get_sample_value(sample_name, {"feed": feed})
        return value or 0.0
