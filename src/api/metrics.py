"""Metrics service for the CatalogRec API.

Singleton service counting recommendation requests and smart collection
syncs.
"""

import threading
from typing import Dict


class _LatencyStats:
    """Count and latency statistics for one operation."""

    def __init__(self):
        self.count = 0
        self.total_ms = 0.0
        self.min_ms = float("inf")
        self.max_ms = 0.0

    def add(self, latency_ms: float) -> None:
        self.count += 1
        self.total_ms += latency_ms
        self.min_ms = min(self.min_ms, latency_ms)
        self.max_ms = max(self.max_ms, latency_ms)

    def as_dict(self) -> Dict:
        return {
            "count": self.count,
            "average_latency_ms": round(self.total_ms / self.count, 2) if self.count else 0.0,
            "min_latency_ms": round(self.min_ms, 2) if self.count else 0.0,
            "max_latency_ms": round(self.max_ms, 2),
        }


class MetricsService:
    """Singleton service for tracking API metrics.

    Thread-safe per-operation request counters with latency, and sync
    outcome counters.
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        """Create singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(MetricsService, cls).__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._lock = threading.Lock()
        self._requests: Dict[str, _LatencyStats] = {}
        self._syncs_succeeded = 0
        self._syncs_failed = 0
        self._members_written = 0
        self._initialized = True

    def record_request(self, operation: str, latency_ms: float) -> None:
        """Record one recommendation request.

        Args:
            operation: Operation name, e.g. "related" or "suggested"
            latency_ms: Latency in milliseconds
        """
        with self._lock:
            self._requests.setdefault(operation, _LatencyStats()).add(latency_ms)

    def record_sync(self, members_written: int, success: bool) -> None:
        """Record the outcome of a sync request."""
        with self._lock:
            if success:
                self._syncs_succeeded += 1
                self._members_written += members_written
            else:
                self._syncs_failed += 1

    def get_metrics(self) -> Dict:
        """Get current metrics.

        Returns:
            Dictionary with:
            - requests: per-operation count and latency statistics
            - syncs: succeeded and failed sync counts, members written
        """
        with self._lock:
            return {
                "requests": {name: stats.as_dict() for name, stats in self._requests.items()},
                "syncs": {
                    "succeeded": self._syncs_succeeded,
                    "failed": self._syncs_failed,
                    "members_written": self._members_written,
                },
            }

    def reset(self) -> None:
        """Reset all metrics (useful for testing)."""
        with self._lock:
            self._requests = {}
            self._syncs_succeeded = 0
            self._syncs_failed = 0
            self._members_written = 0


# Global singleton instance
metrics_service = MetricsService()
