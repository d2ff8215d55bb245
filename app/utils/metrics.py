"""
Metrics Collection for the recurring message dispatcher.

Counts ticks, evaluations, firings, skips and errors.
"""

from typing import Dict, Any
from collections import defaultdict
from datetime import datetime
import threading

COUNTERS = (
    "recurring_messages_ticks_total",
    "recurring_messages_evaluated_total",
    "recurring_messages_fired_total",
    "recurring_messages_skipped_total",
    "recurring_messages_errors_total",
)


class MetricsCollector:
    """Collects and manages metrics for the dispatcher."""

    def __init__(self):
        """Initialize metrics collector."""
        self.metrics = defaultdict(int)
        self.timers = defaultdict(float)
        self.lock = threading.Lock()

        for name in COUNTERS:
            self.metrics[name] = 0

    def record_timer(self, metric_name: str, duration: float):
        """Record a timing metric."""
        with self.lock:
            self.timers[metric_name] += duration

    def get_metrics(self) -> Dict[str, Any]:
        """Get current metrics values."""
        with self.lock:
            return {
                "counters": dict(self.metrics),
                "timers": dict(self.timers),
                "timestamp": datetime.utcnow().isoformat()
            }

    def tick_completed(self, evaluated: int, fired: int, skipped: int, errors: int):
        """Record the outcome of one dispatcher tick."""
        with self.lock:
            self.metrics["recurring_messages_ticks_total"] += 1
            self.metrics["recurring_messages_evaluated_total"] += evaluated
            self.metrics["recurring_messages_fired_total"] += fired
            self.metrics["recurring_messages_skipped_total"] += skipped
            self.metrics["recurring_messages_errors_total"] += errors


# Global metrics instance
metrics_collector = MetricsCollector()
