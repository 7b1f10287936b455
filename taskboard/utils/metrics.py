"""
Metrics collection for the recurrence engine.

In-process counters and cumulative timers, read back by the metrics route.
"""

import threading
import time
from collections import defaultdict
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Callable, Dict

SERIES_CREATED = "recurrence_series_created_total"
INSTANCES_CREATED = "recurrence_instances_created_total"
SERIES_COMPLETED = "recurrence_series_completed_total"
COMPLETION_ERRORS = "recurrence_completion_errors_total"
SECONDARY_WRITE_FAILURES = "recurrence_secondary_write_failures_total"


class MetricsCollector:
    """Collects counters and timers for recurrence processing."""

    def __init__(self):
        self.lock = threading.Lock()
        self.reset()

    def reset(self):
        with self.lock:
            self.counters = defaultdict(int)
            self.timers = defaultdict(float)
            for name in (SERIES_CREATED, INSTANCES_CREATED, SERIES_COMPLETED,
                         COMPLETION_ERRORS, SECONDARY_WRITE_FAILURES):
                self.counters[name] = 0

    def increment(self, metric_name: str, value: int = 1):
        with self.lock:
            self.counters[metric_name] += value

    def record_timer(self, metric_name: str, duration: float):
        with self.lock:
            self.timers[metric_name] += duration

    def get_metrics(self) -> Dict[str, Any]:
        with self.lock:
            return {
                "counters": dict(self.counters),
                "timers": dict(self.timers),
                "timestamp": datetime.now(timezone.utc).isoformat()
            }

    def timed(self, metric_name: str) -> Callable:
        """Decorator adding the wrapped call's duration to a timer."""
        def decorator(func):
            @wraps(func)
            def wrapper(*args, **kwargs):
                start_time = time.perf_counter()
                try:
                    return func(*args, **kwargs)
                finally:
                    self.record_timer(metric_name, time.perf_counter() - start_time)
            return wrapper
        return decorator


metrics_collector = MetricsCollector()
