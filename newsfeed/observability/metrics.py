"""Per-notifier counters (items posted, deliveries, failures) and gauges (subscribers)."""

import threading
from collections import Counter
from typing import Dict


class Metrics:
    """In-memory metrics for one notifier; safe to update from delivery threads."""

    def __init__(self) -> None:
        self._counters: Counter = Counter()
        self._gauges: Dict[str, int] = {}
        self._lock = threading.Lock()

    def increment(self, name: str, value: int = 1) -> None:
        with self._lock:
            self._counters[name] += value

    def set_gauge(self, name: str, value: int) -> None:
        with self._lock:
            self._gauges[name] = value

    def get_counter(self, name: str) -> int:
        with self._lock:
            return self._counters[name]

    def get_gauge(self, name: str) -> int:
        with self._lock:
            return self._gauges.get(name, 0)

    def snapshot(self) -> Dict[str, Dict[str, int]]:
        """Plain-dict copy of counters and gauges."""
        with self._lock:
            return {
                "counters": dict(self._counters),
                "gauges": dict(self._gauges),
            }
