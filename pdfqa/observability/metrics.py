import threading
from collections import deque
from typing import List

# p95 is computed over the most recent successful requests only
LATENCY_WINDOW = 1000


class MetricsTracker:
    """Request counters and latency history for the /metrics endpoint."""

    def __init__(self, latency_window: int = LATENCY_WINDOW):

        self._latency_window = latency_window
        self._lock = threading.Lock()
        self.reset()

    def reset(self):

        with self._lock:

            self._metrics = {

                "total_requests": 0,
                "successful_requests": 0,
                "failed_requests": 0,

                "total_latency": 0.0,
                "avg_latency": 0.0,

                "latencies": deque(maxlen=self._latency_window),

            }

    def record_success(self, latency: float):

        with self._lock:

            self._metrics["total_requests"] += 1

            self._metrics["successful_requests"] += 1

            self._metrics["total_latency"] += latency

            self._metrics["avg_latency"] = (
                self._metrics["total_latency"]
                / self._metrics["successful_requests"]
            )

            self._metrics["latencies"].append(latency)

    def record_failure(self):

        with self._lock:

            self._metrics["total_requests"] += 1

            self._metrics["failed_requests"] += 1

    def get_metrics(self):

        with self._lock:

            snapshot = {
                k: v for k, v in self._metrics.items() if k != "latencies"
            }

        snapshot["p95_latency"] = self.get_latency_percentile(95)

        return snapshot

    def get_latency_percentile(self, percentile: float) -> float:

        with self._lock:
            latencies: List[float] = list(self._metrics["latencies"])

        if not latencies:
            return 0.0

        sorted_latencies = sorted(latencies)

        index = int(len(sorted_latencies) * percentile / 100)

        index = min(index, len(sorted_latencies) - 1)

        return sorted_latencies[index]


metrics_tracker = MetricsTracker()
