"""
Per-stage latency and sample-rate tracking for the motion pipeline.
Thread-safe metrics collection with rolling windows.
"""

import time
import threading
import logging
from collections import deque
from contextlib import contextmanager

logger = logging.getLogger(__name__)


class PerformanceMonitor:
    """Tracks effective sample rate and per-stage latency."""

    STAGES = ("ingest", "classify")

    def __init__(self, window_size=100):
        self._window_size = window_size
        self._lock = threading.Lock()

        self._sample_intervals = deque(maxlen=window_size)
        self._last_sample_time = None

        self._stage_times = {name: deque(maxlen=window_size) for name in self.STAGES}

        self._sample_count = 0
        self._window_count = 0
        self._dropped_samples = 0
        self._start_time = time.time()

    @contextmanager
    def measure(self, stage_name: str):
        """Context manager to measure a pipeline stage's duration."""
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            with self._lock:
                if stage_name not in self._stage_times:
                    self._stage_times[stage_name] = deque(maxlen=self._window_size)
                self._stage_times[stage_name].append(elapsed_ms)

    def record_sample(self):
        """Call once per ingested sample."""
        now = time.perf_counter()
        with self._lock:
            if self._last_sample_time is not None:
                self._sample_intervals.append(now - self._last_sample_time)
            self._last_sample_time = now
            self._sample_count += 1

    def record_window(self):
        with self._lock:
            self._window_count += 1

    def record_drop(self):
        """Record a sample dropped because the queue was full."""
        with self._lock:
            self._dropped_samples += 1

    @property
    def sample_rate(self) -> float:
        """Observed samples per second (rolling average)."""
        with self._lock:
            if len(self._sample_intervals) < 2:
                return 0.0
            avg_interval = sum(self._sample_intervals) / len(self._sample_intervals)
            return 1.0 / avg_interval if avg_interval > 0 else 0.0

    def get_stage_latency(self, stage_name: str) -> float:
        """Average latency for a stage in ms."""
        with self._lock:
            times = self._stage_times.get(stage_name)
            if not times:
                return 0.0
            return sum(times) / len(times)

    def get_report(self) -> dict:
        uptime = time.time() - self._start_time
        with self._lock:
            latencies = {
                name: round(sum(times) / len(times), 3) if times else 0.0
                for name, times in self._stage_times.items()
            }
            samples = self._sample_count
            windows = self._window_count
            dropped = self._dropped_samples
        return {
            "sample_rate": round(self.sample_rate, 1),
            "total_samples": samples,
            "total_windows": windows,
            "dropped_samples": dropped,
            "uptime_seconds": round(uptime, 1),
            "latencies_ms": latencies,
        }

    def print_report(self):
        report = self.get_report()
        logger.info("=" * 50)
        logger.info("PERFORMANCE REPORT")
        logger.info("=" * 50)
        logger.info("Sample rate:     %.1f Hz", report["sample_rate"])
        logger.info("Samples:         %d (dropped %d)",
                    report["total_samples"], report["dropped_samples"])
        logger.info("Windows:         %d", report["total_windows"])
        logger.info("Uptime:          %.1fs", report["uptime_seconds"])
        for stage, latency in report["latencies_ms"].items():
            logger.info("  %-14s %7.3f ms", stage, latency)
        logger.info("=" * 50)

    def reset(self):
        with self._lock:
            self._sample_intervals.clear()
            self._last_sample_time = None
            for times in self._stage_times.values():
                times.clear()
            self._sample_count = 0
            self._window_count = 0
            self._dropped_samples = 0
            self._start_time = time.time()
