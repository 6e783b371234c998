"""
Core pipeline for windowed motion gesture recognition.

Architecture:
    MotionSampler -> queue -> GesturePipeline.process_sample
        -> WindowExtractor (ring buffer, stride scheduling)
        -> PredictionAggregator (classifier, slot state, threshold, timeout)
        -> EventBus (gesture_matched / gesture_mismatched / gesture_timeout)

Single-consumer contract: ``process_sample`` must be called from one thread
at a time. Each sample is fully processed (buffering, window extraction and
classification) before the next one is accepted; the pipeline lock enforces
this and also serializes ``start_cycle`` / ``clear`` coming from other threads.
"""

import logging
import threading
from typing import Optional

from core.events import EventBus, Events
from core.types import CycleResult, CycleState, GestureLabel, MotionSample
from modules.buffering.window_extractor import WindowConfig, WindowExtractor
from modules.recognition.classifier_adapter import SequenceClassifier
from modules.recognition.prediction_aggregator import PredictionAggregator
from modules.utils.performance_monitor import PerformanceMonitor

logger = logging.getLogger(__name__)


class GesturePipeline:
    """Extractor + aggregator pair that owns the buffer and slot states."""

    def __init__(self, classifier: SequenceClassifier,
                 window_config: Optional[WindowConfig] = None,
                 recognition_config: Optional[dict] = None,
                 event_bus: Optional[EventBus] = None,
                 performance_monitor: Optional[PerformanceMonitor] = None,
                 timer_factory=None):
        self._bus = event_bus or EventBus()
        self._extractor = WindowExtractor(window_config)
        self._aggregator = PredictionAggregator(
            classifier,
            recognition_config,
            event_bus=self._bus,
            timer_factory=timer_factory,
        )
        self._perf = performance_monitor or PerformanceMonitor()
        self._lock = threading.RLock()

        self._accepted = 0
        self._ignored = 0

        cfg = self._extractor.config
        logger.info("Pipeline ready: window=%d offset=%d windows=%d threshold=%.2f timeout=%.2fs",
                    cfg.window_size, cfg.window_offset, cfg.num_windows,
                    self._aggregator.threshold, self._aggregator.timeout_s)

    def start_cycle(self, expected: GestureLabel) -> int:
        """Reset the buffer and slot states, then await ``expected``."""
        with self._lock:
            self._extractor.reset()
            return self._aggregator.begin(expected)

    def clear(self):
        """Leave the current cycle and go back to IDLE."""
        with self._lock:
            self._aggregator.clear()
            self._extractor.reset()

    def process_sample(self, sample: MotionSample) -> Optional[CycleResult]:
        """Ingest one sample. Returns a CycleResult if it resolved the cycle.

        Samples arriving while no gesture is awaited are dropped silently.
        """
        with self._lock:
            if not self._aggregator.is_awaiting:
                self._ignored += 1
                return None

            self._accepted += 1
            self._perf.record_sample()
            with self._perf.measure("ingest"):
                window = self._extractor.push(sample)

            if window is None:
                return None

            self._perf.record_window()
            self._bus.emit(Events.WINDOW_READY, slot=window.slot, window=window)
            with self._perf.measure("classify"):
                return self._aggregator.evaluate(window)

    @property
    def state(self) -> CycleState:
        return self._aggregator.state

    @property
    def expected(self) -> Optional[GestureLabel]:
        return self._aggregator.expected

    @property
    def extractor(self) -> WindowExtractor:
        return self._extractor

    @property
    def aggregator(self) -> PredictionAggregator:
        return self._aggregator

    @property
    def performance(self) -> PerformanceMonitor:
        return self._perf

    @property
    def stats(self) -> dict:
        stats = {
            "accepted_samples": self._accepted,
            "ignored_samples": self._ignored,
            "windows_emitted": self._extractor.windows_emitted,
        }
        stats.update(self._aggregator.stats)
        return stats
