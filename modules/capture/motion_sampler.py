"""
Fixed-rate motion sampling with an explicit producer/consumer hand-off.

    producer thread : polls a MotionSource at ``sample_rate`` Hz and puts
                      MotionSample objects on a bounded queue
    consumer thread : the single consumer; drains the queue into the
                      pipeline one sample at a time

Only the consumer thread ever touches the pipeline's buffer and slot state.
"""

import time
import queue
import logging
import threading
from typing import Callable, Optional

from core.events import EventBus, Events
from core.types import MotionSample
from modules.capture.motion_source import MotionSource

logger = logging.getLogger(__name__)

_STOP = object()


class MotionSampler:
    """Drives a motion source into a sample consumer at a fixed rate."""

    def __init__(self, source: MotionSource, consumer: Callable[[MotionSample], object],
                 config: Optional[dict] = None, event_bus: Optional[EventBus] = None,
                 performance_monitor=None):
        config = config or {}
        self._source = source
        self._consumer = consumer
        self._bus = event_bus or EventBus()
        self._perf = performance_monitor

        self._sample_rate = float(config.get("sample_rate", 25.0))
        self._realtime = config.get("realtime", True)
        self._max_errors = config.get("max_consecutive_errors", 10)
        self._queue = queue.Queue(maxsize=config.get("queue_size", 64))

        self._running = False
        self._enabled = threading.Event()
        self._enabled.set()
        self._producer = None
        self._consumer_thread = None
        self._exhausted = threading.Event()

        self._seq = 0
        self._consumed = 0
        self._dropped = 0
        self._consecutive_errors = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self):
        if self._consumer_thread is not None:
            return
        self._running = True
        self._exhausted.clear()
        self._consumer_thread = threading.Thread(
            target=self._consume_loop, name="motion-consumer", daemon=True
        )
        self._producer = threading.Thread(
            target=self._produce_loop, name="motion-producer", daemon=True
        )
        self._consumer_thread.start()
        self._producer.start()
        logger.info("Motion sampling started at %.1f Hz", self._sample_rate)

    def stop(self, timeout: float = 2.0):
        """Stop both threads. Samples still queued are processed first."""
        if self._consumer_thread is None:
            return
        self._running = False
        self._enabled.set()  # wake a paused producer so it can exit
        if self._producer is not None and self._producer is not threading.current_thread():
            self._producer.join(timeout)
        self._queue.put(_STOP)
        if (self._consumer_thread is not None
                and self._consumer_thread is not threading.current_thread()):
            self._consumer_thread.join(timeout)
        self._producer = None
        self._consumer_thread = None
        self._source.close()
        logger.info("Motion sampling stopped (%d produced, %d consumed, %d dropped)",
                    self._seq, self._consumed, self._dropped)

    def enable(self):
        """Resume reading from the sensor."""
        self._enabled.set()
        logger.debug("Motion updates enabled")

    def disable(self):
        """Pause the sensor stream without stopping the threads."""
        self._enabled.clear()
        logger.debug("Motion updates disabled")

    def wait_until_exhausted(self, timeout: Optional[float] = None) -> bool:
        """Block until the source ran dry and every queued sample was consumed."""
        if not self._exhausted.wait(timeout):
            return False
        self._queue.join()
        return True

    # ------------------------------------------------------------------
    # Threads
    # ------------------------------------------------------------------

    def _produce_loop(self):
        interval = 1.0 / self._sample_rate
        next_tick = time.monotonic()

        while self._running:
            if not self._enabled.is_set():
                self._enabled.wait(0.1)
                next_tick = time.monotonic()
                continue

            try:
                values = self._source.read()
            except StopIteration:
                logger.info("Motion source exhausted after %d samples", self._seq)
                self._exhausted.set()
                return
            except Exception as e:
                self._consecutive_errors += 1
                logger.warning("Device motion update error: %s", e)
                if self._consecutive_errors >= self._max_errors:
                    logger.error("Too many sensor errors (%d), stopping sampler",
                                 self._consecutive_errors)
                    self._running = False
                    self._bus.emit(Events.SENSOR_ERROR, error=e,
                                   consecutive_errors=self._consecutive_errors)
                    self._exhausted.set()
                    return
            else:
                self._consecutive_errors = 0
                self._enqueue(MotionSample(values, seq=self._seq))
                self._seq += 1

            if self._realtime:
                next_tick += interval
                delay = next_tick - time.monotonic()
                if delay > 0:
                    time.sleep(delay)
                else:
                    next_tick = time.monotonic()

    def _enqueue(self, sample: MotionSample):
        if self._realtime:
            try:
                self._queue.put_nowait(sample)
            except queue.Full:
                self._dropped += 1
                if self._perf is not None:
                    self._perf.record_drop()
                logger.debug("Sample queue full, dropped seq=%d", sample.seq)
        else:
            # Offline replay: apply back-pressure instead of dropping
            self._queue.put(sample)

    def _consume_loop(self):
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                self._consumer(item)
                self._consumed += 1
            except Exception:
                logger.exception("Sample consumer failed on seq=%d", item.seq)
            finally:
                self._queue.task_done()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_enabled(self) -> bool:
        return self._enabled.is_set()

    @property
    def samples_produced(self) -> int:
        return self._seq

    @property
    def samples_consumed(self) -> int:
        return self._consumed

    @property
    def dropped_samples(self) -> int:
        return self._dropped

    @property
    def sample_rate(self) -> float:
        return self._sample_rate
