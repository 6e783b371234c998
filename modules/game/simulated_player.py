"""
Simulated player for demo runs without a real motion sensor.

Listens for new recognition cycles and makes the synthetic source perform
the requested gesture, or a wrong one with probability ``1 - accuracy``.
"""

import random
import logging
import threading

from core.events import EventBus, Events
from core.types import GESTURE_LABELS
from modules.capture.motion_source import SyntheticMotionSource

logger = logging.getLogger(__name__)


class SimulatedPlayer:

    def __init__(self, source: SyntheticMotionSource, accuracy: float = 0.9,
                 reaction_s: float = 0.1, seed=None, event_bus: EventBus = None):
        self._source = source
        self._accuracy = accuracy
        self._reaction_s = reaction_s
        self._rng = random.Random(seed)
        self._bus = event_bus or EventBus()
        self._bus.subscribe(Events.CYCLE_STARTED, self._on_cycle_started)

    def _on_cycle_started(self, expected=None, **kwargs):
        if expected is None:
            return
        gesture = expected
        if self._rng.random() >= self._accuracy:
            gesture = self._rng.choice([g for g in GESTURE_LABELS if g != expected])
        logger.info("Player performs %s (asked for %s)", gesture.value, expected.value)

        # React off the caller's thread; start_cycle holds the pipeline lock
        timer = threading.Timer(self._reaction_s, self._source.perform, args=(gesture,))
        timer.daemon = True
        timer.start()

    def close(self):
        self._bus.unsubscribe(Events.CYCLE_STARTED, self._on_cycle_started)
