"""
Motion sample sources.

A source hands out one 6-value reading per ``read()`` call:
(rotation_rate x, y, z, user_acceleration x, y, z). ``StopIteration`` means
the source is exhausted; any other exception is a sensor error.
"""

import math
import logging
import threading
from typing import Optional

import numpy as np

from core.types import GestureLabel, NUM_MOTION_FEATURES

logger = logging.getLogger(__name__)


class MotionSource:
    """Base class for motion sources."""

    def read(self) -> np.ndarray:
        raise NotImplementedError

    def close(self):
        pass


class ReplayMotionSource(MotionSource):
    """Plays back an in-memory ``(N, 6)`` array of readings."""

    def __init__(self, samples, loop: bool = False):
        self._samples = np.asarray(samples, dtype=np.float64)
        if self._samples.ndim != 2 or self._samples.shape[1] != NUM_MOTION_FEATURES:
            raise ValueError(
                f"Replay data must be (N, {NUM_MOTION_FEATURES}), got {self._samples.shape}"
            )
        self._loop = loop
        self._index = 0

    def read(self) -> np.ndarray:
        if self._index >= len(self._samples):
            if not self._loop or len(self._samples) == 0:
                raise StopIteration
            self._index = 0
        row = self._samples[self._index]
        self._index += 1
        return row

    @property
    def remaining(self) -> int:
        return max(0, len(self._samples) - self._index)


# Amplitude and frequency (Hz) of each simulated gesture, per feature column
_GESTURE_PATTERNS = {
    GestureLabel.CHOP_IT: {4: (2.0, 3.0), 0: (0.3, 3.0)},
    GestureLabel.DRIVE_IT: {2: (3.0, 1.0), 3: (0.2, 1.0)},
    GestureLabel.SHAKE_IT: {3: (2.0, 5.0), 1: (0.3, 5.0)},
}


class SyntheticMotionSource(MotionSource):
    """Seeded generator of rest noise and simulated gesture motion.

    Call ``perform(label)`` to make the simulated device move; after
    ``duration_s`` it falls back to rest. Thread-safe: the game thread
    switches gestures while the sampler thread reads.
    """

    def __init__(self, sample_rate: float = 25.0, seed: Optional[int] = None,
                 noise: float = 0.02, duration_s: float = 1.2):
        self._sample_rate = sample_rate
        self._noise = noise
        self._default_duration = duration_s
        self._rng = np.random.default_rng(seed)
        self._lock = threading.Lock()

        self._gesture = GestureLabel.REST_IT
        self._remaining = 0
        self._tick = 0

    def perform(self, label: GestureLabel, duration_s: Optional[float] = None):
        """Start simulating ``label`` for ``duration_s`` seconds."""
        label = GestureLabel.from_string(label)
        duration_s = self._default_duration if duration_s is None else duration_s
        with self._lock:
            self._gesture = label
            self._remaining = int(round(duration_s * self._sample_rate))
            self._tick = 0
        logger.debug("Simulating %s for %.2fs", label.value, duration_s)

    def rest(self):
        with self._lock:
            self._gesture = GestureLabel.REST_IT
            self._remaining = 0

    def read(self) -> np.ndarray:
        with self._lock:
            values = self._rng.normal(0.0, self._noise, NUM_MOTION_FEATURES)
            if self._remaining > 0:
                t = self._tick / self._sample_rate
                for column, (amplitude, freq) in _GESTURE_PATTERNS.get(self._gesture, {}).items():
                    values[column] += amplitude * math.sin(2.0 * math.pi * freq * t)
                self._tick += 1
                self._remaining -= 1
                if self._remaining == 0:
                    self._gesture = GestureLabel.REST_IT
            return values

    @property
    def current_gesture(self) -> GestureLabel:
        return self._gesture

    @property
    def sample_rate(self) -> float:
        return self._sample_rate
