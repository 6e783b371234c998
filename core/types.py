"""
Shared domain types for the GestureIt motion engine.

Centralizes enums, data classes, and type definitions used across modules
to eliminate circular imports and ensure type consistency.
"""

import time
from enum import Enum
from typing import Any, Dict, Optional

import numpy as np


# =============================================================================
# Gesture Labels
# =============================================================================

class GestureLabel(Enum):
    """Labels produced by the gesture classifier."""
    CHOP_IT = "chop_it"
    DRIVE_IT = "drive_it"
    SHAKE_IT = "shake_it"
    REST_IT = "rest_it"

    @classmethod
    def from_string(cls, name: str) -> 'GestureLabel':
        """Convert a model output name to a GestureLabel.

        Raises ValueError for names outside the label set.
        """
        if isinstance(name, cls):
            return name
        return cls(str(name).strip().lower())

    @property
    def is_rest(self) -> bool:
        return self is GestureLabel.REST_IT


# Gestures a player can be asked to perform
GESTURE_LABELS = (GestureLabel.CHOP_IT, GestureLabel.DRIVE_IT, GestureLabel.SHAKE_IT)

# Column order of a motion sample
MOTION_FEATURES = (
    "rotation_rate_x", "rotation_rate_y", "rotation_rate_z",
    "user_acceleration_x", "user_acceleration_y", "user_acceleration_z",
)

NUM_MOTION_FEATURES = len(MOTION_FEATURES)


class CycleState(Enum):
    """Lifecycle of one expected-gesture cycle."""
    IDLE = "idle"
    AWAITING = "awaiting"
    RESOLVED = "resolved"


class CycleOutcome(Enum):
    MATCHED = "matched"
    MISMATCHED = "mismatched"
    TIMED_OUT = "timed_out"


# =============================================================================
# Data Containers
# =============================================================================

class MotionSample:
    """One device-motion reading: 3-axis rotation rate + 3-axis user acceleration.

    Immutable once created. ``seq`` is the arrival order assigned by the sampler.
    """

    __slots__ = ("_values", "seq", "timestamp")

    def __init__(self, values, seq: int = 0, timestamp: Optional[float] = None):
        arr = np.asarray(values, dtype=np.float64).reshape(-1)
        if arr.shape[0] != NUM_MOTION_FEATURES:
            raise ValueError(
                f"Motion sample needs {NUM_MOTION_FEATURES} features, got {arr.shape[0]}"
            )
        arr.setflags(write=False)
        object.__setattr__(self, "_values", arr)
        object.__setattr__(self, "seq", int(seq))
        object.__setattr__(self, "timestamp", time.time() if timestamp is None else timestamp)

    def __setattr__(self, name, value):
        raise AttributeError("MotionSample is immutable")

    @classmethod
    def from_motion(cls, rotation_rate, user_acceleration, seq: int = 0,
                    timestamp: Optional[float] = None) -> 'MotionSample':
        """Build a sample from separate (x, y, z) rotation and acceleration triples."""
        return cls(tuple(rotation_rate) + tuple(user_acceleration), seq=seq, timestamp=timestamp)

    def as_array(self) -> np.ndarray:
        return self._values

    @property
    def rotation_rate(self) -> tuple:
        return tuple(float(v) for v in self._values[:3])

    @property
    def user_acceleration(self) -> tuple:
        return tuple(float(v) for v in self._values[3:])

    def __repr__(self):
        return f"MotionSample(seq={self.seq}, values={np.round(self._values, 3).tolist()})"


class Window:
    """A contiguous span of samples handed to the classifier as one input."""

    __slots__ = ("slot", "data", "first_seq", "last_seq")

    def __init__(self, slot: int, data: np.ndarray, first_seq: int, last_seq: int):
        self.slot = slot
        self.data = data            # (window_size, num_features)
        self.first_seq = first_seq
        self.last_seq = last_seq

    def __len__(self):
        return self.data.shape[0]

    def __repr__(self):
        return f"Window(slot={self.slot}, seq={self.first_seq}..{self.last_seq})"


class Prediction:
    """Classifier output for one window.

    ``state`` is the recurrent state the classifier wants back the next time
    the same window slot is evaluated. Its contents are opaque to the engine.
    """

    __slots__ = ("label", "probabilities", "state")

    def __init__(self, label: GestureLabel, probabilities: Dict[GestureLabel, float],
                 state: Any = None):
        self.label = label
        self.probabilities = probabilities
        self.state = state

    @property
    def confidence(self) -> float:
        return float(self.probabilities.get(self.label, 0.0))

    def __repr__(self):
        return f"Prediction({self.label.value}, p={self.confidence:.2f})"


class CycleResult:
    """How an expected-gesture cycle was resolved."""

    __slots__ = ("outcome", "expected", "predicted", "confidence", "slot",
                 "cycle_id", "elapsed_s")

    def __init__(self, outcome: CycleOutcome, expected: GestureLabel,
                 predicted: Optional[GestureLabel] = None, confidence: float = 0.0,
                 slot: Optional[int] = None, cycle_id: int = 0, elapsed_s: float = 0.0):
        self.outcome = outcome
        self.expected = expected
        self.predicted = predicted
        self.confidence = confidence
        self.slot = slot
        self.cycle_id = cycle_id
        self.elapsed_s = elapsed_s

    @property
    def succeeded(self) -> bool:
        return self.outcome is CycleOutcome.MATCHED

    def __repr__(self):
        predicted = self.predicted.value if self.predicted else None
        return (f"CycleResult({self.outcome.value}, expected={self.expected.value}, "
                f"predicted={predicted}, conf={self.confidence:.2f})")
