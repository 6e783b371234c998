"""
Rule-based motion gesture classifier.

Scores each gesture from per-axis RMS energy of the window:
    chop_it   -> vertical user acceleration (y)
    shake_it  -> lateral user acceleration (x)
    drive_it  -> rotation about the screen normal (z), like turning a wheel
    rest_it   -> constant baseline that wins when the device is still

Scores are turned into probabilities with a sharpened softmax, then blended
with the previous probabilities of the same window slot. That blend is the
classifier's recurrent state.
"""

import logging
from typing import Any, Optional

import numpy as np

from core.exceptions import ClassificationError
from core.types import GestureLabel, Prediction, NUM_MOTION_FEATURES
from modules.recognition.classifier_adapter import (
    SequenceClassifier, probabilities_from_scores, best_label,
)

logger = logging.getLogger(__name__)

# Output order of scores and probability vectors
RULE_LABELS = (
    GestureLabel.CHOP_IT,
    GestureLabel.DRIVE_IT,
    GestureLabel.SHAKE_IT,
    GestureLabel.REST_IT,
)


class MotionRuleClassifier(SequenceClassifier):
    """Deterministic heuristic classifier, always available (no model needed)."""

    def __init__(self, config: Optional[dict] = None):
        config = config or {}
        self._rest_level = config.get("rest_level", 0.3)
        self._sharpness = config.get("sharpness", 20.0)
        self._drive_scale = config.get("drive_scale", 0.5)
        self._momentum = config.get("momentum", 0.3)

        if not 0.0 <= self._momentum < 1.0:
            raise ValueError(f"momentum must be in [0, 1), got {self._momentum}")

    def _scores(self, window_data: np.ndarray) -> np.ndarray:
        rms = np.sqrt(np.mean(np.square(window_data), axis=0))
        rot_z = rms[2]
        acc_x, acc_y = rms[3], rms[4]
        return np.array([
            acc_y,
            rot_z * self._drive_scale,
            acc_x,
            self._rest_level,
        ])

    def predict(self, window_data: np.ndarray, state: Optional[Any] = None) -> Prediction:
        data = np.asarray(window_data, dtype=np.float64)
        if data.ndim != 2 or data.shape[1] != NUM_MOTION_FEATURES:
            raise ClassificationError(
                f"Expected (N, {NUM_MOTION_FEATURES}) window, got {data.shape}"
            )
        if not np.all(np.isfinite(data)):
            raise ClassificationError("Window contains non-finite values")

        probs = probabilities_from_scores(RULE_LABELS, self._scores(data) * self._sharpness)
        vector = np.array([probs[label] for label in RULE_LABELS])

        if state is not None:
            prior = np.asarray(state, dtype=np.float64)
            if prior.shape != vector.shape:
                raise ClassificationError(
                    f"Recurrent state shape {prior.shape} does not match {vector.shape}"
                )
            vector = (1.0 - self._momentum) * vector + self._momentum * prior

        probabilities = {label: float(p) for label, p in zip(RULE_LABELS, vector)}
        return Prediction(best_label(probabilities), probabilities, state=vector)
