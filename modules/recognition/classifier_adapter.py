"""
Classifier contract consumed by the prediction aggregator.

A classifier sees one window plus the recurrent state that the same window
slot produced last time, and returns a label, per-label probabilities and
the new recurrent state. Anything that goes wrong inside a classifier must
surface as ClassificationError so the aggregator can skip the window.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Optional

import numpy as np

from core.exceptions import ClassificationError
from core.types import GestureLabel, Prediction

logger = logging.getLogger(__name__)


class SequenceClassifier(ABC):
    """Base class for window classifiers.

    Implementations must be deterministic: identical window data and state
    give an identical prediction.
    """

    @abstractmethod
    def predict(self, window_data: np.ndarray, state: Optional[Any] = None) -> Prediction:
        """Classify a ``(window_size, num_features)`` window.

        Raises:
            ClassificationError: the window could not be classified
        """

    def safe_predict(self, window_data: np.ndarray, state: Optional[Any] = None) -> Prediction:
        """``predict`` with every failure normalized to ClassificationError."""
        try:
            prediction = self.predict(window_data, state)
        except ClassificationError:
            raise
        except Exception as e:
            raise ClassificationError(f"{type(self).__name__} failed: {e}") from e
        if not isinstance(prediction, Prediction):
            raise ClassificationError(
                f"{type(self).__name__} returned {type(prediction).__name__}, expected Prediction"
            )
        return prediction

    @property
    def name(self) -> str:
        return type(self).__name__


def probabilities_from_scores(labels: Iterable[GestureLabel], scores) -> Dict[GestureLabel, float]:
    """Softmax raw scores into a label -> probability dict."""
    scores = np.asarray(list(scores), dtype=np.float64)
    scores = scores - scores.max()
    exp = np.exp(scores)
    probs = exp / exp.sum()
    return {label: float(p) for label, p in zip(labels, probs)}


def best_label(probabilities: Dict[GestureLabel, float]) -> GestureLabel:
    """Label with the highest probability."""
    return max(probabilities, key=probabilities.get)
