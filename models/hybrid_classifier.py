"""
HybridClassifier: ML-first window classifier with rule-based fallback.

Priority order:
    1. PyTorch GestureLSTM  (when a trained checkpoint exists)
    2. Rule-based engine    (always available, no model needed)

Automatically selects the best available backend at init time.
"""

import os
import pickle
import logging

import torch

from core.exceptions import ClassificationError, SetupError
from core.types import Prediction
from modules.recognition.classifier_adapter import SequenceClassifier
from modules.recognition.motion_classifier import MotionRuleClassifier

logger = logging.getLogger(__name__)


class HybridClassifier(SequenceClassifier):
    """ML-first classifier with automatic fallback.

    Usage::

        hybrid = HybridClassifier(config.model, MotionRuleClassifier())
        prediction = hybrid.predict(window.data, prior_state)
    """

    def __init__(self, config: dict, rule_classifier=None):
        """
        Args:
            config: ``model`` section from config.yaml
            rule_classifier: classifier used when no trained model exists
        """
        self._config = config or {}
        self._rule_classifier = rule_classifier or MotionRuleClassifier(
            self._config.get("rules", {})
        )
        self._checkpoint = self._config.get("checkpoint")
        self._require_model = self._config.get("require_model", False)

        self._backend = "rules"
        self._torch_classifier = None

        self._init_backend()

        # Stats
        self._ml_calls = 0
        self._rule_calls = 0
        self._failures = 0

    def _init_backend(self):
        """Try to load the PyTorch model, otherwise keep the rule engine."""
        if self._checkpoint and os.path.isfile(self._checkpoint):
            device = self._config.get("device") or (
                "cuda" if torch.cuda.is_available() else "cpu"
            )
            try:
                from models.lstm_classifier import TorchSequenceClassifier
                self._torch_classifier = TorchSequenceClassifier.from_checkpoint(
                    self._checkpoint, device=device
                )
                self._backend = "pytorch"
                logger.info("ML backend: PyTorch GestureLSTM on %s", device)
                return
            except (OSError, RuntimeError, KeyError, ValueError, pickle.UnpicklingError) as e:
                if self._require_model:
                    raise SetupError(f"Failed to load model {self._checkpoint}: {e}") from e
                logger.warning("PyTorch load failed, falling back to rules: %s", e)
        elif self._require_model:
            raise SetupError(f"Model checkpoint not found: {self._checkpoint}")

        logger.info("ML backend: rule-based (no trained model found)")

    def predict(self, window_data, state=None) -> Prediction:
        try:
            if self._torch_classifier is not None:
                self._ml_calls += 1
                return self._torch_classifier.safe_predict(window_data, state)
            self._rule_calls += 1
            return self._rule_classifier.safe_predict(window_data, state)
        except ClassificationError:
            self._failures += 1
            raise

    @property
    def backend(self):
        """Current inference backend name."""
        return self._backend

    @property
    def stats(self):
        """Inference statistics."""
        return {
            "backend": self._backend,
            "ml_calls": self._ml_calls,
            "rule_calls": self._rule_calls,
            "failures": self._failures,
        }
