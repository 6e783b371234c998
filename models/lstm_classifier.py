"""
PyTorch-backed window classifier.

Wraps GestureLSTM behind the SequenceClassifier contract. The recurrent
state handed back to the engine is the LSTM's (hidden, cell) tensor pair.
"""

import logging

import numpy as np
import torch

from core.exceptions import ClassificationError
from core.types import GestureLabel, Prediction
from models.gesture_net import GestureLSTM, DEFAULT_GESTURE_CLASSES
from modules.recognition.classifier_adapter import SequenceClassifier, best_label

logger = logging.getLogger(__name__)


class TorchSequenceClassifier(SequenceClassifier):
    """Runs a GestureLSTM on one window at a time."""

    def __init__(self, model: GestureLSTM, classes=None, device="cpu"):
        self._model = model.to(device)
        self._model.eval()
        self._device = torch.device(device)
        self._labels = [GestureLabel.from_string(c) for c in (classes or DEFAULT_GESTURE_CLASSES)]

        if len(self._labels) != model.num_classes:
            raise ValueError(
                f"{len(self._labels)} class names for a {model.num_classes}-class model"
            )

    @classmethod
    def from_checkpoint(cls, path, device="cpu") -> "TorchSequenceClassifier":
        model, classes = GestureLSTM.load_checkpoint(path, device=device)
        return cls(model, classes, device=device)

    def predict(self, window_data: np.ndarray, state=None) -> Prediction:
        data = np.asarray(window_data, dtype=np.float32)
        if data.ndim != 2 or data.shape[1] != self._model.input_dim:
            raise ClassificationError(
                f"Expected (N, {self._model.input_dim}) window, got {data.shape}"
            )

        x = torch.from_numpy(data).unsqueeze(0).to(self._device)  # (1, T, F)
        if state is not None:
            state = tuple(s.to(self._device) for s in state)

        probs, (h, c) = self._model.predict_proba(x, state)
        probs = probs.squeeze(0).cpu().numpy()

        probabilities = {label: float(p) for label, p in zip(self._labels, probs)}
        return Prediction(best_label(probabilities), probabilities,
                          state=(h.detach(), c.detach()))

    @property
    def labels(self):
        return list(self._labels)
