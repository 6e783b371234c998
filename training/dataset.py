"""
PyTorch Dataset of motion windows for GestureLSTM training.

Windows are cut from SyntheticMotionSource streams: each item is one
``(window_size, 6)`` window of a single gesture (or rest) with its class
index in ``models.gesture_net.DEFAULT_GESTURE_CLASSES`` order.
"""

import logging

import numpy as np
import torch
from torch.utils.data import Dataset

from core.types import GestureLabel
from models.gesture_net import DEFAULT_GESTURE_CLASSES
from modules.capture.motion_source import SyntheticMotionSource

logger = logging.getLogger(__name__)

LABEL_MAP = {name: idx for idx, name in enumerate(DEFAULT_GESTURE_CLASSES)}


class MotionWindowDataset(Dataset):
    """Synthetic labelled motion windows.

    Each sample is a (window, label) pair where:
        - window: FloatTensor of shape (window_size, 6)
        - label: LongTensor scalar (class index)
    """

    def __init__(self, windows_per_class=200, window_size=20, sample_rate=25.0,
                 noise=0.05, seed=0):
        self._window_size = window_size
        rng = np.random.default_rng(seed)
        source = SyntheticMotionSource(sample_rate=sample_rate, seed=seed, noise=noise)

        windows, labels = [], []
        for name in DEFAULT_GESTURE_CLASSES:
            label = GestureLabel.from_string(name)
            for _ in range(windows_per_class):
                # Random lead-in of rest so gestures start at different offsets
                lead_in = int(rng.integers(0, window_size // 2))
                source.rest()
                for _ in range(lead_in):
                    source.read()
                if not label.is_rest:
                    source.perform(label, duration_s=window_size / sample_rate)
                window = np.stack([source.read() for _ in range(window_size)])
                windows.append(window)
                labels.append(LABEL_MAP[name])

        self._windows = torch.tensor(np.array(windows), dtype=torch.float32)
        self._labels = torch.tensor(labels, dtype=torch.long)
        logger.info("Synthetic dataset: %d windows, %d classes",
                    len(self._labels), self.num_classes)

    def __len__(self):
        return len(self._labels)

    def __getitem__(self, idx):
        return self._windows[idx], self._labels[idx]

    @property
    def num_classes(self):
        return len(DEFAULT_GESTURE_CLASSES)

    @property
    def class_names(self):
        return list(DEFAULT_GESTURE_CLASSES)
