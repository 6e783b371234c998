"""
Fixed-size rolling history of motion samples.

The arena holds exactly ``window_size`` samples and is indexed modulo
``window_size``. Reading a window is a circular slice starting at
``window_index * window_offset``, so a window that straddles the wrap point
comes back contiguous and in arrival order.
"""

import logging

import numpy as np

from core.exceptions import SetupError
from core.types import MotionSample, NUM_MOTION_FEATURES

logger = logging.getLogger(__name__)


class SampleRingBuffer:
    """Rolling buffer of the most recent ``window_size`` motion samples.

    Not thread-safe on its own: only the sampling consumer writes to it.
    """

    def __init__(self, window_size: int, window_offset: int,
                 num_features: int = NUM_MOTION_FEATURES):
        if window_size <= 0 or window_offset <= 0:
            raise SetupError(
                f"window_size and window_offset must be positive "
                f"(got {window_size}, {window_offset})"
            )
        if window_offset > window_size:
            raise SetupError(
                f"window_offset {window_offset} exceeds window_size {window_size}"
            )

        self._window_size = window_size
        self._window_offset = window_offset
        self._num_features = num_features
        self._num_windows = window_size // window_offset

        try:
            self._data = np.zeros((window_size, num_features), dtype=np.float64)
            self._seqs = np.full(window_size, -1, dtype=np.int64)
        except (MemoryError, ValueError) as e:
            raise SetupError(f"Failed to allocate motion buffer: {e}") from e

        self._write_index = 0
        self._data_available = False

        logger.debug("Ring buffer ready: %d samples x %d features, %d windows",
                     window_size, num_features, self._num_windows)

    def write(self, sample: MotionSample):
        """Store a sample at the write index and advance it."""
        values = sample.as_array()
        if values.shape[0] != self._num_features:
            raise ValueError(
                f"Expected {self._num_features} features, got {values.shape[0]}"
            )
        self._data[self._write_index] = values
        self._seqs[self._write_index] = sample.seq

        self._write_index = (self._write_index + 1) % self._window_size
        if self._write_index == 0:
            self._data_available = True

    def read(self, window_index: int):
        """Return ``(data, seqs)`` for a window, oldest sample first.

        The returned arrays are copies; later writes do not alter them.
        """
        if not 0 <= window_index < self._num_windows:
            raise IndexError(
                f"window_index {window_index} out of range [0, {self._num_windows})"
            )
        start = window_index * self._window_offset
        order = (np.arange(self._window_size) + start) % self._window_size
        return self._data[order], self._seqs[order]

    def reset(self):
        """Forget all written samples. Safe to call repeatedly."""
        self._write_index = 0
        self._data_available = False
        self._data.fill(0.0)
        self._seqs.fill(-1)

    @property
    def write_index(self) -> int:
        return self._write_index

    @property
    def is_data_available(self) -> bool:
        """True once every slot has been written since the last reset."""
        return self._data_available

    @property
    def window_size(self) -> int:
        return self._window_size

    @property
    def window_offset(self) -> int:
        return self._window_offset

    @property
    def num_windows(self) -> int:
        return self._num_windows

    @property
    def buffer_size(self) -> int:
        """Length of the equivalent linear buffer with duplicated write-ahead."""
        return self._window_size + self._window_offset * (self._num_windows - 1)
