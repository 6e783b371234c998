"""
Window scheduling over the sample ring buffer.

Decides, on every new sample, whether an overlapping window is ready for
inference and which window slot it belongs to.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from core.exceptions import SetupError
from core.types import MotionSample, Window, NUM_MOTION_FEATURES
from modules.buffering.ring_buffer import SampleRingBuffer

logger = logging.getLogger(__name__)


@dataclass
class WindowConfig:
    """Windowing configuration."""
    window_size: int = 20      # Samples per classifier input
    window_offset: int = 5     # Stride between window starts
    num_features: int = NUM_MOTION_FEATURES

    def __post_init__(self):
        if self.window_size <= 0 or self.window_offset <= 0:
            raise SetupError("window_size and window_offset must be positive")
        if self.window_offset > self.window_size:
            raise SetupError(
                f"window_offset ({self.window_offset}) must not exceed "
                f"window_size ({self.window_size})"
            )
        if self.num_features != NUM_MOTION_FEATURES:
            raise SetupError(
                f"num_features must be {NUM_MOTION_FEATURES} (motion samples carry "
                f"rotation rate and user acceleration), got {self.num_features}"
            )

    @property
    def num_windows(self) -> int:
        return self.window_size // self.window_offset

    @property
    def buffer_size(self) -> int:
        return self.window_size + self.window_offset * (self.num_windows - 1)

    @classmethod
    def from_dict(cls, config: dict) -> "WindowConfig":
        """Create config from the ``windowing`` section."""
        return cls(
            window_size=config.get("window_size", 20),
            window_offset=config.get("window_offset", 5),
            num_features=config.get("num_features", NUM_MOTION_FEATURES),
        )


class WindowExtractor:
    """Turns a sample stream into overlapping windows.

    A window is ready when the buffer has been fully written at least once,
    the write index sits on a stride boundary, and a whole stride still fits
    before the end of the window. The first ``window_size`` samples after a
    reset therefore never produce a window.

    Example:
        >>> extractor = WindowExtractor(WindowConfig())
        >>> for sample in samples:
        ...     window = extractor.push(sample)
        ...     if window is not None:
        ...         classify(window)
    """

    def __init__(self, config: Optional[WindowConfig] = None):
        self.config = config or WindowConfig()
        self._buffer = SampleRingBuffer(
            self.config.window_size,
            self.config.window_offset,
            self.config.num_features,
        )
        self._samples_seen = 0
        self._windows_emitted = 0

    def push(self, sample: MotionSample) -> Optional[Window]:
        """Buffer one sample and return the window it completes, if any."""
        self._buffer.write(sample)
        self._samples_seen += 1

        index = self._buffer.write_index
        offset = self.config.window_offset
        if not (self._buffer.is_data_available
                and index % offset == 0
                and index + offset <= self.config.window_size):
            return None

        slot = index // offset
        data, seqs = self._buffer.read(slot)
        self._windows_emitted += 1
        logger.debug("Window ready: slot=%d seq=%d..%d", slot, seqs[0], seqs[-1])
        return Window(slot, data, int(seqs[0]), int(seqs[-1]))

    def reset(self):
        """Clear the buffer so the next window needs a full refill."""
        self._buffer.reset()
        self._samples_seen = 0
        self._windows_emitted = 0

    @property
    def buffer(self) -> SampleRingBuffer:
        return self._buffer

    @property
    def samples_seen(self) -> int:
        return self._samples_seen

    @property
    def windows_emitted(self) -> int:
        return self._windows_emitted

    @property
    def samples_until_ready(self) -> int:
        """Samples still needed before the first window can appear."""
        if self._buffer.is_data_available:
            return 0
        return self.config.window_size - self._buffer.write_index
