"""
Exception hierarchy for the motion engine.
"""


class GestureEngineError(Exception):
    """Base class for all engine errors."""


class SetupError(GestureEngineError):
    """Buffers or model could not be created. The session cannot run."""


class ClassificationError(GestureEngineError):
    """A single window could not be classified. The window is skipped."""

    def __init__(self, message: str, slot=None):
        super().__init__(message)
        self.slot = slot
