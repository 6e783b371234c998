"""
Shared fixtures: fresh singletons, a scripted classifier, a manual timer.
"""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.events import EventBus, Events
from core.exceptions import ClassificationError
from core.types import GestureLabel, MotionSample, Prediction
from modules.recognition.classifier_adapter import SequenceClassifier
from modules.utils.config import Config


class StubClassifier(SequenceClassifier):
    """Returns a fixed label/confidence and records every call.

    ``script`` may be a callable ``(call_index, window_data, state) -> (label, confidence)``
    to vary the answer per call. Calls listed in ``fail_calls`` raise
    ClassificationError instead.
    """

    def __init__(self, label=GestureLabel.REST_IT, confidence=1.0, script=None,
                 fail_calls=()):
        self.label = label
        self.confidence = confidence
        self.script = script
        self.fail_calls = set(fail_calls)
        self.calls = []

    def predict(self, window_data, state=None):
        index = len(self.calls)
        self.calls.append({"data": np.array(window_data), "state": state})
        if index in self.fail_calls:
            raise ClassificationError(f"scripted failure on call {index}")

        label, confidence = self.label, self.confidence
        if self.script is not None:
            label, confidence = self.script(index, window_data, state)

        others = [g for g in GestureLabel if g != label]
        probabilities = {g: (1.0 - confidence) / len(others) for g in others}
        probabilities[label] = confidence
        return Prediction(label, probabilities, state=("state", index))


class ManualTimer:
    """Timer double: ``fire()`` runs the callback on the test thread."""

    def __init__(self, timeout_s, callback):
        self.timeout_s = timeout_s
        self.callback = callback
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        # Fires even after cancel, like a threading.Timer that lost the race
        self.callback()


@pytest.fixture(autouse=True)
def fresh_singletons():
    """Every test gets an empty event bus and default config."""
    EventBus().reset()
    Config.reset()
    yield
    EventBus().reset()
    Config.reset()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def timers():
    """Timer factory that keeps every ManualTimer it creates in ``.created``."""
    created = []

    def factory(timeout_s, callback):
        timer = ManualTimer(timeout_s, callback)
        created.append(timer)
        return timer

    factory.created = created
    return factory


@pytest.fixture
def outcomes(bus):
    """Records every outcome event as (event_name, kwargs)."""
    received = []
    for name in (Events.GESTURE_MATCHED, Events.GESTURE_MISMATCHED, Events.GESTURE_TIMEOUT):
        bus.subscribe(name, lambda _name=name, **kw: received.append((_name, kw)))
    return received


@pytest.fixture
def make_samples():
    """Build samples whose six values all equal their sequence number."""

    def build(count, start=0):
        return [MotionSample([float(seq)] * 6, seq=seq) for seq in range(start, start + count)]

    return build


@pytest.fixture
def stub_classifier():
    return StubClassifier
