"""
Turns per-window predictions into one decision per expected-gesture cycle.

State machine:
    IDLE      -> no expected gesture, windows are ignored
    AWAITING  -> expected gesture set, slot states cleared, timeout running
    RESOLVED  -> matched, mismatched or timed out; further windows ignored

Only the first confident non-rest prediction of a cycle counts. The timeout
fires on its own thread, so every transition out of AWAITING happens under
one lock and checks the cycle id it was armed for. Whichever of
{confident prediction, timeout} gets there first wins; the other is a no-op.

Recurrent state is kept per window slot: slot k is always classified with
the state slot k produced the previous time it fired in the same cycle.
"""

import time
import logging
import threading
from functools import partial
from typing import Any, Callable, Dict, Optional

from core.events import EventBus, Events
from core.exceptions import ClassificationError
from core.types import (
    CycleOutcome, CycleResult, CycleState, GestureLabel, Prediction, Window,
)
from modules.control.gesture_timer import GestureTimer
from modules.recognition.classifier_adapter import SequenceClassifier

logger = logging.getLogger(__name__)


class PredictionAggregator:
    """Threshold + first-wins decision over overlapping window predictions."""

    def __init__(self, classifier: SequenceClassifier, config: Optional[dict] = None,
                 event_bus: Optional[EventBus] = None,
                 timer_factory: Optional[Callable[[float, Callable], Any]] = None):
        config = config or {}
        self._classifier = classifier
        self._threshold = config.get("prediction_threshold", 0.9)
        self._timeout_s = config.get("gesture_timeout", 1.5)
        self._rest_label = GestureLabel.from_string(config.get("rest_label", "rest_it"))
        self._bus = event_bus or EventBus()
        self._timer_factory = timer_factory or GestureTimer

        self._lock = threading.Lock()
        self._state = CycleState.IDLE
        self._expected: Optional[GestureLabel] = None
        self._cycle_id = 0
        self._cycle_start = 0.0
        self._timer = None
        self._slot_states: Dict[int, Any] = {}
        self._last_result: Optional[CycleResult] = None

        # Stats
        self._windows_evaluated = 0
        self._failed_windows = 0

    # ------------------------------------------------------------------
    # Cycle control
    # ------------------------------------------------------------------

    def begin(self, expected: GestureLabel) -> int:
        """Enter AWAITING for ``expected`` and arm the timeout.

        Any pending timer from an earlier cycle is cancelled and its firing
        becomes a no-op. Returns the new cycle id.
        """
        expected = GestureLabel.from_string(expected)
        if expected == self._rest_label:
            raise ValueError(f"Cannot expect the rest label '{expected.value}'")

        with self._lock:
            self._cancel_timer()
            self._slot_states.clear()
            self._expected = expected
            self._state = CycleState.AWAITING
            self._cycle_id += 1
            self._cycle_start = time.monotonic()
            self._last_result = None
            cycle_id = self._cycle_id

            self._timer = self._timer_factory(self._timeout_s, partial(self._on_timeout, cycle_id))
            self._timer.start()

        logger.debug("Cycle %d: awaiting %s (timeout %.2fs)",
                     cycle_id, expected.value, self._timeout_s)
        self._bus.emit(Events.CYCLE_STARTED, expected=expected, cycle_id=cycle_id)
        return cycle_id

    def clear(self):
        """Return to IDLE, dropping the expected gesture and all slot states."""
        with self._lock:
            self._cancel_timer()
            self._state = CycleState.IDLE
            self._expected = None
            self._slot_states.clear()

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    # ------------------------------------------------------------------
    # Window evaluation
    # ------------------------------------------------------------------

    def evaluate(self, window: Window) -> Optional[CycleResult]:
        """Classify a ready window and resolve the cycle if it is decisive.

        Returns the CycleResult when this window resolved the cycle,
        otherwise None.
        """
        with self._lock:
            if self._state is not CycleState.AWAITING:
                return None
            cycle_id = self._cycle_id
            prior_state = self._slot_states.get(window.slot)

        try:
            prediction = self._classifier.safe_predict(window.data, prior_state)
        except ClassificationError as e:
            with self._lock:
                if cycle_id == self._cycle_id:
                    self._slot_states.pop(window.slot, None)
                self._failed_windows += 1
            logger.warning("Skipping window %s: %s", window, e)
            self._bus.emit(Events.CLASSIFICATION_FAILED, slot=window.slot, error=e)
            return None

        with self._lock:
            if cycle_id != self._cycle_id or self._state is not CycleState.AWAITING:
                # Cycle restarted, cleared or resolved while classifying
                return None
            self._slot_states[window.slot] = prediction.state
            self._windows_evaluated += 1
            result = self._decide(prediction, window.slot)

        logger.debug("Slot %d -> %s", window.slot, prediction)
        self._bus.emit(Events.PREDICTION_MADE, slot=window.slot, prediction=prediction)

        if result is not None:
            self._announce(result)
        return result

    def _decide(self, prediction: Prediction, slot: int) -> Optional[CycleResult]:
        """Apply the decision rule. Caller holds the lock."""
        if prediction.label == self._rest_label:
            return None
        if prediction.confidence <= self._threshold:
            return None

        outcome = (CycleOutcome.MATCHED if prediction.label == self._expected
                   else CycleOutcome.MISMATCHED)
        return self._resolve(outcome, prediction.label, prediction.confidence, slot)

    def _resolve(self, outcome: CycleOutcome, predicted=None, confidence=0.0,
                 slot=None) -> CycleResult:
        """Move AWAITING -> RESOLVED. Caller holds the lock."""
        self._cancel_timer()
        self._state = CycleState.RESOLVED
        self._last_result = CycleResult(
            outcome,
            self._expected,
            predicted=predicted,
            confidence=confidence,
            slot=slot,
            cycle_id=self._cycle_id,
            elapsed_s=time.monotonic() - self._cycle_start,
        )
        return self._last_result

    def _on_timeout(self, cycle_id: int):
        with self._lock:
            if cycle_id != self._cycle_id or self._state is not CycleState.AWAITING:
                logger.debug("Stale timeout for cycle %d ignored", cycle_id)
                return
            self._timer = None
            result = self._resolve(CycleOutcome.TIMED_OUT)
        self._announce(result)

    def _announce(self, result: CycleResult):
        logger.info("Cycle %d %s: expected=%s predicted=%s conf=%.2f (%.2fs)",
                    result.cycle_id, result.outcome.value, result.expected.value,
                    result.predicted.value if result.predicted else "-",
                    result.confidence, result.elapsed_s)

        if result.outcome is CycleOutcome.MATCHED:
            self._bus.emit(Events.GESTURE_MATCHED, expected=result.expected,
                           confidence=result.confidence, result=result)
        elif result.outcome is CycleOutcome.MISMATCHED:
            self._bus.emit(Events.GESTURE_MISMATCHED, expected=result.expected,
                           predicted=result.predicted, confidence=result.confidence,
                           result=result)
        else:
            self._bus.emit(Events.GESTURE_TIMEOUT, expected=result.expected, result=result)

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def slot_state(self, slot: int) -> Any:
        """Stored recurrent state for a window slot (None when cleared)."""
        with self._lock:
            return self._slot_states.get(slot)

    @property
    def state(self) -> CycleState:
        return self._state

    @property
    def expected(self) -> Optional[GestureLabel]:
        return self._expected

    @property
    def cycle_id(self) -> int:
        return self._cycle_id

    @property
    def last_result(self) -> Optional[CycleResult]:
        return self._last_result

    @property
    def is_awaiting(self) -> bool:
        return self._state is CycleState.AWAITING

    @property
    def threshold(self) -> float:
        return self._threshold

    @property
    def timeout_s(self) -> float:
        return self._timeout_s

    @property
    def stats(self) -> dict:
        with self._lock:
            return {
                "cycles": self._cycle_id,
                "windows_evaluated": self._windows_evaluated,
                "failed_windows": self._failed_windows,
                "stored_slots": len(self._slot_states),
            }
