"""
GestureIt game loop on top of the recognition pipeline.

Each round asks for a random gesture and opens a recognition cycle for it:
    matched    -> score + 1, praise, next round
    mismatched -> game over, "you X when you should have Y"
    timed out  -> game over, "time's run out"

Scoring past ``max_score`` also ends the game. Game over pauses the sensor
stream, the same way the app stops device motion updates.
"""

import time
import random
import logging
import threading
from typing import Optional

from core.events import EventBus, Events
from core.pipeline import GesturePipeline
from core.types import GESTURE_LABELS, CycleOutcome, CycleResult, GestureLabel
from modules.control.feedback_manager import FeedbackManager
from modules.utils.logger import GestureLogger

logger = logging.getLogger(__name__)


class GameSession:
    """Runs rounds of prompt -> recognition cycle -> score until game over."""

    def __init__(self, pipeline: GesturePipeline, sampler=None, config: Optional[dict] = None,
                 event_bus: Optional[EventBus] = None,
                 feedback: Optional[FeedbackManager] = None,
                 gesture_logger: Optional[GestureLogger] = None):
        config = config or {}
        self._pipeline = pipeline
        self._sampler = sampler
        self._bus = event_bus or EventBus()
        self._rng = random.Random(config.get("seed"))
        self._feedback = feedback or FeedbackManager(config)
        self._gesture_logger = gesture_logger or GestureLogger()

        self._max_score = config.get("max_score", 999)
        self._prompt_delay = config.get("prompt_delay", 0.2)
        self._ready_delay = config.get("ready_delay", 1.0)
        # Extra wait beyond the gesture timeout before a round is abandoned
        self._round_grace = config.get("round_grace", 1.0)

        self._lock = threading.Lock()
        self._round_done = threading.Event()
        self._score = 0
        self._rounds = 0
        self._over = False
        self._cycle_id = None
        self._prompted_at = 0.0
        self._final_message = None

        self._bus.subscribe(Events.CYCLE_STARTED, self._on_cycle_started)
        self._bus.subscribe(Events.GESTURE_MATCHED, self._on_matched)
        self._bus.subscribe(Events.GESTURE_MISMATCHED, self._on_mismatched)
        self._bus.subscribe(Events.GESTURE_TIMEOUT, self._on_timeout)

    # ------------------------------------------------------------------
    # Game loop
    # ------------------------------------------------------------------

    def next_gesture(self) -> GestureLabel:
        return self._rng.choice(GESTURE_LABELS)

    def play(self, max_rounds: Optional[int] = None) -> int:
        """Play until game over (or ``max_rounds``). Returns the final score."""
        self._bus.emit(Events.GESTURE_PROMPTED, gesture=None,
                       message=self._feedback.get_ready())
        time.sleep(self._ready_delay)

        while not self._over and (max_rounds is None or self._rounds < max_rounds):
            self.play_round(self.next_gesture())

        self._pipeline.clear()
        logger.info("Game finished: score=%d rounds=%d", self._score, self._rounds)
        return self._score

    def play_round(self, gesture: GestureLabel) -> Optional[CycleResult]:
        """Prompt for ``gesture`` and block until its cycle resolves."""
        self._rounds += 1
        self._bus.emit(Events.GESTURE_PROMPTED, gesture=gesture,
                       message=self._feedback.prompt(gesture))
        time.sleep(self._prompt_delay)

        self._round_done.clear()
        self._prompted_at = time.monotonic()
        self._pipeline.start_cycle(gesture)

        wait_s = self._pipeline.aggregator.timeout_s + self._round_grace
        if not self._round_done.wait(wait_s):
            # Safety net: the cycle timer never reported back
            logger.warning("Round %d did not resolve within %.1fs", self._rounds, wait_s)
            self._end_game(self._feedback.timeout(), None)

        self._pipeline.clear()
        return self._pipeline.aggregator.last_result

    # ------------------------------------------------------------------
    # Outcome handlers (run on the sampler or timer thread)
    # ------------------------------------------------------------------

    def _on_cycle_started(self, cycle_id=None, **kwargs):
        # Emitted inside start_cycle, before any sample of the new cycle is processed
        with self._lock:
            self._cycle_id = cycle_id

    def _is_current(self, result: CycleResult) -> bool:
        with self._lock:
            return result is not None and result.cycle_id == self._cycle_id

    def _on_matched(self, result: CycleResult = None, **kwargs):
        if not self._is_current(result):
            return
        latency_ms = (time.monotonic() - self._prompted_at) * 1000
        self._gesture_logger.log_result(result, latency_ms=latency_ms)

        with self._lock:
            self._score += 1
            score = self._score
        if score > self._max_score:
            self._end_game(self._feedback.played_too_long(), result)
        else:
            self._bus.emit(Events.SCORE_UPDATED, score=score,
                           message=self._feedback.praise(), result=result)
        self._round_done.set()

    def _on_mismatched(self, result: CycleResult = None, **kwargs):
        if not self._is_current(result):
            return
        self._gesture_logger.log_result(result)
        self._end_game(self._feedback.mismatch(result.expected, result.predicted), result)
        self._round_done.set()

    def _on_timeout(self, result: CycleResult = None, **kwargs):
        if not self._is_current(result):
            return
        self._gesture_logger.log_result(result)
        self._end_game(self._feedback.timeout(), result)
        self._round_done.set()

    def _end_game(self, message: str, result: Optional[CycleResult]):
        with self._lock:
            if self._over:
                return
            self._over = True
            self._final_message = message

        if self._sampler is not None:
            self._sampler.disable()
        logger.info("Game over (score %d): %s", self._score, message)
        self._bus.emit(Events.GAME_OVER, score=self._score, message=message, result=result)

    def close(self):
        """Detach from the event bus."""
        self._bus.unsubscribe(Events.CYCLE_STARTED, self._on_cycle_started)
        self._bus.unsubscribe(Events.GESTURE_MATCHED, self._on_matched)
        self._bus.unsubscribe(Events.GESTURE_MISMATCHED, self._on_mismatched)
        self._bus.unsubscribe(Events.GESTURE_TIMEOUT, self._on_timeout)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def score(self) -> int:
        return self._score

    @property
    def rounds(self) -> int:
        return self._rounds

    @property
    def is_over(self) -> bool:
        return self._over

    @property
    def final_message(self) -> Optional[str]:
        return self._final_message

    @property
    def outcome_counts(self) -> dict:
        counts = {outcome.value: 0 for outcome in CycleOutcome}
        for entry in self._gesture_logger.get_history():
            counts[entry["outcome"]] += 1
        return counts
