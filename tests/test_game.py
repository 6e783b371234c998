"""
Tests for the game session, simulated player and feedback phrases
==================================================================
"""

import threading
import time

import numpy as np
import pytest

from core.events import Events
from core.pipeline import GesturePipeline
from core.types import CycleOutcome, CycleResult, GestureLabel
from modules.capture.motion_sampler import MotionSampler
from modules.capture.motion_source import ReplayMotionSource, SyntheticMotionSource
from modules.control.feedback_manager import (
    FeedbackManager, PLAYED_TOO_LONG, PRAISE, TIMEOUT,
)
from modules.game.game_session import GameSession
from modules.game.simulated_player import SimulatedPlayer

GAME_CONFIG = {"prompt_delay": 0.0, "ready_delay": 0.0, "round_grace": 2.0, "seed": 1}


class TestFeedbackManager:

    @pytest.fixture
    def feedback(self):
        return FeedbackManager({"seed": 0})

    def test_prompts(self, feedback):
        assert feedback.prompt(GestureLabel.CHOP_IT) == "Chop it!"
        assert feedback.prompt(GestureLabel.DRIVE_IT) == "Drive it!"
        assert feedback.prompt(GestureLabel.SHAKE_IT) == "Shake it!"

    def test_mismatch_sentence(self, feedback):
        message = feedback.mismatch(GestureLabel.SHAKE_IT, GestureLabel.DRIVE_IT)
        assert message == "Oops. Sorry, it seems you drove it when you should have shaken it."

    def test_mismatch_unknown_prediction(self, feedback):
        message = feedback.mismatch(GestureLabel.CHOP_IT, None)
        assert "did something I didn't recognize" in message
        assert message.endswith("should have chopped it.")

    def test_praise_and_fixed_messages(self, feedback):
        assert feedback.praise() in PRAISE
        assert feedback.timeout() == TIMEOUT
        assert feedback.played_too_long() == PLAYED_TOO_LONG


class TestGameSession:
    """Rounds driven through a real pipeline and sampler."""

    @pytest.fixture
    def rig(self, bus):
        """Pipeline fed by a fast looping sampler; yields a builder."""
        created = []

        def build(classifier, gesture_timeout=2.0, max_score=999, with_sampler=True):
            pipeline = GesturePipeline(
                classifier,
                recognition_config={"gesture_timeout": gesture_timeout},
                event_bus=bus,
            )
            sampler = None
            if with_sampler:
                sampler = MotionSampler(
                    ReplayMotionSource(np.zeros((10, 6)), loop=True),
                    pipeline.process_sample,
                    {"sample_rate": 500.0},
                    event_bus=bus,
                )
                sampler.start()
            session = GameSession(pipeline, sampler, dict(GAME_CONFIG, max_score=max_score),
                                  event_bus=bus)
            created.append((session, sampler))
            return session, sampler

        yield build

        for session, sampler in created:
            session.close()
            if sampler is not None:
                sampler.stop()

    def test_match_scores(self, rig, stub_classifier, bus):
        scores = []
        bus.subscribe(Events.SCORE_UPDATED, lambda **kw: scores.append(kw))
        session, _ = rig(stub_classifier(GestureLabel.CHOP_IT, 0.95))

        result = session.play_round(GestureLabel.CHOP_IT)

        assert result.outcome is CycleOutcome.MATCHED
        assert session.score == 1
        assert not session.is_over
        assert scores[0]["score"] == 1
        assert scores[0]["message"] in PRAISE

    def test_mismatch_ends_game(self, rig, stub_classifier, bus):
        over = []
        bus.subscribe(Events.GAME_OVER, lambda **kw: over.append(kw))
        session, sampler = rig(stub_classifier(GestureLabel.CHOP_IT, 0.95))

        session.play_round(GestureLabel.CHOP_IT)
        result = session.play_round(GestureLabel.DRIVE_IT)

        assert result.outcome is CycleOutcome.MISMATCHED
        assert session.is_over
        assert session.score == 1
        assert session.final_message == (
            "Oops. Sorry, it seems you chopped it when you should have driven it."
        )
        assert len(over) == 1
        assert not sampler.is_enabled
        assert session.outcome_counts == {"matched": 1, "mismatched": 1, "timed_out": 0}

    def test_timeout_ends_game(self, rig, stub_classifier):
        session, _ = rig(stub_classifier(GestureLabel.REST_IT, 1.0), gesture_timeout=0.1,
                         with_sampler=False)

        started = time.monotonic()
        result = session.play_round(GestureLabel.SHAKE_IT)

        assert time.monotonic() - started < 1.5
        assert result.outcome is CycleOutcome.TIMED_OUT
        assert session.final_message == TIMEOUT

    def test_playing_past_max_score(self, rig, stub_classifier):
        session, _ = rig(stub_classifier(GestureLabel.SHAKE_IT, 0.99), max_score=1)

        session.play_round(GestureLabel.SHAKE_IT)
        assert not session.is_over
        session.play_round(GestureLabel.SHAKE_IT)

        assert session.is_over
        assert session.final_message == PLAYED_TOO_LONG

    def test_play_until_round_limit(self, rig, stub_classifier, bus):
        asked = {}
        bus.subscribe(Events.CYCLE_STARTED,
                      lambda expected=None, **kw: asked.update(expected=expected))
        classifier = stub_classifier(script=lambda i, data, state: (asked["expected"], 0.99))
        session, _ = rig(classifier)

        score = session.play(max_rounds=3)

        assert score == 3
        assert session.rounds == 3
        assert not session.is_over

    def test_close_detaches_listeners(self, bus, stub_classifier):
        pipeline = GesturePipeline(stub_classifier(), event_bus=bus)
        before = bus.listener_count
        session = GameSession(pipeline, config=GAME_CONFIG, event_bus=bus)
        assert bus.listener_count == before + 4

        session.close()
        assert bus.listener_count == before

        bus.emit(Events.CYCLE_STARTED, expected=GestureLabel.CHOP_IT, cycle_id=3)
        bus.emit(Events.GESTURE_MATCHED,
                 result=CycleResult(CycleOutcome.MATCHED, GestureLabel.CHOP_IT, cycle_id=3))
        assert session.score == 0

    def test_concurrent_matches_all_counted(self, rig, stub_classifier, bus):
        session, _ = rig(stub_classifier(), with_sampler=False)
        bus.emit(Events.CYCLE_STARTED, expected=GestureLabel.CHOP_IT, cycle_id=7)
        result = CycleResult(CycleOutcome.MATCHED, GestureLabel.CHOP_IT, cycle_id=7)

        def report_matches():
            for _ in range(100):
                bus.emit(Events.GESTURE_MATCHED, result=result)

        workers = [threading.Thread(target=report_matches) for _ in range(4)]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()

        assert session.score == 400
        assert not session.is_over


class TestSimulatedPlayer:

    def test_performs_requested_gesture(self, bus):
        source = SyntheticMotionSource(seed=0)
        player = SimulatedPlayer(source, accuracy=1.0, reaction_s=0.0, seed=0, event_bus=bus)

        bus.emit(Events.CYCLE_STARTED, expected=GestureLabel.DRIVE_IT, cycle_id=1)
        deadline = time.monotonic() + 1.0
        while source.current_gesture is GestureLabel.REST_IT and time.monotonic() < deadline:
            time.sleep(0.005)

        assert source.current_gesture is GestureLabel.DRIVE_IT
        player.close()

    def test_inaccurate_player_picks_other_gesture(self, bus):
        source = SyntheticMotionSource(seed=0)
        player = SimulatedPlayer(source, accuracy=0.0, reaction_s=0.0, seed=0, event_bus=bus)

        bus.emit(Events.CYCLE_STARTED, expected=GestureLabel.CHOP_IT, cycle_id=1)
        deadline = time.monotonic() + 1.0
        while source.current_gesture is GestureLabel.REST_IT and time.monotonic() < deadline:
            time.sleep(0.005)

        assert source.current_gesture in (GestureLabel.DRIVE_IT, GestureLabel.SHAKE_IT)
        player.close()
        assert bus.listener_count == 0
