"""
End-to-end tests for GesturePipeline
=====================================
"""

import pytest

from core.events import Events
from core.types import CycleOutcome, CycleState, GestureLabel, MotionSample
from core.pipeline import GesturePipeline
from modules.buffering.window_extractor import WindowConfig


class TestGesturePipeline:
    """Samples in, one decision per cycle out."""

    @pytest.fixture
    def make_pipeline(self, bus, timers):
        def build(classifier, **recognition):
            return GesturePipeline(
                classifier,
                window_config=WindowConfig(window_size=20, window_offset=5),
                recognition_config=recognition,
                event_bus=bus,
                timer_factory=timers,
            )
        return build

    def test_idle_samples_are_ignored(self, make_pipeline, stub_classifier, make_samples):
        classifier = stub_classifier()
        pipeline = make_pipeline(classifier)

        for sample in make_samples(30):
            assert pipeline.process_sample(sample) is None

        assert classifier.calls == []
        assert pipeline.stats["ignored_samples"] == 30
        assert pipeline.extractor.samples_seen == 0

    def test_rest_until_timeout(self, make_pipeline, stub_classifier, outcomes, timers):
        pipeline = make_pipeline(stub_classifier(GestureLabel.REST_IT, 1.0))
        pipeline.start_cycle(GestureLabel.CHOP_IT)

        for seq in range(20):
            assert pipeline.process_sample(MotionSample([0.0] * 6, seq=seq)) is None
        assert pipeline.state is CycleState.AWAITING
        assert outcomes == []

        timers.created[0].fire()

        assert [name for name, _ in outcomes] == [Events.GESTURE_TIMEOUT]
        assert pipeline.state is CycleState.RESOLVED

    def test_match_fires_once(self, make_pipeline, stub_classifier, make_samples, outcomes):
        classifier = stub_classifier(GestureLabel.SHAKE_IT, 0.95)
        pipeline = make_pipeline(classifier)
        pipeline.start_cycle(GestureLabel.SHAKE_IT)

        results = [pipeline.process_sample(s) for s in make_samples(20)]
        assert results[-1].outcome is CycleOutcome.MATCHED
        assert results[-1].slot == 0

        for sample in make_samples(30, start=20):
            assert pipeline.process_sample(sample) is None

        assert len(outcomes) == 1
        assert outcomes[0][0] == Events.GESTURE_MATCHED
        assert len(classifier.calls) == 1

    def test_mismatch_reports_labels(self, make_pipeline, stub_classifier, make_samples,
                                     outcomes):
        pipeline = make_pipeline(stub_classifier(GestureLabel.DRIVE_IT, 0.95))
        pipeline.start_cycle(GestureLabel.CHOP_IT)

        for sample in make_samples(20):
            pipeline.process_sample(sample)

        assert len(outcomes) == 1
        name, data = outcomes[0]
        assert name == Events.GESTURE_MISMATCHED
        assert (data["expected"], data["predicted"]) == (GestureLabel.CHOP_IT,
                                                        GestureLabel.DRIVE_IT)

    def test_slot_state_continuity(self, make_pipeline, stub_classifier, make_samples):
        classifier = stub_classifier(GestureLabel.REST_IT, 1.0)
        pipeline = make_pipeline(classifier)
        pipeline.start_cycle(GestureLabel.CHOP_IT)

        for sample in make_samples(40):
            pipeline.process_sample(sample)

        # Windows at samples 20, 25, 30, 35 (slots 0-3), then slot 0 again at 40
        assert len(classifier.calls) == 5
        assert [c["state"] for c in classifier.calls[:4]] == [None] * 4
        assert classifier.calls[4]["state"] == ("state", 0)
        assert classifier.calls[4]["data"][0, 0] == 20.0

    def test_new_cycle_starts_from_empty_state(self, make_pipeline, stub_classifier,
                                               make_samples):
        classifier = stub_classifier(GestureLabel.REST_IT, 1.0)
        pipeline = make_pipeline(classifier)

        pipeline.start_cycle(GestureLabel.CHOP_IT)
        for sample in make_samples(22):
            pipeline.process_sample(sample)
        pipeline.start_cycle(GestureLabel.DRIVE_IT)
        pipeline.start_cycle(GestureLabel.DRIVE_IT)

        # Buffer refills from scratch: no window for the next 19 samples
        for sample in make_samples(19, start=22):
            pipeline.process_sample(sample)
        assert len(classifier.calls) == 1

        pipeline.process_sample(MotionSample([0.0] * 6, seq=41))
        assert len(classifier.calls) == 2
        assert classifier.calls[1]["state"] is None
        assert pipeline.aggregator.slot_state(0) == ("state", 1)

    def test_classification_failure_keeps_awaiting(self, make_pipeline, stub_classifier,
                                                   make_samples, outcomes):
        classifier = stub_classifier(GestureLabel.CHOP_IT, 0.99, fail_calls={0})
        pipeline = make_pipeline(classifier)
        pipeline.start_cycle(GestureLabel.CHOP_IT)

        results = [pipeline.process_sample(s) for s in make_samples(25)]

        assert results[19] is None
        assert results[24].outcome is CycleOutcome.MATCHED
        assert results[24].slot == 1
        assert len(outcomes) == 1

    def test_clear_goes_idle(self, make_pipeline, stub_classifier, make_samples):
        pipeline = make_pipeline(stub_classifier())
        pipeline.start_cycle(GestureLabel.CHOP_IT)
        for sample in make_samples(10):
            pipeline.process_sample(sample)

        pipeline.clear()

        assert pipeline.state is CycleState.IDLE
        assert pipeline.expected is None
        assert pipeline.extractor.buffer.write_index == 0

    def test_window_ready_events(self, make_pipeline, stub_classifier, make_samples, bus):
        slots = []
        bus.subscribe(Events.WINDOW_READY, lambda slot=None, **kw: slots.append(slot))
        pipeline = make_pipeline(stub_classifier())
        pipeline.start_cycle(GestureLabel.CHOP_IT)

        for sample in make_samples(35):
            pipeline.process_sample(sample)

        assert slots == [0, 1, 2, 3]
        report = pipeline.performance.get_report()
        assert report["total_samples"] == 35
        assert report["total_windows"] == 4
