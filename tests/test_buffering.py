"""
Tests for the sample ring buffer and window extractor
======================================================
"""

import numpy as np
import pytest

from core.exceptions import SetupError
from core.types import MotionSample
from modules.buffering.ring_buffer import SampleRingBuffer
from modules.buffering.window_extractor import WindowConfig, WindowExtractor


class TestSampleRingBuffer:
    """Test suite for SampleRingBuffer."""

    @pytest.fixture
    def buffer(self):
        return SampleRingBuffer(window_size=20, window_offset=5)

    def test_geometry(self, buffer):
        assert buffer.num_windows == 4
        assert buffer.buffer_size == 35
        assert buffer.write_index == 0
        assert not buffer.is_data_available

    def test_invalid_sizes(self):
        with pytest.raises(SetupError):
            SampleRingBuffer(window_size=0, window_offset=5)
        with pytest.raises(SetupError):
            SampleRingBuffer(window_size=20, window_offset=25)

    def test_data_available_after_full_pass(self, buffer, make_samples):
        samples = make_samples(20)
        for sample in samples[:19]:
            buffer.write(sample)
        assert not buffer.is_data_available
        assert buffer.write_index == 19

        buffer.write(samples[19])
        assert buffer.is_data_available
        assert buffer.write_index == 0

    def test_read_wraps_in_arrival_order(self, buffer, make_samples):
        for sample in make_samples(25):
            buffer.write(sample)

        data, seqs = buffer.read(1)
        assert list(seqs) == list(range(5, 25))
        assert np.array_equal(data[:, 0], np.arange(5, 25, dtype=float))

    def test_read_returns_copy(self, buffer, make_samples):
        for sample in make_samples(20):
            buffer.write(sample)
        data, _ = buffer.read(0)
        buffer.write(MotionSample([99.0] * 6, seq=99))
        assert data[0, 0] == 0.0

    def test_read_out_of_range(self, buffer):
        with pytest.raises(IndexError):
            buffer.read(4)
        with pytest.raises(IndexError):
            buffer.read(-1)

    def test_rejects_wrong_feature_count(self):
        buffer = SampleRingBuffer(window_size=4, window_offset=2, num_features=3)
        with pytest.raises(ValueError):
            buffer.write(MotionSample([0.0] * 6))

    def test_reset_is_idempotent(self, buffer, make_samples):
        for sample in make_samples(23):
            buffer.write(sample)

        buffer.reset()
        once = (buffer.write_index, buffer.is_data_available)
        buffer.reset()
        assert (buffer.write_index, buffer.is_data_available) == once == (0, False)


class TestWindowConfig:

    def test_defaults(self):
        cfg = WindowConfig()
        assert (cfg.window_size, cfg.window_offset) == (20, 5)
        assert cfg.num_windows == 4
        assert cfg.buffer_size == 35

    def test_from_dict(self):
        cfg = WindowConfig.from_dict({"window_size": 12, "window_offset": 4})
        assert cfg.num_windows == 3

    def test_offset_larger_than_window(self):
        with pytest.raises(SetupError):
            WindowConfig(window_size=10, window_offset=11)

    def test_feature_count_must_match_samples(self):
        with pytest.raises(SetupError):
            WindowConfig(num_features=3)
        with pytest.raises(SetupError):
            WindowConfig.from_dict({"num_features": 9})


class TestWindowExtractor:
    """Test suite for window readiness and slot scheduling."""

    @pytest.fixture
    def extractor(self):
        return WindowExtractor(WindowConfig(window_size=20, window_offset=5))

    def test_no_window_before_buffer_full(self, extractor, make_samples):
        windows = [extractor.push(s) for s in make_samples(19)]
        assert all(w is None for w in windows)
        assert extractor.samples_until_ready == 1

    def test_first_window_on_sample_twenty(self, extractor, make_samples):
        windows = [extractor.push(s) for s in make_samples(21)]
        ready = [(i, w) for i, w in enumerate(windows) if w is not None]

        assert len(ready) == 1
        index, window = ready[0]
        assert index == 19
        assert window.slot == 0
        assert (window.first_seq, window.last_seq) == (0, 19)
        assert len(window) == 20

    def test_slots_cycle_in_order(self, extractor, make_samples):
        windows = [w for w in (extractor.push(s) for s in make_samples(60)) if w is not None]
        assert [w.slot for w in windows] == [0, 1, 2, 3, 0, 1, 2, 3, 0]
        assert [w.first_seq for w in windows] == [0, 5, 10, 15, 20, 25, 30, 35, 40]

    def test_consecutive_windows_overlap(self, extractor, make_samples):
        windows = [w for w in (extractor.push(s) for s in make_samples(40)) if w is not None]
        overlap = 20 - 5
        for current, following in zip(windows, windows[1:]):
            assert np.array_equal(current.data[5:], following.data[:overlap])

    def test_reset_requires_full_refill(self, extractor, make_samples):
        for sample in make_samples(27):
            extractor.push(sample)

        extractor.reset()
        extractor.reset()
        assert extractor.buffer.write_index == 0
        assert not extractor.buffer.is_data_available
        assert extractor.windows_emitted == 0

        windows = [extractor.push(s) for s in make_samples(20, start=100)]
        assert [w.slot for w in windows if w is not None] == [0]
        assert windows[-1].first_seq == 100
