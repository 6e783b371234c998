"""
Tests for the application entry point
======================================
"""

from unittest.mock import patch

import pytest
import yaml

import main
from modules.utils.config import Config


@pytest.fixture
def config(tmp_path):
    """Shipped defaults with fast game timings and no log file."""
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({
        "model": {"checkpoint": str(tmp_path / "absent.pth")},
        "game": {"ready_delay": 0.0, "prompt_delay": 0.0},
        "logging": {"file": None},
    }))
    return Config().load(str(path)), str(path)


class TestParseArgs:

    def test_defaults(self):
        args = main.parse_args([])
        assert args.mode == "play"
        assert args.accuracy == 0.9
        assert args.rounds is None

    def test_benchmark_flags(self):
        args = main.parse_args(["--mode", "benchmark", "--samples", "300", "--seed", "4"])
        assert (args.mode, args.samples, args.seed) == ("benchmark", 300, 4)

    def test_rejects_unknown_mode(self):
        with pytest.raises(SystemExit):
            main.parse_args(["--mode", "calibrate"])


class TestGestureItApp:

    def test_uses_rules_without_checkpoint(self, config):
        app = main.GestureItApp(config[0], seed=1)
        assert app._classifier.backend == "rules"
        app.shutdown()

    def test_benchmark_streams_every_sample(self, config):
        app = main.GestureItApp(config[0], seed=1)
        app.benchmark(200)

        report = app._perf.get_report()
        assert report["total_samples"] == 200
        assert report["total_windows"] == (200 - 20) // 5 + 1
        assert app._game.score == 0
        app.shutdown()


class TestMain:

    @patch("main.setup_logging")
    def test_missing_required_model_exits_with_error(self, mock_logging, tmp_path):
        path = tmp_path / "strict.yaml"
        path.write_text(yaml.safe_dump({
            "model": {"checkpoint": str(tmp_path / "absent.pth"), "require_model": True},
            "logging": {"file": None},
        }))
        assert main.main(["--config", str(path)]) == 1
        mock_logging.assert_called_once()

    @patch("main.signal.signal")
    @patch("main.setup_logging")
    def test_benchmark_mode(self, mock_logging, mock_signal, config):
        assert main.main(["--mode", "benchmark", "--samples", "60", "--config", config[1]]) == 0
        assert mock_signal.call_count == 2

    @patch("main.setup_logging")
    def test_unsupported_feature_count_exits_with_error(self, mock_logging, tmp_path):
        path = tmp_path / "features.yaml"
        path.write_text(yaml.safe_dump({
            "sampling": {"num_features": 3},
            "model": {"checkpoint": str(tmp_path / "absent.pth")},
            "logging": {"file": None},
        }))
        assert main.main(["--config", str(path)]) == 1
