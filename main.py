#!/usr/bin/env python3
"""
GestureIt - motion gesture game engine
Main application entry point.

Architecture:
    MotionSampler (producer/consumer threads)
        -> core.GesturePipeline (ring buffer, windows, aggregator)
        -> core.EventBus -> GameSession / GestureLogger / listeners

Usage:
    python main.py                      # Play with the simulated player
    python main.py --mode benchmark     # Stream synthetic motion, print timings
    python main.py --rounds 10 --accuracy 0.8 --seed 7
"""

import os
import sys
import signal
import logging
import argparse

import numpy as np

PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, PROJECT_ROOT)

from core.events import EventBus, Events
from core.exceptions import SetupError
from core.pipeline import GesturePipeline
from core.types import GESTURE_LABELS
from models.hybrid_classifier import HybridClassifier
from modules.buffering.window_extractor import WindowConfig
from modules.capture.motion_sampler import MotionSampler
from modules.capture.motion_source import ReplayMotionSource, SyntheticMotionSource
from modules.game.game_session import GameSession
from modules.game.simulated_player import SimulatedPlayer
from modules.utils.config import Config
from modules.utils.logger import setup_logging, GestureLogger, log_timing
from modules.utils.performance_monitor import PerformanceMonitor

logger = logging.getLogger(__name__)


class GestureItApp:
    """Wires sampler, pipeline and game together."""

    def __init__(self, config: Config, seed=None, accuracy: float = 0.9):
        self._config = config
        self._bus = EventBus()
        self._perf = PerformanceMonitor()
        self._gesture_logger = GestureLogger()

        model_cfg = dict(config.model)
        checkpoint = model_cfg.get("checkpoint")
        if checkpoint and not os.path.isabs(checkpoint):
            model_cfg["checkpoint"] = os.path.join(config.base_dir, checkpoint)
        self._classifier = HybridClassifier(model_cfg)

        window_cfg = dict(config.windowing)
        window_cfg["num_features"] = config.get("sampling.num_features", 6)
        self._pipeline = GesturePipeline(
            self._classifier,
            window_config=WindowConfig.from_dict(window_cfg),
            recognition_config=config.recognition,
            event_bus=self._bus,
            performance_monitor=self._perf,
        )

        self._source = SyntheticMotionSource(
            sample_rate=config.get("sampling.sample_rate", 25.0), seed=seed,
        )
        self._sampler = MotionSampler(
            self._source,
            self._pipeline.process_sample,
            config.sampling,
            event_bus=self._bus,
            performance_monitor=self._perf,
        )

        game_cfg = dict(config.game)
        if seed is not None:
            game_cfg["seed"] = seed
        self._player = SimulatedPlayer(self._source, accuracy=accuracy, seed=seed,
                                       event_bus=self._bus)
        self._game = GameSession(self._pipeline, self._sampler, game_cfg,
                                 event_bus=self._bus, gesture_logger=self._gesture_logger)

        self._bus.subscribe(Events.GESTURE_PROMPTED, self._on_message)
        self._bus.subscribe(Events.SCORE_UPDATED, self._on_message)
        self._bus.subscribe(Events.GAME_OVER, self._on_message)
        self._bus.subscribe(Events.SENSOR_ERROR, self._on_sensor_error)

        logger.info("GestureIt initialized (classifier backend: %s)", self._classifier.backend)

    def _on_message(self, message=None, **kwargs):
        if message:
            logger.info(">> %s", message)

    def _on_sensor_error(self, error=None, **kwargs):
        logger.error("Device motion data is unavailable: %s", error)

    def play(self, rounds=None) -> int:
        self._bus.emit(Events.SYSTEM_STARTED)
        self._sampler.start()
        try:
            return self._game.play(max_rounds=rounds)
        finally:
            self.shutdown()

    @log_timing
    def benchmark(self, num_samples: int = 2500):
        """Push synthetic motion through the pipeline as fast as possible."""
        rng = np.random.default_rng(0)
        source = SyntheticMotionSource(seed=0)
        samples = []
        for i in range(num_samples):
            if i % 50 == 0:
                source.perform(GESTURE_LABELS[rng.integers(len(GESTURE_LABELS))])
            samples.append(source.read())

        # Never resolve: threshold cannot be exceeded and the timeout outlives the run
        pipeline = GesturePipeline(
            self._classifier,
            window_config=self._pipeline.extractor.config,
            recognition_config=dict(self._config.recognition,
                                    prediction_threshold=1.0, gesture_timeout=3600.0),
            event_bus=self._bus,
            performance_monitor=self._perf,
        )
        sampler = MotionSampler(
            ReplayMotionSource(np.array(samples)),
            pipeline.process_sample,
            dict(self._config.sampling, realtime=False),
            event_bus=self._bus,
            performance_monitor=self._perf,
        )
        pipeline.start_cycle(GESTURE_LABELS[0])
        sampler.start()
        sampler.wait_until_exhausted()
        sampler.stop()
        pipeline.clear()

        self._perf.print_report()
        logger.info("Pipeline stats: %s", pipeline.stats)
        logger.info("Classifier stats: %s", self._classifier.stats)

    def shutdown(self):
        logger.info("Shutting down...")
        self._sampler.stop()
        self._game.close()
        self._player.close()
        self._bus.emit(Events.SYSTEM_SHUTDOWN)
        self._perf.print_report()
        logger.info("Final score: %d (%s)", self._game.score, self._game.outcome_counts)

    def handle_signal(self, signum, frame):
        """Handle SIGINT/SIGTERM for graceful shutdown."""
        logger.info("Signal %d received, shutting down...", signum)
        self._sampler.stop()
        sys.exit(0)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="GestureIt - motion gesture game engine")
    parser.add_argument(
        "--mode", choices=["play", "benchmark"], default="play",
        help="Operating mode"
    )
    parser.add_argument("--config", type=str, default=None, help="Path to config.yaml")
    parser.add_argument("--rounds", type=int, default=None, help="Stop after N rounds")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument(
        "--accuracy", type=float, default=0.9,
        help="Probability the simulated player performs the right gesture"
    )
    parser.add_argument("--model", type=str, default=None, help="GestureLSTM checkpoint (.pth)")
    parser.add_argument("--samples", type=int, default=2500, help="Benchmark sample count")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    config = Config()
    config.load(config_path=args.config)
    if args.model:
        config.set("model.checkpoint", args.model)

    log_cfg = config.get_section("logging")
    log_file = log_cfg.get("file")
    if log_file and not os.path.isabs(log_file):
        log_file = os.path.join(config.base_dir, log_file)
    setup_logging(
        level=log_cfg.get("level", "INFO"),
        log_file=log_file,
        max_size_mb=log_cfg.get("max_size_mb", 10),
        backup_count=log_cfg.get("backup_count", 3),
    )

    logger.info("=" * 50)
    logger.info("  GESTUREIT - motion gesture engine")
    logger.info("  Mode: %s", args.mode)
    logger.info("=" * 50)

    try:
        app = GestureItApp(config, seed=args.seed, accuracy=args.accuracy)
    except SetupError as e:
        logger.error("Unable to play: %s", e)
        return 1

    signal.signal(signal.SIGINT, app.handle_signal)
    signal.signal(signal.SIGTERM, app.handle_signal)

    if args.mode == "benchmark":
        app.benchmark(args.samples)
    else:
        app.play(rounds=args.rounds)
    return 0


if __name__ == "__main__":
    sys.exit(main())
