#!/usr/bin/env python3
"""
Synchronized Breathing Core

Headless runner for the breathing clock and adaptive quality controller.
Logs phase changes and quality changes as they happen.

Usage:
    python main.py [--config CONFIG_PATH] [--duration SECONDS] [--fps FPS]

Examples:
    python main.py --duration 20
    python main.py --simulate-load 30 --log-level DEBUG
    python main.py --preset low
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path
from typing import Optional

from loguru import logger

from breathsync.breath.breath_clock import BreathClock
from breathsync.breath.phase_tracker import PhaseChange
from breathsync.config.loader import (
    build_breath_config,
    build_classifier,
    build_quality_config,
    build_sampler,
    build_session_config,
    load_config,
    storage_key,
)
from breathsync.pipeline.session import BreathingSession, FrameTimer
from breathsync.quality.preference_store import (
    JsonPreferenceStore,
    MemoryPreferenceStore,
    PreferenceStore,
)
from breathsync.quality.quality_controller import QualityController, QualitySnapshot


# ============================================================
# LOGGING CONFIGURATION
# ============================================================

def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None):
    """Configure logging."""
    logger.remove()  # Remove default handler

    # Console output with colors
    logger.add(
        sys.stderr,
        level=log_level,
        format="<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{module}</cyan>:<cyan>{line}</cyan> | <level>{message}</level>",
        colorize=True,
    )

    # File output
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level="DEBUG",
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {module}:{line} | {message}",
            rotation="10 MB",
            retention="7 days",
        )


# ============================================================
# APPLICATION
# ============================================================

class BreathingApp:
    """Main application class."""

    def __init__(
        self,
        config_path: Optional[str] = None,
        preferences_path: Optional[str] = None,
        fps: Optional[float] = None,
        simulate_load_ms: float = 0.0,
    ):
        self.config = load_config(config_path)

        session_config = build_session_config(self.config)
        self.fps = fps or session_config.target_fps
        if not self.fps > 0:
            raise ValueError(f"fps must be > 0, got {self.fps}")
        self.simulate_load_ms = max(0.0, simulate_load_ms)

        store = self._create_store(preferences_path or session_config.preferences_path)
        self.controller = QualityController(
            quality_config=build_quality_config(self.config),
            store=store,
            sampler=build_sampler(self.config),
            classifier=build_classifier(self.config),
            storage_key=storage_key(self.config),
        )
        self.session = BreathingSession(
            clock=BreathClock(build_breath_config(self.config)),
            controller=self.controller,
        )

        self.controller.subscribe(self._on_quality_change)
        self.session.phase_tracker.on_phase_change(self._on_phase_change)

        self._running = False

    def _create_store(self, path: Optional[str]) -> PreferenceStore:
        if path:
            return JsonPreferenceStore(path)
        return MemoryPreferenceStore()

    def _on_phase_change(self, change: PhaseChange):
        logger.info(f"{change.phase.label}")

    def _on_quality_change(self, snapshot: QualitySnapshot):
        perf = snapshot.performance
        if perf is None:
            logger.info(f"Quality: {snapshot.effective_level.value} (preset {snapshot.preset.value})")
            return
        warning = " [throttling]" if perf.is_throttling else ""
        logger.info(
            f"Quality: {snapshot.effective_level.value} (preset {snapshot.preset.value}, "
            f"{perf.average_fps:.1f} fps, score {perf.normalized_score:.2f}){warning}"
        )

    def run(self, duration_seconds: Optional[float] = None):
        """Run the frame loop until the duration elapses or Ctrl+C."""
        logger.info("Starting breathing session")
        logger.info("Press Ctrl+C to quit")

        frame_budget = 1.0 / self.fps
        timer = FrameTimer()
        started = time.monotonic()
        self._running = True

        try:
            while self._running:
                frame_start = time.monotonic()
                if duration_seconds is not None and frame_start - started >= duration_seconds:
                    break

                self.session.tick(timer.lap())

                # Synthetic render cost for exercising the adaptive downgrade
                if self.simulate_load_ms > 0:
                    time.sleep(self.simulate_load_ms / 1000.0)

                remaining = frame_budget - (time.monotonic() - frame_start)
                if remaining > 0:
                    time.sleep(remaining)

        except KeyboardInterrupt:
            logger.info("Interrupted by user")
        finally:
            self._running = False
            perf = self.controller.performance_metrics
            summary = f"{perf.average_fps:.1f} fps" if perf else "no metrics"
            logger.info(
                f"Session stopped after {self.session.frame_index} frames "
                f"({summary}, quality {self.controller.effective_level.value})"
            )

    def stop(self):
        self._running = False


# ============================================================
# ENTRY POINT
# ============================================================

def main(argv: Optional[list] = None):
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Synchronized breathing clock with adaptive quality",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to configuration file",
    )

    parser.add_argument(
        "--duration", "-d",
        type=float,
        default=None,
        help="Seconds to run (default: until Ctrl+C)",
    )

    parser.add_argument(
        "--fps",
        type=float,
        default=None,
        help="Frame rate of the loop (default: session.target_fps)",
    )

    parser.add_argument(
        "--preset",
        type=str,
        default=None,
        choices=["auto", "low", "medium", "high"],
        help="Set and persist the quality preset before running",
    )

    parser.add_argument(
        "--simulate-load",
        type=float,
        default=0.0,
        metavar="MS",
        help="Extra milliseconds of synthetic work per frame",
    )

    parser.add_argument(
        "--preferences",
        type=str,
        default=None,
        help="Preferences JSON file (default: session.preferences_path)",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Log file path (default: console only)",
    )

    args = parser.parse_args(argv)

    # Setup logging
    setup_logging(args.log_level, args.log_file)

    # Create and run app
    app = BreathingApp(
        config_path=args.config,
        preferences_path=args.preferences,
        fps=args.fps,
        simulate_load_ms=args.simulate_load,
    )
    if args.preset:
        app.controller.set_preset(args.preset)
    app.run(args.duration)


if __name__ == "__main__":
    main()
