"""
Performance Sampler.

Converts raw per-frame timing into a stable frame-rate signal.

A backgrounded tab can report a single multi-second "frame". Left in the
window, that one sample would dominate the rolling average for the whole
window, so such frames are discarded instead of stored.
"""

from __future__ import annotations

import math
from collections import deque
from typing import Deque

import numpy as np
from loguru import logger


class PerformanceSampler:
    """
    Rolling window of frame durations with a smoothed fps readout.

    The window is a fixed-capacity FIFO: once full, each accepted sample
    evicts the oldest one.
    """

    def __init__(
        self,
        window_size: int = 60,
        max_frame_ms: float = 1000.0,  # slower than 1 fps is an anomaly
        min_fps: float = 1.0,
        max_fps: float = 240.0,
        target_fps: float = 60.0,
    ):
        """
        Initialize performance sampler.

        Args:
            window_size: Number of frames kept in the rolling window
            max_frame_ms: Frame durations above this are discarded
            min_fps: Lower clamp for smoothed fps
            max_fps: Upper clamp for smoothed fps
            target_fps: Frame rate that maps to a normalized score of 1.0
        """
        if not 1 <= window_size <= 10000:
            raise ValueError(f"window_size must be in 1..10000, got {window_size}")
        if not max_frame_ms > 0:
            raise ValueError(f"max_frame_ms must be > 0, got {max_frame_ms}")
        if not 0 < min_fps < max_fps:
            raise ValueError(f"fps range must satisfy 0 < min_fps < max_fps, got [{min_fps}, {max_fps}]")
        if not target_fps > 0:
            raise ValueError(f"target_fps must be > 0, got {target_fps}")

        self.window_size = window_size
        self.max_frame_ms = max_frame_ms
        self.min_fps = min_fps
        self.max_fps = max_fps
        self.target_fps = target_fps

        self._window: Deque[float] = deque(maxlen=window_size)
        self._accepted_count: int = 0
        self._rejected_count: int = 0

    def sample(self, delta_ms: float) -> bool:
        """
        Record one frame duration.

        Args:
            delta_ms: Frame duration in milliseconds

        Returns:
            True if the sample entered the window, False if discarded
        """
        try:
            value = float(delta_ms)
        except (TypeError, ValueError):
            value = math.nan

        if not math.isfinite(value) or value <= 0 or value > self.max_frame_ms:
            self._rejected_count += 1
            logger.debug(f"Discarded frame sample: {delta_ms!r} ms")
            return False

        self._window.append(value)
        self._accepted_count += 1
        return True

    def get_smoothed_fps(self) -> float:
        """
        Frame rate from the mean frame duration in the window.

        Returns:
            fps clamped to [min_fps, max_fps], or 0.0 with no samples yet
        """
        if not self._window:
            return 0.0

        mean_ms = float(np.mean(self._window))
        fps = 1000.0 / mean_ms
        return max(self.min_fps, min(self.max_fps, fps))

    def get_normalized_score(self) -> float:
        """Smoothed fps as a 0-1 fraction of the target, for display only."""
        return max(0.0, min(1.0, self.get_smoothed_fps() / self.target_fps))

    @property
    def sample_count(self) -> int:
        """Number of samples currently in the window."""
        return len(self._window)

    @property
    def accepted_count(self) -> int:
        """Samples accepted since creation or the last reset."""
        return self._accepted_count

    @property
    def rejected_count(self) -> int:
        return self._rejected_count

    @property
    def is_full(self) -> bool:
        return len(self._window) == self.window_size

    def reset(self):
        """Drop all samples."""
        self._window.clear()
        self._accepted_count = 0
        self._rejected_count = 0
        logger.debug("Performance sampler reset")
