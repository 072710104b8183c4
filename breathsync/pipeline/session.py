"""
Breathing Session.

Runs the per-frame core in strict order:

1. Record the frame's duration
2. Classify quality and publish effective level
3. Derive breathing state from wall-clock time
4. Notify frame listeners

Rendering components can subscribe here once instead of each re-deriving
breath state in their own loop. Calling compute_phase directly stays
correct; this is only a shared notification.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

from loguru import logger

from breathsync.breath.breath_clock import BreathClock, opacity_for_phase
from breathsync.breath.breath_curve import breath_value
from breathsync.breath.phase_tracker import PhaseTracker
from breathsync.core.contracts import (
    BreathState,
    PerformanceState,
    QualityLevel,
    QualitySettings,
)
from breathsync.quality.quality_controller import QualityController


@dataclass
class SessionConfig:
    """Configuration for a breathing session."""
    target_fps: float = 60.0
    preferences_path: Optional[str] = None  # None = in-memory preferences


@dataclass(frozen=True)
class FrameSnapshot:
    """Everything a renderer needs for one frame."""
    frame_index: int
    timestamp: float  # wall-clock seconds used for the breath state
    breath: BreathState
    opacity: float
    breath_value: float  # 0 exhaled, 1 inhaled
    quality_level: QualityLevel
    quality: QualitySettings
    performance: Optional[PerformanceState]


FrameListener = Callable[[FrameSnapshot], None]


class BreathingSession:
    """
    Per-frame driver for the breathing core.

    Usage:
        session = BreathingSession(BreathClock(), QualityController())
        session.subscribe_frame(renderer.on_frame)

        # Host animation callback
        session.tick(delta_ms)
    """

    def __init__(
        self,
        clock: Optional[BreathClock] = None,
        controller: Optional[QualityController] = None,
        phase_tracker: Optional[PhaseTracker] = None,
    ):
        """
        Initialize breathing session.

        Args:
            clock: Breath clock (box breathing on system time if None)
            controller: Quality controller (defaults if None)
            phase_tracker: Phase change tracker (new tracker if None)
        """
        self.clock = clock or BreathClock()
        self.controller = controller or QualityController()
        self.phase_tracker = phase_tracker or PhaseTracker()

        self._frame_index: int = 0
        self._listeners: List[FrameListener] = []
        self._last_frame: Optional[FrameSnapshot] = None

    def subscribe_frame(self, listener: FrameListener) -> Callable[[], None]:
        """
        Register a per-frame listener.

        Returns:
            Function that unsubscribes the listener
        """
        self._listeners.append(listener)

        def _unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def tick(self, delta_ms: float, now: Optional[float] = None) -> FrameSnapshot:
        """
        Process one frame.

        Args:
            delta_ms: Duration of the previous frame in milliseconds
            now: Wall-clock seconds for this frame (clock's source if None)

        Returns:
            FrameSnapshot for this frame
        """
        # Sample before reading quality: no look-ahead, no lag
        performance = self.controller.record_performance_sample(delta_ms)

        timestamp = self.clock.now() if now is None else now
        state = self.clock.state_at(timestamp)
        self.phase_tracker.update(state)

        level = self.controller.effective_level
        snapshot = FrameSnapshot(
            frame_index=self._frame_index,
            timestamp=timestamp,
            breath=state,
            opacity=opacity_for_phase(state.phase_index, state.phase_progress),
            breath_value=breath_value(state),
            quality_level=level,
            quality=self.controller.get_config(),
            performance=performance,
        )
        self._frame_index += 1
        self._last_frame = snapshot

        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"Frame listener failed: {e}")

        return snapshot

    def run(
        self,
        frame_deltas: Iterable[float],
        start_time: Optional[float] = None,
    ) -> Optional[FrameSnapshot]:
        """
        Drive the session over a sequence of frame durations.

        With start_time, wall-clock time advances by each delta (simulated
        time); otherwise the clock's own source is read every frame.

        Returns:
            The last frame processed, or None if there were no frames
        """
        now = start_time
        last = None
        for delta_ms in frame_deltas:
            if now is not None:
                now += delta_ms / 1000.0
            last = self.tick(delta_ms, now)
        return last

    @property
    def frame_index(self) -> int:
        return self._frame_index

    @property
    def last_frame(self) -> Optional[FrameSnapshot]:
        return self._last_frame


class FrameTimer:
    """Measures the wall time between successive frames, in milliseconds."""

    def __init__(self, time_source: Callable[[], float] = time.perf_counter):
        self._time_source = time_source
        self._last: Optional[float] = None

    def lap(self) -> float:
        """Milliseconds since the previous lap (0.0 on the first call)."""
        current = self._time_source()
        delta = 0.0 if self._last is None else (current - self._last) * 1000.0
        self._last = current
        return delta
