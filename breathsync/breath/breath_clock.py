"""
Breath Clock.

Maps absolute wall-clock time to a breathing state. The mapping is pure:
the same instant yields the same state on every device, which is what
keeps independent clients breathing together without any networking.

There is no start time and no accumulated delta, so tab suspension, slow
frames, or many independent callers cannot drift.

Cross-client agreement assumes the clients' wall clocks agree; nothing
here verifies or corrects that.
"""

from __future__ import annotations

import math
import time
from typing import Callable, Optional

from breathsync.core.contracts import BreathPhaseConfig, BreathState


DEFAULT_BREATH_CONFIG = BreathPhaseConfig()


def compute_phase(
    now_seconds: float,
    config: BreathPhaseConfig = DEFAULT_BREATH_CONFIG,
) -> BreathState:
    """
    Compute the breathing state at a wall-clock instant.

    Args:
        now_seconds: Wall-clock time in seconds (e.g. Unix time)
        config: Phase durations

    Returns:
        BreathState for that instant

    Raises:
        ValueError: If now_seconds is NaN, infinite, or negative
    """
    if now_seconds is None or not math.isfinite(now_seconds) or now_seconds < 0:
        raise ValueError(f"Breath clock time must be a finite, non-negative number, got {now_seconds!r}")

    durations = config.durations
    total = config.total_cycle
    cycle_time = math.fmod(now_seconds, total)

    # Strict less-than: an exact boundary belongs to the next phase
    accumulated = 0.0
    phase_index = len(durations) - 1
    for i, duration in enumerate(durations):
        if cycle_time < accumulated + duration:
            phase_index = i
            break
        accumulated += duration
    else:
        # Rounding pushed cycle_time past the last boundary
        accumulated = total - durations[-1]

    duration = durations[phase_index]
    if duration <= 0:
        phase_progress = 1.0
    else:
        phase_progress = _clamp01((cycle_time - accumulated) / duration)

    return BreathState(
        phase_index=phase_index,
        phase_progress=phase_progress,
        cycle_progress=_clamp01(cycle_time / total),
    )


def opacity_for_phase(phase_index: int, phase_progress: float) -> float:
    """
    Opacity for a point in the breath cycle.

    Ease-out rise while inhaling, held at 1, ease-in fall while exhaling,
    held at 0. The end of each phase equals the start of the next.
    """
    if phase_index not in (0, 1, 2, 3):
        raise ValueError(f"Phase index must be 0-3, got {phase_index!r}")

    t = _clamp01(phase_progress)

    if phase_index == 0:
        return 1.0 - (1.0 - t) ** 3
    elif phase_index == 1:
        return 1.0
    elif phase_index == 2:
        return 1.0 - t ** 3
    return 0.0


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


class BreathClock:
    """
    Breath clock bound to a phase configuration and a time source.

    Usage:
        clock = BreathClock()

        # In any render callback, with no coordination between callers
        state = clock.state()
        opacity = opacity_for_phase(state.phase_index, state.phase_progress)
    """

    def __init__(
        self,
        config: Optional[BreathPhaseConfig] = None,
        time_source: Callable[[], float] = time.time,
    ):
        """
        Initialize breath clock.

        Args:
            config: Phase durations (box breathing if None)
            time_source: Wall-clock source in seconds
        """
        self.config = config or DEFAULT_BREATH_CONFIG
        self._time_source = time_source

    def now(self) -> float:
        return self._time_source()

    def state(self) -> BreathState:
        """Breathing state at the current wall-clock time."""
        return compute_phase(self._time_source(), self.config)

    def state_at(self, now_seconds: float) -> BreathState:
        return compute_phase(now_seconds, self.config)

    def seconds_until_next_phase(self, now_seconds: Optional[float] = None) -> float:
        """Seconds remaining in the phase active at now_seconds."""
        if now_seconds is None:
            now_seconds = self._time_source()
        state = compute_phase(now_seconds, self.config)
        duration = self.config.duration_of(state.phase)
        return max(0.0, duration * (1.0 - state.phase_progress))

    @property
    def total_cycle(self) -> float:
        return self.config.total_cycle
