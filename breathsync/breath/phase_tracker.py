"""
Phase change detection.

Watches successive breathing states and reports when the phase changes,
so consumers (chimes, phase labels, haptics) can react once per phase
instead of every frame.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional

from loguru import logger

from breathsync.core.contracts import BreathPhase, BreathState


@dataclass(frozen=True)
class PhaseChange:
    """A transition between two breath phases."""
    new_phase: int
    old_phase: int  # -1 before the first observed state

    @property
    def phase(self) -> BreathPhase:
        return BreathPhase(self.new_phase)


PhaseCallback = Callable[[PhaseChange], None]


class PhaseTracker:
    """
    Detects phase changes across frames.

    Usage:
        tracker = PhaseTracker()
        tracker.on_phase_change(lambda change: play_chime(change.phase))

        # In render loop
        tracker.update(clock.state())
    """

    def __init__(self):
        self._last_phase: int = -1
        self._callbacks: List[PhaseCallback] = []

    def on_phase_change(self, callback: PhaseCallback) -> Callable[[], None]:
        """
        Register a callback for phase changes.

        Returns:
            Function that removes the callback
        """
        self._callbacks.append(callback)

        def _remove():
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return _remove

    def update(self, state: BreathState) -> Optional[PhaseChange]:
        """
        Record a state and report a change if the phase differs.

        Returns:
            PhaseChange if the phase changed, else None
        """
        if state.phase_index == self._last_phase:
            return None

        change = PhaseChange(new_phase=state.phase_index, old_phase=self._last_phase)
        self._last_phase = state.phase_index
        logger.debug(f"Breath phase {change.old_phase} -> {change.new_phase} ({change.phase.label})")

        for callback in list(self._callbacks):
            try:
                callback(change)
            except Exception as e:
                logger.error(f"Phase change callback failed: {e}")

        return change

    @property
    def last_phase(self) -> int:
        return self._last_phase

    def reset(self):
        self._last_phase = -1
