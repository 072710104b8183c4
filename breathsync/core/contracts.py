"""
Core data contracts for the breathing core.

All components must adhere to these contracts for:
- Determinism (same inputs, same state, on every device)
- Immutability of startup configuration
- Temporal stability of published quality
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


# ============================================================
# ENUMERATIONS
# ============================================================

class BreathPhase(Enum):
    """The four ordered phases of a breath cycle."""
    INHALE = 0
    HOLD_IN = 1
    EXHALE = 2
    HOLD_OUT = 3

    @property
    def label(self) -> str:
        """Text shown to the user for this phase."""
        return _PHASE_LABELS[self]


_PHASE_LABELS = {
    BreathPhase.INHALE: "Inhale",
    BreathPhase.HOLD_IN: "Hold",
    BreathPhase.EXHALE: "Exhale",
    BreathPhase.HOLD_OUT: "Hold",
}


class QualityLevel(Enum):
    """Discrete rendering-fidelity tier."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _LEVEL_RANKS[self]


_LEVEL_RANKS = {
    QualityLevel.LOW: 0,
    QualityLevel.MEDIUM: 1,
    QualityLevel.HIGH: 2,
}


class QualityPreset(Enum):
    """User-facing quality choice. AUTO defers to the classifier."""
    AUTO = "auto"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def level(self) -> Optional[QualityLevel]:
        """Explicit level for this preset, None for AUTO."""
        if self is QualityPreset.AUTO:
            return None
        return QualityLevel(self.value)

    @classmethod
    def parse(cls, value: QualityPreset | str) -> QualityPreset:
        """Coerce a preset or its string value, raising ValueError if unknown."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        valid = ", ".join(p.value for p in cls)
        raise ValueError(f"Unknown quality preset {value!r} (expected one of: {valid})")


# ============================================================
# BREATH DATA STRUCTURES
# ============================================================

@dataclass(frozen=True)
class BreathPhaseConfig:
    """
    Durations in seconds of the four breath phases, in fixed order.

    Validated on construction: every duration must be finite and positive.
    Defaults to box breathing (3s inhale, 5s hold, 5s exhale, 3s hold).
    """
    inhale: float = 3.0
    hold_in: float = 5.0
    exhale: float = 5.0
    hold_out: float = 3.0

    def __post_init__(self):
        for name, value in zip(_PHASE_FIELDS, self.durations):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"Breath phase '{name}' duration must be a number, got {value!r}")
            if not math.isfinite(value) or value <= 0:
                raise ValueError(f"Breath phase '{name}' duration must be > 0, got {value!r}")
        if self.total_cycle <= 0:
            raise ValueError("Breath cycle total duration must be > 0")

    @property
    def durations(self) -> Tuple[float, float, float, float]:
        return (self.inhale, self.hold_in, self.exhale, self.hold_out)

    @property
    def total_cycle(self) -> float:
        return float(sum(self.durations))

    def duration_of(self, phase: BreathPhase) -> float:
        return self.durations[phase.value]


_PHASE_FIELDS = ("inhale", "hold_in", "exhale", "hold_out")


@dataclass(frozen=True)
class BreathState:
    """
    Breathing state at one instant.

    Recomputed from (now, config) on every call; never stored or mutated.
    """
    phase_index: int  # 0=inhale, 1=hold-in, 2=exhale, 3=hold-out
    phase_progress: float  # 0-1 within the current phase
    cycle_progress: float  # 0-1 within the whole cycle

    @property
    def phase(self) -> BreathPhase:
        return BreathPhase(self.phase_index)

    @property
    def phase_label(self) -> str:
        return self.phase.label


# ============================================================
# PERFORMANCE / QUALITY DATA STRUCTURES
# ============================================================

@dataclass(frozen=True)
class PerformanceState:
    """
    Performance snapshot published once per classification cycle.
    """
    average_fps: float
    normalized_score: float  # 0-1, smoothed fps / target fps
    quality_level: QualityLevel  # committed classifier level
    is_throttling: bool  # downgrade pending but not yet committed


@dataclass(frozen=True)
class QualitySettings:
    """
    Rendering budgets for one quality level.

    Consumers read these values instead of branching on the level.
    """
    particle_count: int
    sphere_segments: int
    ambient_intensity: float
    key_intensity: float
    stars_count: int
    user_particle_scale: float
    filler_particle_scale: float
    particle_scale: float  # multiplier applied to all particle sizes
    description: str = ""

    def __post_init__(self):
        for name in _COUNT_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"Quality setting '{name}' must be an integer >= 0, got {value!r}")
        for name in _SCALAR_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"Quality setting '{name}' must be a number, got {value!r}")
            if not math.isfinite(value) or value < 0:
                raise ValueError(f"Quality setting '{name}' must be finite and >= 0, got {value!r}")
        if not isinstance(self.description, str):
            raise ValueError(f"Quality setting 'description' must be a string, got {self.description!r}")


_COUNT_FIELDS = ("particle_count", "sphere_segments", "stars_count")
_SCALAR_FIELDS = (
    "ambient_intensity",
    "key_intensity",
    "user_particle_scale",
    "filler_particle_scale",
    "particle_scale",
)
