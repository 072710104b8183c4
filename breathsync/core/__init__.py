"""
Core data contracts for the breathing core.

Per-frame execution order (NEVER REORDER):
1. Record the frame's duration
2. Classify the smoothed frame rate into a quality tier
3. Publish effective quality and performance metrics
4. Derive breathing state from wall-clock time
"""

from .contracts import (
    BreathPhase,
    BreathPhaseConfig,
    BreathState,
    QualityLevel,
    QualityPreset,
    PerformanceState,
    QualitySettings,
)
