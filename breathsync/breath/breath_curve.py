"""
Breath curve easing.

Turns a BreathState into a single breath value for driving scale and
orbit radius:
- 0 = fully exhaled (particles expanded)
- 1 = fully inhaled (particles contracted)

Inhale and exhale use raised-cosine ramps around a linear middle so
velocity is continuous. Holds carry a small damped oscillation so the
scene never looks frozen. Every curve hits its exact endpoint at phase
boundaries.
"""

from __future__ import annotations

import math

from breathsync.core.contracts import BreathState


HOLD_AMPLITUDE = 0.004
HOLD_DAMPING = 0.6
HOLD_FREQUENCY = 1.0


def controlled_breath_curve(t: float, start_ramp: float, end_ramp: float) -> float:
    """
    Soft start, steady middle, soft end.

    Args:
        t: Progress 0-1
        start_ramp: Fraction of time spent accelerating
        end_ramp: Fraction of time spent decelerating

    Returns:
        Eased value from 0.0 to 1.0
    """
    if not 0.0 < start_ramp < 1.0 or not 0.0 < end_ramp < 1.0 or start_ramp + end_ramp > 1.0:
        raise ValueError(f"Invalid ramp fractions: start={start_ramp}, end={end_ramp}")

    t = max(0.0, min(1.0, t))
    middle_end = 1.0 - end_ramp

    # Ramps cover half the distance a constant velocity would
    middle_velocity = 1.0 / (1.0 - start_ramp / 2.0 - end_ramp / 2.0)
    start_ramp_height = middle_velocity * start_ramp / 2.0
    end_ramp_start = 1.0 - middle_velocity * end_ramp / 2.0

    if t <= start_ramp:
        x = t / start_ramp
        return middle_velocity * start_ramp * _raised_cosine_integral(x)
    if t >= middle_end:
        x = (t - middle_end) / end_ramp
        return end_ramp_start + middle_velocity * end_ramp * _ramp_down_integral(x)
    return start_ramp_height + middle_velocity * (t - start_ramp)


def _raised_cosine_integral(x: float) -> float:
    # Integral of (1 - cos(pi*x)) / 2 from 0 to x
    return x / 2.0 - math.sin(math.pi * x) / (2.0 * math.pi)


def _ramp_down_integral(x: float) -> float:
    # Integral of (1 + cos(pi*x)) / 2 from 0 to x
    return x / 2.0 + math.sin(math.pi * x) / (2.0 * math.pi)


def ease_inhale(t: float) -> float:
    """Even 25% ramps: gentle start, steady intake, lungs filling."""
    return controlled_breath_curve(t, 0.25, 0.25)


def ease_exhale(t: float) -> float:
    """Near-instant start (3%) with a long 30% landing."""
    return controlled_breath_curve(t, 0.03, 0.3)


def hold_oscillation(progress: float) -> float:
    """Damped micro-movement during holds, zero at both ends of the hold."""
    amplitude = HOLD_AMPLITUDE * math.exp(-HOLD_DAMPING * progress)
    return amplitude * math.sin(progress * math.pi * 2.0 * HOLD_FREQUENCY)


def breath_value(state: BreathState) -> float:
    """Breath value (0 exhaled, 1 inhaled) for a breathing state."""
    t = state.phase_progress

    if state.phase_index == 0:
        value = ease_inhale(t)
    elif state.phase_index == 1:
        value = 1.0 - hold_oscillation(t)
    elif state.phase_index == 2:
        value = 1.0 - ease_exhale(t)
    else:
        value = hold_oscillation(t)

    return max(0.0, min(1.0, value))


def orbit_radius(value: float, min_radius: float, max_radius: float) -> float:
    """Particle orbit radius: spread at 0 (exhaled), contracted at 1 (inhaled)."""
    value = max(0.0, min(1.0, value))
    return max_radius - value * (max_radius - min_radius)
