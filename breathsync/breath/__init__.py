"""
Breath Module - Wall-clock breathing rhythm.

Responsibilities:
- Pure time-to-phase mapping shared by every client
- Boundary-continuous opacity and breath easing
- Phase change notification
"""

from .breath_clock import BreathClock, compute_phase, opacity_for_phase
from .breath_curve import breath_value, orbit_radius
from .phase_tracker import PhaseTracker, PhaseChange
