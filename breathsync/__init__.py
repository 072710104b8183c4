"""
Synchronized Breathing Core

Timing and adaptive-quality core for an ambient breathing visualization.
Every client derives the same breathing phase from its own wall clock, and
each device tunes its rendering detail to the frame rate it can sustain.

Top Priorities (strict order):
1. Same instant, same breath: phase is a pure function of wall-clock time
2. No flicker: quality changes are hysteretic and debounced
3. Never crash the render loop: bad frames and storage failures are absorbed
4. Fail fast on bad configuration
"""

__version__ = "0.1.0"
__author__ = "Breathe Together Team"
