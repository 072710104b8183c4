"""Per-frame session driving the breathing core."""

from .session import BreathingSession, SessionConfig, FrameSnapshot, FrameTimer
