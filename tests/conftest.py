"""Shared pytest configuration and fixtures for the breathing core tests."""

import sys
from pathlib import Path

import pytest

# Ensure the project root is in the path for imports
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from breathsync.core.contracts import BreathPhaseConfig
from breathsync.quality.preference_store import MemoryPreferenceStore, PreferenceStore


# =============================================================================
# Test doubles
# =============================================================================

class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


class FailingPreferenceStore(PreferenceStore):
    """Store whose reads and writes always fail, like disabled storage."""

    def __init__(self):
        self.set_calls = 0

    def get(self, key):
        raise OSError("storage disabled")

    def set(self, key, value):
        self.set_calls += 1
        raise OSError("quota exceeded")


# =============================================================================
# Shared Fixtures
# =============================================================================

@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def box_config() -> BreathPhaseConfig:
    """3/5/5/3 box breathing, 16 second cycle."""
    return BreathPhaseConfig(inhale=3, hold_in=5, exhale=5, hold_out=3)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock(start=1000.0)


@pytest.fixture
def memory_store() -> MemoryPreferenceStore:
    return MemoryPreferenceStore()


@pytest.fixture
def failing_store() -> FailingPreferenceStore:
    return FailingPreferenceStore()
