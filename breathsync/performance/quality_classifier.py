"""
Quality Classifier.

Hysteretic, debounced state machine over {low, medium, high}.

Each level has its own downgrade threshold, and the threshold for
upgrading into a level sits strictly above that level's downgrade
threshold. The gap between them is a dead band: fps hovering near a
boundary cannot flip the level back and forth.

A changed level is only committed after the readings have pointed the
same way for commit_delay_seconds. Any reading that agrees with the
current level cancels the pending change.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from loguru import logger

from breathsync.core.contracts import QualityLevel


@dataclass(frozen=True)
class QualityThresholds:
    """
    Frame-rate thresholds for quality transitions.

    Invariants (checked on construction):
    - medium_upgrade_fps > high_downgrade_fps
    - low_upgrade_fps > medium_downgrade_fps
    - medium_downgrade_fps < high_downgrade_fps
    """
    high_downgrade_fps: float = 45.0  # high -> medium below this
    medium_upgrade_fps: float = 55.0  # medium -> high above this
    medium_downgrade_fps: float = 30.0  # medium -> low below this
    low_upgrade_fps: float = 40.0  # low -> medium above this

    def __post_init__(self):
        for name in (
            "high_downgrade_fps",
            "medium_upgrade_fps",
            "medium_downgrade_fps",
            "low_upgrade_fps",
        ):
            value = getattr(self, name)
            if not math.isfinite(value) or value <= 0:
                raise ValueError(f"{name} must be a positive number, got {value!r}")

        if not self.medium_upgrade_fps > self.high_downgrade_fps:
            raise ValueError(
                f"medium_upgrade_fps ({self.medium_upgrade_fps}) must be above "
                f"high_downgrade_fps ({self.high_downgrade_fps})"
            )
        if not self.low_upgrade_fps > self.medium_downgrade_fps:
            raise ValueError(
                f"low_upgrade_fps ({self.low_upgrade_fps}) must be above "
                f"medium_downgrade_fps ({self.medium_downgrade_fps})"
            )
        if not self.medium_downgrade_fps < self.high_downgrade_fps:
            raise ValueError(
                f"medium_downgrade_fps ({self.medium_downgrade_fps}) must be below "
                f"high_downgrade_fps ({self.high_downgrade_fps})"
            )


@dataclass(frozen=True)
class QualityDecision:
    """Result of one classification cycle."""
    level: QualityLevel  # committed level after this reading
    candidate: QualityLevel  # level the reading points to
    is_throttling: bool  # downgrade pending, not yet committed
    changed: bool = False  # level was committed on this reading
    ready: bool = True  # False during startup warm-up


class QualityClassifier:
    """
    Turns a smoothed frame rate into a committed quality level.

    Usage:
        classifier = QualityClassifier()
        level = QualityLevel.MEDIUM

        # Once per frame
        decision = classifier.classify(sampler.get_smoothed_fps(), level, now, sampler.accepted_count)
        level = decision.level
    """

    def __init__(
        self,
        thresholds: Optional[QualityThresholds] = None,
        commit_delay_seconds: float = 3.0,
        min_samples: int = 30,
    ):
        """
        Initialize quality classifier.

        Args:
            thresholds: Transition thresholds (defaults if None)
            commit_delay_seconds: How long a change must be indicated before it commits
            min_samples: Samples required before classification runs
        """
        if not math.isfinite(commit_delay_seconds) or commit_delay_seconds < 0:
            raise ValueError(f"commit_delay_seconds must be >= 0, got {commit_delay_seconds}")
        if min_samples < 0:
            raise ValueError(f"min_samples must be >= 0, got {min_samples}")

        self.thresholds = thresholds or QualityThresholds()
        self.commit_delay_seconds = commit_delay_seconds
        self.min_samples = min_samples

        # Pending transition
        self._pending_from: Optional[QualityLevel] = None
        self._pending_direction: int = 0  # -1 downgrade, +1 upgrade
        self._pending_since: Optional[float] = None

    def classify(
        self,
        smoothed_fps: float,
        previous_level: QualityLevel,
        now: float,
        sample_count: int,
    ) -> QualityDecision:
        """
        Classify one reading.

        Args:
            smoothed_fps: Smoothed frame rate
            previous_level: Currently committed level
            now: Monotonic time in seconds
            sample_count: Samples collected so far (startup guard)

        Returns:
            QualityDecision with the committed level and pending status
        """
        if not math.isfinite(smoothed_fps):
            raise ValueError(f"smoothed_fps must be finite, got {smoothed_fps!r}")

        # Early frames are dominated by first paint and shader compiles
        if sample_count < self.min_samples:
            self._cancel_pending()
            return QualityDecision(
                level=previous_level,
                candidate=previous_level,
                is_throttling=False,
                ready=False,
            )

        candidate = self.candidate_for(smoothed_fps, previous_level)

        if candidate == previous_level:
            if self._pending_since is not None:
                logger.debug(f"Pending quality change from {previous_level.value} cancelled at {smoothed_fps:.1f} fps")
            self._cancel_pending()
            return QualityDecision(level=previous_level, candidate=candidate, is_throttling=False)

        direction = 1 if candidate.rank > previous_level.rank else -1
        if (
            self._pending_since is None
            or self._pending_from != previous_level
            or self._pending_direction != direction
        ):
            self._pending_from = previous_level
            self._pending_direction = direction
            self._pending_since = now

        if now - self._pending_since >= self.commit_delay_seconds:
            self._cancel_pending()
            logger.info(
                f"Quality {previous_level.value} -> {candidate.value} "
                f"(smoothed {smoothed_fps:.1f} fps)"
            )
            return QualityDecision(level=candidate, candidate=candidate, is_throttling=False, changed=True)

        return QualityDecision(
            level=previous_level,
            candidate=candidate,
            is_throttling=direction < 0,
        )

    def candidate_for(self, fps: float, previous_level: QualityLevel) -> QualityLevel:
        """Level indicated by fps, relative to the current level."""
        t = self.thresholds

        if previous_level == QualityLevel.HIGH:
            if fps < t.medium_downgrade_fps:
                return QualityLevel.LOW
            if fps < t.high_downgrade_fps:
                return QualityLevel.MEDIUM
            return QualityLevel.HIGH

        if previous_level == QualityLevel.MEDIUM:
            if fps < t.medium_downgrade_fps:
                return QualityLevel.LOW
            if fps > t.medium_upgrade_fps:
                return QualityLevel.HIGH
            return QualityLevel.MEDIUM

        if fps > t.medium_upgrade_fps:
            return QualityLevel.HIGH
        if fps > t.low_upgrade_fps:
            return QualityLevel.MEDIUM
        return QualityLevel.LOW

    def _cancel_pending(self):
        self._pending_from = None
        self._pending_direction = 0
        self._pending_since = None

    @property
    def pending_since(self) -> Optional[float]:
        """Time the current pending change was first indicated, if any."""
        return self._pending_since

    def reset(self):
        """Clear any pending transition."""
        self._cancel_pending()
