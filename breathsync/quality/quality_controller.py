"""
Quality Controller.

Composition root for adaptive quality, and the only mutable object that
consumers observe.

State:
- preset: auto | low | medium | high (persisted)
- performance_metrics: None until the first classification
- effective_level: the preset if explicit, else the classifier's
  committed level, else medium while uninitialized

Transitions:
- set_preset(): immediate and synchronous, no debounce; an explicit preset
  overrides the classifier entirely
- classifier commit while preset is auto: effective_level follows on the
  classifier's debounce cadence
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from loguru import logger

from breathsync.core.contracts import (
    PerformanceState,
    QualityLevel,
    QualityPreset,
    QualitySettings,
)
from breathsync.performance.performance_sampler import PerformanceSampler
from breathsync.performance.quality_classifier import QualityClassifier
from breathsync.quality.preference_store import MemoryPreferenceStore, PreferenceStore
from breathsync.quality.quality_config import DEFAULT_QUALITY_CONFIG, QualityConfig


DEFAULT_STORAGE_KEY = "quality-preset"


@dataclass(frozen=True)
class QualitySnapshot:
    """What subscribers receive when observable quality state changes."""
    preset: QualityPreset
    effective_level: QualityLevel
    performance: Optional[PerformanceState]


QualityListener = Callable[[QualitySnapshot], None]


class QualityController:
    """
    Adaptive quality with a user override.

    Usage:
        controller = QualityController(store=JsonPreferenceStore("prefs.json"))
        controller.subscribe(on_quality_change)

        # Once per frame, before reading quality
        controller.record_performance_sample(delta_ms)
        settings = controller.get_config()
    """

    def __init__(
        self,
        quality_config: Optional[QualityConfig] = None,
        store: Optional[PreferenceStore] = None,
        sampler: Optional[PerformanceSampler] = None,
        classifier: Optional[QualityClassifier] = None,
        clock: Callable[[], float] = time.monotonic,
        storage_key: str = DEFAULT_STORAGE_KEY,
    ):
        """
        Initialize quality controller.

        Args:
            quality_config: Per-level rendering budgets (defaults if None)
            store: Preference store for the preset (in-memory if None)
            sampler: Frame sampler (defaults if None)
            classifier: Quality classifier (defaults if None)
            clock: Monotonic time source in seconds, for debouncing
            storage_key: Key the preset is stored under
        """
        self._quality_config = quality_config or DEFAULT_QUALITY_CONFIG
        self._store = store if store is not None else MemoryPreferenceStore()
        self._sampler = sampler or PerformanceSampler()
        self._classifier = classifier or QualityClassifier()
        self._clock = clock
        self.storage_key = storage_key

        missing = [level.value for level in QualityLevel if level not in self._quality_config]
        if missing:
            raise ValueError(f"Quality config is missing levels: {missing}")

        self._preset = self._load_preset()
        self._classified_level: Optional[QualityLevel] = None
        self._metrics: Optional[PerformanceState] = None

        self._listeners: List[QualityListener] = []
        self._last_published: Optional[Tuple] = self._publish_key()

        logger.info(f"Quality controller ready (preset: {self._preset.value})")

    # --------------------------------------------------------
    # Preset
    # --------------------------------------------------------

    def _load_preset(self) -> QualityPreset:
        try:
            stored = self._store.get(self.storage_key)
        except Exception as e:
            logger.warning(f"Could not read quality preset, using auto: {e}")
            return QualityPreset.AUTO

        if stored is None:
            return QualityPreset.AUTO

        try:
            return QualityPreset.parse(stored)
        except ValueError:
            logger.warning(f"Ignoring stored quality preset {stored!r}, using auto")
            return QualityPreset.AUTO

    def set_preset(self, preset: QualityPreset | str):
        """
        Set the user's quality preset.

        Takes effect immediately. Persistence is best-effort: a failing
        store is logged and the in-memory preset stays authoritative.

        Raises:
            ValueError: If preset is not auto, low, medium, or high
        """
        preset = QualityPreset.parse(preset)
        previous = self._preset
        self._preset = preset

        if preset != previous:
            logger.info(f"Quality preset {previous.value} -> {preset.value}")

        try:
            self._store.set(self.storage_key, preset.value)
        except Exception as e:
            logger.warning(f"Could not persist quality preset '{preset.value}': {e}")

        self._publish()

    @property
    def preset(self) -> QualityPreset:
        return self._preset

    # --------------------------------------------------------
    # Sampling
    # --------------------------------------------------------

    def record_performance_sample(self, delta_ms: float) -> Optional[PerformanceState]:
        """
        Record one frame's duration and reclassify.

        Call once per frame, before reading this frame's quality.

        Args:
            delta_ms: Frame duration in milliseconds

        Returns:
            Current performance metrics (None until the first classification)
        """
        self._sampler.sample(delta_ms)

        if self._sampler.sample_count == 0:
            return self._metrics

        fps = self._sampler.get_smoothed_fps()
        previous_level = self._classified_level or QualityLevel.MEDIUM
        decision = self._classifier.classify(
            fps,
            previous_level,
            self._clock(),
            self._sampler.accepted_count,
        )

        if not decision.ready:
            return self._metrics

        self._classified_level = decision.level
        self._metrics = PerformanceState(
            average_fps=fps,
            normalized_score=self._sampler.get_normalized_score(),
            quality_level=decision.level,
            is_throttling=decision.is_throttling,
        )

        self._publish()
        return self._metrics

    @property
    def performance_metrics(self) -> Optional[PerformanceState]:
        return self._metrics

    @property
    def classified_level(self) -> Optional[QualityLevel]:
        """Level the classifier has committed, None before warm-up."""
        return self._classified_level

    # --------------------------------------------------------
    # Effective quality
    # --------------------------------------------------------

    @property
    def effective_level(self) -> QualityLevel:
        explicit = self._preset.level
        if explicit is not None:
            return explicit
        return self._classified_level or QualityLevel.MEDIUM

    def get_config(self) -> QualitySettings:
        """Rendering budgets for the effective level."""
        return self._quality_config[self.effective_level]

    def snapshot(self) -> QualitySnapshot:
        return QualitySnapshot(
            preset=self._preset,
            effective_level=self.effective_level,
            performance=self._metrics,
        )

    # --------------------------------------------------------
    # Subscribers
    # --------------------------------------------------------

    def subscribe(self, listener: QualityListener) -> Callable[[], None]:
        """
        Register a listener for quality changes.

        Listeners fire when the preset, effective level, classified level,
        or throttling flag changes, and when metrics first appear. They do
        not fire for every frame's fps fluctuation.

        Returns:
            Function that unsubscribes the listener
        """
        self._listeners.append(listener)

        def _unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _publish_key(self) -> Tuple:
        metrics = self._metrics
        return (
            self._preset,
            self.effective_level,
            None if metrics is None else metrics.quality_level,
            None if metrics is None else metrics.is_throttling,
        )

    def _publish(self):
        key = self._publish_key()
        if key == self._last_published:
            return
        self._last_published = key

        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"Quality listener failed: {e}")

    # --------------------------------------------------------
    # Collaborators
    # --------------------------------------------------------

    @property
    def sampler(self) -> PerformanceSampler:
        return self._sampler

    @property
    def classifier(self) -> QualityClassifier:
        return self._classifier

    @property
    def quality_config(self) -> QualityConfig:
        return self._quality_config

    def reset_performance(self):
        """Forget all samples and classification (e.g. after a scene reload)."""
        self._sampler.reset()
        self._classifier.reset()
        self._classified_level = None
        self._metrics = None
        logger.debug("Quality controller performance state reset")
        self._publish()
