"""
Performance Module - Frame timing and quality classification.

Responsibilities:
- Rolling frame-duration window with outlier rejection
- Smoothed fps and normalized score
- Hysteretic, debounced quality tier classification
"""

from .performance_sampler import PerformanceSampler
from .quality_classifier import QualityClassifier, QualityThresholds, QualityDecision
