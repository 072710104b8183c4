"""
Quality Module - Effective rendering quality.

Responsibilities:
- Immutable per-level rendering budgets
- User preset with best-effort persistence
- Publishing effective level and performance metrics
"""

from .quality_config import DEFAULT_QUALITY_CONFIG, build_quality_table, apply_quality
from .preference_store import PreferenceStore, MemoryPreferenceStore, JsonPreferenceStore
from .quality_controller import QualityController, QualitySnapshot
