"""
Quality lookup table.

One immutable record of rendering budgets per quality level. Every
consumer reads its budget from here; none keeps its own low/medium/high
branching.
"""

from __future__ import annotations

from dataclasses import fields, replace
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from breathsync.core.contracts import QualityLevel, QualitySettings


QualityConfig = Mapping[QualityLevel, QualitySettings]


DEFAULT_QUALITY_CONFIG: QualityConfig = MappingProxyType({
    QualityLevel.LOW: QualitySettings(
        particle_count=100,
        sphere_segments=32,
        ambient_intensity=0.5,
        key_intensity=1.0,
        stars_count=2000,
        user_particle_scale=1.0,
        filler_particle_scale=0.6,
        particle_scale=0.5,
        description="Low: Mobile-friendly • 100 particles • Basic lighting",
    ),
    QualityLevel.MEDIUM: QualitySettings(
        particle_count=300,
        sphere_segments=64,
        ambient_intensity=0.4,
        key_intensity=1.2,
        stars_count=5000,
        user_particle_scale=1.2,
        filler_particle_scale=0.8,
        particle_scale=1.0,
        description="Medium: Balanced • 300 particles • Production quality",
    ),
    QualityLevel.HIGH: QualitySettings(
        particle_count=500,
        sphere_segments=128,
        ambient_intensity=0.3,
        key_intensity=1.5,
        stars_count=8000,
        user_particle_scale=1.4,
        filler_particle_scale=1.0,
        particle_scale=2.0,
        description="High: Premium visuals • 500 particles • Enhanced effects",
    ),
})

_SETTING_NAMES = tuple(f.name for f in fields(QualitySettings))


def build_quality_table(
    overrides: Optional[Mapping[str, Mapping[str, Any]]] = None,
    base: QualityConfig = DEFAULT_QUALITY_CONFIG,
) -> QualityConfig:
    """
    Build an immutable quality table from the defaults plus overrides.

    Args:
        overrides: {"low": {"particle_count": 80}, ...}
        base: Table to start from

    Returns:
        New read-only mapping of QualityLevel -> QualitySettings

    Raises:
        ValueError: On unknown levels or setting names
    """
    table: Dict[QualityLevel, QualitySettings] = dict(base)

    for level_name, values in (overrides or {}).items():
        try:
            level = QualityLevel(str(level_name).lower())
        except ValueError:
            raise ValueError(f"Unknown quality level in overrides: {level_name!r}") from None

        unknown = set(values) - set(_SETTING_NAMES)
        if unknown:
            raise ValueError(f"Unknown quality settings for '{level.value}': {sorted(unknown)}")

        table[level] = replace(table[level], **dict(values))

    missing = [level.value for level in QualityLevel if level not in table]
    if missing:
        raise ValueError(f"Quality table is missing levels: {missing}")

    return MappingProxyType(table)


def apply_quality(
    props: Mapping[str, Any],
    level: QualityLevel,
    table: QualityConfig = DEFAULT_QUALITY_CONFIG,
) -> Dict[str, Any]:
    """
    Merge a level's budgets into a props dict.

    The input is not modified. Budget keys overwrite existing ones; the
    description is not copied.
    """
    settings = table[level]
    merged = dict(props)
    for name in _SETTING_NAMES:
        if name == "description":
            continue
        merged[name] = getattr(settings, name)
    return merged
