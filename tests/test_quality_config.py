import pytest

from breathsync.core.contracts import QualityLevel
from breathsync.quality.quality_config import (
    DEFAULT_QUALITY_CONFIG,
    apply_quality,
    build_quality_table,
)


def test_table_covers_every_level():
    assert set(DEFAULT_QUALITY_CONFIG) == set(QualityLevel)


def test_budgets_grow_with_level():
    low, medium, high = (DEFAULT_QUALITY_CONFIG[level] for level in (QualityLevel.LOW, QualityLevel.MEDIUM, QualityLevel.HIGH))
    assert low.particle_count < medium.particle_count < high.particle_count
    assert low.sphere_segments < medium.sphere_segments < high.sphere_segments
    assert low.particle_scale < medium.particle_scale < high.particle_scale


def test_table_is_read_only():
    with pytest.raises(TypeError):
        DEFAULT_QUALITY_CONFIG[QualityLevel.LOW] = DEFAULT_QUALITY_CONFIG[QualityLevel.HIGH]
    with pytest.raises(Exception):
        DEFAULT_QUALITY_CONFIG[QualityLevel.LOW].particle_count = 1


def test_overrides_produce_new_table():
    table = build_quality_table({"low": {"particle_count": 80, "stars_count": 1000}})

    assert table[QualityLevel.LOW].particle_count == 80
    assert table[QualityLevel.LOW].stars_count == 1000
    assert table[QualityLevel.LOW].sphere_segments == 32
    assert table[QualityLevel.MEDIUM] == DEFAULT_QUALITY_CONFIG[QualityLevel.MEDIUM]
    assert DEFAULT_QUALITY_CONFIG[QualityLevel.LOW].particle_count == 100


@pytest.mark.parametrize(
    "overrides",
    [
        {"ultra": {"particle_count": 1}},
        {"low": {"bloom": True}},
        {"low": {"particle_count": -5}},
        {"low": {"particle_count": 2.5}},
        {"low": {"sphere_segments": "lots"}},
        {"low": {"stars_count": True}},
        {"high": {"key_intensity": float("nan")}},
        {"medium": {"particle_scale": -1.0}},
        {"medium": {"description": 42}},
    ],
)
def test_bad_overrides_rejected(overrides):
    with pytest.raises(ValueError):
        build_quality_table(overrides)


def test_apply_quality_merges_without_mutating():
    props = {"backgroundColor": "#000", "particle_count": 1}
    merged = apply_quality(props, QualityLevel.HIGH)

    assert props == {"backgroundColor": "#000", "particle_count": 1}
    assert merged["backgroundColor"] == "#000"
    assert merged["particle_count"] == 500
    assert merged["sphere_segments"] == 128
    assert "description" not in merged
