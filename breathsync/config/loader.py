"""
Configuration loading.

Settings come from a YAML file with four optional sections:

    breath:       {inhale, hold_in, exhale, hold_out}
    performance:  {window_size, max_frame_ms, min_fps, max_fps, target_fps}
    quality:      {thresholds: {...}, commit_delay_seconds, min_samples,
                   storage_key, levels: {low: {...}, medium: {...}, high: {...}}}
    session:      {target_fps, preferences_path}

Everything built here is created once at startup and treated as
immutable. Invalid values raise ValueError immediately.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from loguru import logger

from breathsync.core.contracts import BreathPhaseConfig
from breathsync.performance.performance_sampler import PerformanceSampler
from breathsync.performance.quality_classifier import QualityClassifier, QualityThresholds
from breathsync.pipeline.session import SessionConfig
from breathsync.quality.quality_config import QualityConfig, build_quality_table


DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "settings.yaml"


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from file.

    Falls back to the default settings file, then to an empty dict.
    """
    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise ValueError(f"Config file not found: {config_path}")
    elif DEFAULT_CONFIG_PATH.exists():
        path = DEFAULT_CONFIG_PATH
    else:
        return {}

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping at the top level")

    logger.info(f"Loaded config from {path}")
    return data


def _section(config: Mapping[str, Any], name: str) -> Dict[str, Any]:
    section = config.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"Config section '{name}' must be a mapping")
    return section


def _pick(section: Mapping[str, Any], allowed: tuple, name: str) -> Dict[str, Any]:
    unknown = set(section) - set(allowed)
    if unknown:
        raise ValueError(f"Unknown keys in config section '{name}': {sorted(unknown)}")
    return {key: section[key] for key in allowed if key in section}


def _quality_section(config: Mapping[str, Any]) -> Dict[str, Any]:
    return _pick(
        _section(config, "quality"),
        ("thresholds", "commit_delay_seconds", "min_samples", "storage_key", "levels"),
        "quality",
    )


def build_breath_config(config: Mapping[str, Any]) -> BreathPhaseConfig:
    section = _pick(_section(config, "breath"), ("inhale", "hold_in", "exhale", "hold_out"), "breath")
    return BreathPhaseConfig(**section)


def build_sampler(config: Mapping[str, Any]) -> PerformanceSampler:
    section = _pick(
        _section(config, "performance"),
        ("window_size", "max_frame_ms", "min_fps", "max_fps", "target_fps"),
        "performance",
    )
    return PerformanceSampler(**section)


def build_thresholds(config: Mapping[str, Any]) -> QualityThresholds:
    quality = _quality_section(config)
    section = _pick(
        _section(quality, "thresholds"),
        ("high_downgrade_fps", "medium_upgrade_fps", "medium_downgrade_fps", "low_upgrade_fps"),
        "quality.thresholds",
    )
    return QualityThresholds(**section)


def build_classifier(config: Mapping[str, Any]) -> QualityClassifier:
    quality = _quality_section(config)
    return QualityClassifier(
        thresholds=build_thresholds(config),
        commit_delay_seconds=float(quality.get("commit_delay_seconds", 3.0)),
        min_samples=int(quality.get("min_samples", 30)),
    )


def build_quality_config(config: Mapping[str, Any]) -> QualityConfig:
    quality = _quality_section(config)
    return build_quality_table(_section(quality, "levels"))


def storage_key(config: Mapping[str, Any]) -> str:
    return str(_quality_section(config).get("storage_key", "quality-preset"))


def build_session_config(config: Mapping[str, Any]) -> SessionConfig:
    section = _pick(_section(config, "session"), ("target_fps", "preferences_path"), "session")
    session = SessionConfig(**section)
    if not session.target_fps > 0:
        raise ValueError(f"session.target_fps must be > 0, got {session.target_fps}")
    return session
