"""YAML configuration loading and startup builders."""

from .loader import (
    load_config,
    build_breath_config,
    build_sampler,
    build_thresholds,
    build_classifier,
    build_quality_config,
    build_session_config,
    storage_key,
)
