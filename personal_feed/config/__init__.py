"""Pipeline configuration loading and schemas."""

from personal_feed.config.loader import (
    ConfigLoader,
    ConfigValidationError,
    LoadedConfig,
)
from personal_feed.config.schemas import (
    EncoderConfig,
    FilterConfig,
    FreshnessConfig,
    PipelineConfig,
    RetrievalConfig,
    ScoringConfig,
)


__all__ = [
    "ConfigLoader",
    "ConfigValidationError",
    "EncoderConfig",
    "FilterConfig",
    "FreshnessConfig",
    "LoadedConfig",
    "PipelineConfig",
    "RetrievalConfig",
    "ScoringConfig",
]
