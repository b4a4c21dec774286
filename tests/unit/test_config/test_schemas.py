"""Unit tests for pipeline configuration schemas."""

import pytest
from pydantic import ValidationError

from personal_feed.config import FilterConfig, PipelineConfig, RetrievalConfig, ScoringConfig


class TestDefaults:
    """Tests for default values."""

    def test_production_defaults(self) -> None:
        """Defaults should match the production tuning."""
        config = PipelineConfig()

        assert config.encoder.model == "text-embedding-3-small"
        assert config.retrieval.pool_size == 35
        assert config.retrieval.similarity_threshold == 0.4
        assert config.retrieval.overfetch_factor == 2
        assert config.retrieval.max_attempts == 2
        assert config.retrieval.retry_delay_ms == 1000
        assert config.freshness.decay_days == 14.0
        assert config.filter.per_source_max == 10
        assert config.filter.freshness_weight == 0.3
        assert config.scoring.batch_size == 15
        assert config.scoring.max_concurrency == 3
        assert config.scoring.final_size == 30
        assert config.scoring.recency_bonus_max == 5.0

    def test_config_is_frozen(self) -> None:
        """Configuration should be immutable."""
        config = PipelineConfig()
        with pytest.raises(ValidationError):
            config.version = "2.0"  # type: ignore[misc]


class TestValidation:
    """Tests for bounds and validators."""

    @pytest.mark.parametrize(
        ("model", "data"),
        [
            (RetrievalConfig, {"pool_size": 0}),
            (RetrievalConfig, {"similarity_threshold": 1.5}),
            (ScoringConfig, {"max_concurrency": 0}),
            (ScoringConfig, {"fallback_score_min": 80, "fallback_score_max": 70}),
            (FilterConfig, {"freshness_weight": -0.1}),
            (FilterConfig, {"blocked_sources": ["  "]}),
        ],
    )
    def test_out_of_bounds(self, model: type, data: dict[str, object]) -> None:
        """Invalid values should be rejected."""
        with pytest.raises(ValidationError):
            model.model_validate(data)

    def test_unknown_keys_rejected(self) -> None:
        """Typos in configuration keys should fail loudly."""
        with pytest.raises(ValidationError):
            PipelineConfig.model_validate({"scoring": {"batchsize": 10}})

    def test_blocked_sources_normalized(self) -> None:
        """Blocked sources should be stored case-folded and collapsed."""
        config = FilterConfig(blocked_sources=["  Spam   Daily "])
        assert config.blocked_sources == ["spam daily"]
