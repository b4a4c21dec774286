"""Pipeline configuration schema.

All tunables of the ranking pipeline live here. The numeric defaults are
the production values; none of them is load-bearing and each can be
overridden from a YAML file.
"""

from typing import Annotated

from pydantic import Field, field_validator, model_validator

from personal_feed.data_model import StrictBaseModel


class EncoderConfig(StrictBaseModel):
    """Profile encoder settings.

    Attributes:
        model: Embedding model identifier sent to the oracle.
        dimensions: Expected vector dimensionality.
        timeout_seconds: Upper bound for one embedding call.
    """

    model: Annotated[str, Field(min_length=1)] = "text-embedding-3-small"
    dimensions: Annotated[int, Field(ge=1, le=8192)] = 1536
    timeout_seconds: Annotated[float, Field(gt=0.0, le=120.0)] = 10.0


class RetrievalConfig(StrictBaseModel):
    """Candidate retriever settings.

    Attributes:
        pool_size: Maximum number of candidates returned.
        similarity_threshold: Minimum cosine similarity for a candidate.
        overfetch_factor: Store result ceiling as a multiple of pool_size.
        recency_window_days: Only stories published within this window.
        max_attempts: Total attempts for transient store failures.
        retry_delay_ms: Fixed delay between attempts.
        timeout_seconds: Upper bound for one store call.
    """

    pool_size: Annotated[int, Field(ge=1, le=500)] = 35
    similarity_threshold: Annotated[float, Field(ge=0.0, le=1.0)] = 0.4
    overfetch_factor: Annotated[int, Field(ge=1, le=10)] = 2
    recency_window_days: Annotated[int, Field(ge=1, le=365)] = 30
    max_attempts: Annotated[int, Field(ge=1, le=5)] = 2
    retry_delay_ms: Annotated[int, Field(ge=0, le=60000)] = 1000
    timeout_seconds: Annotated[float, Field(gt=0.0, le=120.0)] = 10.0


class FreshnessConfig(StrictBaseModel):
    """Freshness window shared by the filter and the scorer.

    Attributes:
        decay_days: Age at which a story's freshness reaches zero.
    """

    decay_days: Annotated[float, Field(gt=0.0, le=365.0)] = 14.0


class FilterConfig(StrictBaseModel):
    """Constraint filter settings.

    Attributes:
        per_source_max: Maximum stories kept per source.
        blocked_sources: Source names that are always removed.
        freshness_weight: Share of the reorder key given to freshness.
    """

    per_source_max: Annotated[int, Field(ge=1, le=1000)] = 10
    blocked_sources: list[str] = Field(default_factory=list)
    freshness_weight: Annotated[float, Field(ge=0.0, le=1.0)] = 0.3

    @field_validator("blocked_sources")
    @classmethod
    def normalize_blocked_sources(cls, v: list[str]) -> list[str]:
        """Store blocked source names in normalized form."""
        normalized = [" ".join(name.split()).casefold() for name in v]
        if any(not name for name in normalized):
            msg = "Blocked source names must be non-empty strings"
            raise ValueError(msg)
        return normalized


class ScoringConfig(StrictBaseModel):
    """Relevance scorer settings.

    Attributes:
        batch_size: Stories per oracle call.
        max_concurrency: Maximum oracle calls in flight.
        final_size: Maximum number of ranked results.
        recency_bonus_max: Points added for a brand new story.
        timeout_seconds: Upper bound for one oracle call.
        content_preview_chars: Characters of story content sent to the oracle.
        fallback_score_max: Score of the first story in fallback mode.
        fallback_score_min: Score of the last story in fallback mode.
        model: Scoring model identifier.
        temperature: Sampling temperature for the scoring model.
    """

    batch_size: Annotated[int, Field(ge=1, le=50)] = 15
    max_concurrency: Annotated[int, Field(ge=1, le=16)] = 3
    final_size: Annotated[int, Field(ge=1, le=200)] = 30
    recency_bonus_max: Annotated[float, Field(ge=0.0, le=20.0)] = 5.0
    timeout_seconds: Annotated[float, Field(gt=0.0, le=300.0)] = 30.0
    content_preview_chars: Annotated[int, Field(ge=0, le=5000)] = 300
    fallback_score_max: Annotated[float, Field(ge=1.0, le=100.0)] = 75.0
    fallback_score_min: Annotated[float, Field(ge=1.0, le=100.0)] = 40.0
    model: Annotated[str, Field(min_length=1)] = "gpt-4o-mini"
    temperature: Annotated[float, Field(ge=0.0, le=2.0)] = 0.1

    @model_validator(mode="after")
    def validate_fallback_band(self) -> "ScoringConfig":
        """Ensure the fallback score band is not inverted."""
        if self.fallback_score_min > self.fallback_score_max:
            msg = "fallback_score_min must not exceed fallback_score_max"
            raise ValueError(msg)
        return self


class PipelineConfig(StrictBaseModel):
    """Root configuration for the ranking pipeline.

    Attributes:
        version: Schema version.
        encoder: Profile encoder settings.
        retrieval: Candidate retriever settings.
        freshness: Shared freshness window.
        filter: Constraint filter settings.
        scoring: Relevance scorer settings.
    """

    version: Annotated[str, Field(pattern=r"^\d+\.\d+$")] = "1.0"
    encoder: EncoderConfig = Field(default_factory=EncoderConfig)
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)
    freshness: FreshnessConfig = Field(default_factory=FreshnessConfig)
    filter: FilterConfig = Field(default_factory=FilterConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
