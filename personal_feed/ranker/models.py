"""Data models for the ranking pipeline."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Annotated

from pydantic import Field, field_validator

from personal_feed.data_model import StrictBaseModel
from personal_feed.ranker.constants import UNKNOWN_SOURCE
from personal_feed.ranker.similarity import parse_embedding
from personal_feed.ranker.timeutil import ensure_utc


def _utc_now() -> datetime:
    return datetime.now(UTC)


class UserProfile(StrictBaseModel):
    """Reader profile driving one feed request.

    Attributes:
        role: Professional role, e.g. "Backend engineer".
        interests: Ordered interests; at least one.
        projects: Free-text description of current work.
        timestamp: When the profile was captured.
    """

    role: Annotated[str, Field(min_length=1)]
    interests: Annotated[list[str], Field(min_length=1)]
    projects: Annotated[str, Field(min_length=1)]
    timestamp: datetime = Field(default_factory=_utc_now)

    @field_validator("role", "projects", mode="before")
    @classmethod
    def strip_text(cls, v: object) -> object:
        """Strip surrounding whitespace so blank values fail validation."""
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("interests")
    @classmethod
    def validate_interests(cls, v: list[str]) -> list[str]:
        """Strip each interest and reject blank entries."""
        stripped = [interest.strip() for interest in v]
        if any(not interest for interest in stripped):
            msg = "Interests must be non-empty strings"
            raise ValueError(msg)
        return stripped

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        """Store the capture time in UTC."""
        return ensure_utc(v)


class Story(StrictBaseModel):
    """Immutable snapshot of one candidate story.

    Optional display fields (summary, author, image, category, external id)
    pass through untouched for the feed UI.
    """

    id: Annotated[str, Field(min_length=1)]
    title: Annotated[str, Field(min_length=1)]
    url: Annotated[str, Field(min_length=1)]
    published_at: datetime
    source_name: str = UNKNOWN_SOURCE
    content: str | None = None
    summary: str | None = None
    author: str | None = None
    image_url: str | None = None
    story_category: str | None = None
    external_id: str | None = None
    tags: tuple[str, ...] = ()
    embedding: tuple[float, ...] | None = None
    similarity_score: Annotated[float, Field(ge=0.0, le=1.0)] = 0.0

    @field_validator("id", "external_id", mode="before")
    @classmethod
    def coerce_identifier(cls, v: object) -> object:
        """Accept numeric identifiers from the store."""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("source_name", mode="before")
    @classmethod
    def default_source(cls, v: object) -> object:
        """Replace a missing or blank source with the sentinel."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return UNKNOWN_SOURCE
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("tags", mode="before")
    @classmethod
    def default_tags(cls, v: object) -> object:
        """Treat null tags as an empty list."""
        return () if v is None else v

    @field_validator("embedding", mode="before")
    @classmethod
    def parse_stored_embedding(cls, v: object) -> tuple[float, ...] | None:
        """Parse array or text embeddings; malformed values become None."""
        return parse_embedding(v)

    @field_validator("published_at")
    @classmethod
    def normalize_published_at(cls, v: datetime) -> datetime:
        """Treat naive timestamps as UTC."""
        return ensure_utc(v)

    def with_similarity(self, similarity: float) -> "Story":
        """Return a copy carrying the given similarity score."""
        return self.model_copy(update={"similarity_score": similarity})


@dataclass(frozen=True)
class ScoreComponents:
    """Breakdown of a final relevance score.

    Attributes:
        oracle_score: Averaged oracle score, or the position-curve score
            in fallback mode.
        recency_bonus: Points added for freshness.
        similarity: Retrieval similarity.
        freshness: Freshness in [0, 1].
        votes: Number of oracle scores averaged.
        fallback: Whether the score came from the fallback curve.
    """

    oracle_score: float
    recency_bonus: float
    similarity: float
    freshness: float
    votes: int = 0
    fallback: bool = False

    def to_dict(self) -> dict[str, float | int | bool]:
        """Convert to dictionary for serialization."""
        return {
            "oracle_score": self.oracle_score,
            "recency_bonus": self.recency_bonus,
            "similarity": self.similarity,
            "freshness": self.freshness,
            "votes": self.votes,
            "fallback": self.fallback,
        }


@dataclass(frozen=True)
class ScoredStory:
    """A story with its final score, before display formatting."""

    story: Story
    relevance_score: float
    components: ScoreComponents


@dataclass(frozen=True)
class RankedResult:
    """One entry of the final feed.

    Attributes:
        story: The ranked story.
        relevance_score: Final score in [0, 100].
        display_time: Relative publication time, e.g. "3 hours ago".
        components: Score explanation.
    """

    story: Story
    relevance_score: float
    display_time: str
    components: ScoreComponents

    def to_json_dict(self) -> dict[str, object]:
        """Flatten into the feed response shape.

        Story fields are inlined without the embedding, followed by
        ``relevance_score`` and ``time``.
        """
        data = self.story.model_dump(mode="json", exclude={"embedding"})
        data["relevance_score"] = self.relevance_score
        data["time"] = self.display_time
        return data


@dataclass(frozen=True)
class DroppedEntry:
    """Record of a story removed by the constraint filter.

    Attributes:
        story_id: ID of the dropped story.
        source_name: Source of the dropped story.
        drop_reason: Why the story was dropped.
    """

    story_id: str
    source_name: str
    drop_reason: str


class ScoringMode(str, Enum):
    """How final scores were produced."""

    NORMAL = "normal"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class ScoringOutcome:
    """Result of the scoring stage.

    Attributes:
        scored: Ranked stories, bounded to the configured final size.
        mode: Whether oracle scores or the fallback curve were used.
    """

    scored: list[ScoredStory]
    mode: ScoringMode


class FeedStatus(str, Enum):
    """Caller-visible status of a pipeline run.

    - OK: oracle-scored results delivered
    - EMPTY: retrieval found no candidates
    - DEGRADED: results delivered from the fallback curve
    """

    OK = "ok"
    EMPTY = "empty"
    DEGRADED = "degraded"


@dataclass(frozen=True)
class FeedOutcome:
    """Complete result of one pipeline run.

    Attributes:
        results: Ranked results, sorted by score then id.
        status: Run status.
        scoring_mode: Scoring mode used.
        run_id: Run identifier.
        metrics: Metrics snapshot for the run.
    """

    results: list[RankedResult]
    status: FeedStatus
    scoring_mode: ScoringMode
    run_id: str
    metrics: dict[str, object] = field(default_factory=dict)
