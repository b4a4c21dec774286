"""Constraint filter: dedupe, source throttling and freshness reorder."""

from collections import defaultdict
from datetime import UTC, datetime

import structlog

from personal_feed.config import FilterConfig, FreshnessConfig
from personal_feed.observability import FeedLogger
from personal_feed.ranker.constants import (
    DROP_BLOCKED_SOURCE,
    DROP_DUPLICATE_ID,
    DROP_DUPLICATE_TITLE,
    DROP_PER_SOURCE_MAX,
)
from personal_feed.ranker.metrics import PipelineMetrics
from personal_feed.ranker.models import DroppedEntry, Story
from personal_feed.ranker.timeutil import freshness


logger = structlog.get_logger()


def normalize_key(text: str) -> str:
    """Case-fold and collapse whitespace for comparisons."""
    return " ".join(text.split()).casefold()


def reorder_key(
    story: Story,
    now: datetime,
    freshness_weight: float,
    decay_days: float,
) -> float:
    """Blend of freshness and retrieval similarity used for ordering."""
    fresh = freshness(story.published_at, now, decay_days)
    return freshness_weight * fresh + (1.0 - freshness_weight) * story.similarity_score


def apply_constraints_pure(
    stories: list[Story],
    filter_config: FilterConfig,
    decay_days: float,
    now: datetime,
) -> tuple[list[Story], list[DroppedEntry]]:
    """Apply all constraints without logging or metrics.

    Checks run per story in order: duplicate id, duplicate normalized
    title, per-source cap, blocked source. Only a kept story claims its id
    and title, so a copy rejected by the cap or the blocklist does not
    shadow a later copy from another source. Survivors are stably sorted by
    ``reorder_key`` descending, so ties keep their incoming order.

    Args:
        stories: Candidate stories in retrieval order.
        filter_config: Cap, blocklist and freshness weight.
        decay_days: Freshness window.
        now: Reference time for freshness.

    Returns:
        Tuple of (kept stories, dropped entries).
    """
    blocked = set(filter_config.blocked_sources)
    seen_ids: set[str] = set()
    seen_titles: set[str] = set()
    source_counts: dict[str, int] = defaultdict(int)

    kept: list[Story] = []
    dropped: list[DroppedEntry] = []

    for story in stories:
        if story.id in seen_ids:
            dropped.append(DroppedEntry(story.id, story.source_name, DROP_DUPLICATE_ID))
            continue

        title = normalize_key(story.title)
        if title in seen_titles:
            dropped.append(
                DroppedEntry(story.id, story.source_name, DROP_DUPLICATE_TITLE)
            )
            continue

        source = normalize_key(story.source_name)
        if source_counts[source] >= filter_config.per_source_max:
            dropped.append(
                DroppedEntry(story.id, story.source_name, DROP_PER_SOURCE_MAX)
            )
            continue

        if source in blocked:
            dropped.append(
                DroppedEntry(story.id, story.source_name, DROP_BLOCKED_SOURCE)
            )
            continue

        seen_ids.add(story.id)
        seen_titles.add(title)
        source_counts[source] += 1
        kept.append(story)

    kept.sort(
        key=lambda s: reorder_key(s, now, filter_config.freshness_weight, decay_days),
        reverse=True,
    )
    return kept, dropped


class ConstraintFilter:
    """Applies deterministic business constraints to candidates.

    Enforces:
    - one story per id and per normalized title (first seen wins)
    - per_source_max: maximum stories per source
    - blocked_sources: sources that are always removed

    The filter performs no I/O and is idempotent for a fixed ``now``.
    """

    def __init__(
        self,
        config: FilterConfig,
        freshness_config: FreshnessConfig,
        log: FeedLogger | None = None,
    ) -> None:
        """Initialize the filter.

        Args:
            config: Filter settings.
            freshness_config: Freshness window shared with the scorer.
            log: Logger; defaults to the module logger.
        """
        self._config = config
        self._decay_days = freshness_config.decay_days
        self._log = (log or logger).bind(component="ranker", subcomponent="constraints")

    def apply(
        self,
        stories: list[Story],
        *,
        now: datetime | None = None,
        metrics: PipelineMetrics | None = None,
    ) -> list[Story]:
        """Filter and reorder candidates.

        Args:
            stories: Candidates in retrieval order.
            now: Reference time for freshness; defaults to the current time.
            metrics: Run metrics to update.

        Returns:
            Surviving stories, best first.
        """
        kept, dropped = apply_constraints_pure(
            stories,
            self._config,
            self._decay_days,
            now or datetime.now(UTC),
        )

        by_reason: dict[str, int] = defaultdict(int)
        for entry in dropped:
            by_reason[entry.drop_reason] += 1
            self._log.debug(
                "story_dropped",
                story_id=entry.story_id,
                source_name=entry.source_name,
                reason=entry.drop_reason,
            )
            if metrics is not None:
                metrics.record_drop(entry.drop_reason)

        self._log.info(
            "constraints_applied",
            stories_in=len(stories),
            stories_out=len(kept),
            dropped=dict(by_reason),
        )
        return kept
