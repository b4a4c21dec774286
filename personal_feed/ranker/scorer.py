"""Relevance scorer: batched oracle scoring with position-curve fallback."""

import asyncio
import math
from collections import defaultdict
from datetime import UTC, datetime

import structlog
from pydantic import ValidationError

from personal_feed.config import FreshnessConfig, ScoringConfig
from personal_feed.llm import LlmClient
from personal_feed.llm.json_utils import parse_llm_json
from personal_feed.llm.models import RankingEntry
from personal_feed.llm.prompts import SYSTEM_INSTRUCTION, build_batch_prompt
from personal_feed.observability import FeedLogger
from personal_feed.ranker.constants import MAX_FINAL_SCORE, MIN_FINAL_SCORE
from personal_feed.ranker.metrics import PipelineMetrics
from personal_feed.ranker.models import (
    ScoreComponents,
    ScoredStory,
    ScoringMode,
    ScoringOutcome,
    Story,
    UserProfile,
)
from personal_feed.ranker.state_machine import ScoringState, ScoringStateMachine
from personal_feed.ranker.timeutil import freshness


logger = structlog.get_logger()


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _clamp_score(value: float) -> float:
    return max(MIN_FINAL_SCORE, min(MAX_FINAL_SCORE, value))


def _rank_key(item: ScoredStory) -> tuple[float, str]:
    return (-item.relevance_score, item.story.id)


def fallback_curve(position: int, final_size: int, score_max: float, score_min: float) -> float:
    """Score for a position in fallback mode.

    Linear from ``score_max`` at position 0 down to ``score_min`` at
    position ``final_size - 1``.
    """
    if final_size <= 1:
        return score_max
    step = (score_max - score_min) / (final_size - 1)
    return _clamp_score(score_max - step * min(position, final_size - 1))


def extract_rankings(payload: object) -> list[object] | None:
    """Pull the list of ranking entries out of a parsed oracle response.

    Accepts ``{"rankings": [...]}`` or a bare list.
    """
    if isinstance(payload, dict):
        payload = payload.get("rankings")
    if isinstance(payload, list):
        return payload
    return None


class RelevanceScorer:
    """Scores constrained candidates against a profile.

    Batches are sent concurrently, at most ``max_concurrency`` at a time.
    A failing batch only loses its own scores. When not a single story
    receives a valid score the scorer switches to fallback mode and ranks
    by incoming order instead.
    """

    def __init__(
        self,
        client: LlmClient | None,
        config: ScoringConfig,
        freshness_config: FreshnessConfig,
        log: FeedLogger | None = None,
    ) -> None:
        """Initialize the scorer.

        Args:
            client: Scoring oracle; None forces fallback mode.
            config: Batching, concurrency, bounds and fallback settings.
            freshness_config: Freshness window for the recency bonus.
            log: Logger; defaults to the module logger.
        """
        self._client = client
        self._config = config
        self._decay_days = freshness_config.decay_days
        self._base_log = log or logger
        self._log = self._base_log.bind(component="ranker", subcomponent="scorer")

    async def score(
        self,
        profile: UserProfile,
        stories: list[Story],
        *,
        now: datetime | None = None,
        run_id: str = "",
        metrics: PipelineMetrics | None = None,
    ) -> ScoringOutcome:
        """Score and rank stories.

        Args:
            profile: Reader profile.
            stories: Constrained candidates, best first.
            now: Reference time for the recency bonus.
            run_id: Run identifier for logging.
            metrics: Run metrics to update.

        Returns:
            ScoringOutcome with at most ``final_size`` stories.
        """
        now = now or datetime.now(UTC)
        machine = ScoringStateMachine(run_id, log=self._base_log)

        votes: dict[str, list[float]] = {}
        if self._client is not None and stories:
            votes = await self._collect_votes(self._client, profile, stories, metrics)

        if not votes:
            machine.to_fallback()
            self._log.warning(
                "scoring_fallback_entered",
                stories=len(stories),
                client_configured=self._client is not None,
            )
            scored = self._fallback(stories, now)
        else:
            scored = self._merge(stories, votes, now)

        mode = (
            ScoringMode.FALLBACK
            if machine.state == ScoringState.FALLBACK
            else ScoringMode.NORMAL
        )
        if metrics is not None:
            metrics.record_scoring_mode(mode.value)

        self._log.info(
            "scoring_complete",
            mode=mode.value,
            scored=len(votes),
            returned=len(scored),
        )
        return ScoringOutcome(scored=scored, mode=mode)

    async def _collect_votes(
        self,
        client: LlmClient,
        profile: UserProfile,
        stories: list[Story],
        metrics: PipelineMetrics | None,
    ) -> dict[str, list[float]]:
        """Fan out batches and merge valid votes by story id."""
        size = self._config.batch_size
        batches = [stories[i : i + size] for i in range(0, len(stories), size)]
        semaphore = asyncio.Semaphore(self._config.max_concurrency)

        self._log.info(
            "scoring_started",
            stories=len(stories),
            batches=len(batches),
            max_concurrency=self._config.max_concurrency,
        )

        async def bounded(batch: list[Story], batch_idx: int) -> list[RankingEntry]:
            async with semaphore:
                return await self._score_batch(client, profile, batch, batch_idx, metrics)

        batch_results = await asyncio.gather(
            *(bounded(batch, idx) for idx, batch in enumerate(batches))
        )

        votes: dict[str, list[float]] = defaultdict(list)
        for entries in batch_results:
            for entry in entries:
                votes[entry.story_id].append(entry.relevance_score)
        return dict(votes)

    async def _score_batch(
        self,
        client: LlmClient,
        profile: UserProfile,
        batch: list[Story],
        batch_idx: int,
        metrics: PipelineMetrics | None,
    ) -> list[RankingEntry]:
        """Score one batch; any failure yields an empty result."""
        if metrics is not None:
            metrics.record_batch_dispatched()
        prompt = build_batch_prompt(profile, batch, self._config.content_preview_chars)

        try:
            text = await asyncio.wait_for(
                client.generate_content(prompt, system_instruction=SYSTEM_INSTRUCTION),
                timeout=self._config.timeout_seconds,
            )
        except TimeoutError:
            self._log.warning(
                "scoring_batch_timeout",
                batch=batch_idx,
                timeout_s=self._config.timeout_seconds,
            )
            if metrics is not None:
                metrics.record_batch_failed(timed_out=True)
            return []
        except Exception as exc:
            self._log.warning(
                "scoring_batch_failed",
                batch=batch_idx,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            if metrics is not None:
                metrics.record_batch_failed()
            return []

        rankings = extract_rankings(parse_llm_json(text))
        if rankings is None:
            self._log.warning(
                "scoring_batch_unparseable",
                batch=batch_idx,
                response_preview=text[:200],
            )
            if metrics is not None:
                metrics.record_batch_failed()
            return []

        batch_ids = {story.id for story in batch}
        entries: list[RankingEntry] = []
        anomalies = 0
        for raw in rankings:
            try:
                entry = RankingEntry.model_validate(raw)
            except ValidationError:
                anomalies += 1
                self._log.warning("scoring_entry_invalid", batch=batch_idx, entry=str(raw)[:200])
                continue
            if entry.story_id not in batch_ids:
                anomalies += 1
                self._log.warning(
                    "scoring_entry_unknown_id",
                    batch=batch_idx,
                    story_id=entry.story_id,
                )
                continue
            entries.append(entry)

        if anomalies and metrics is not None:
            metrics.record_anomaly(anomalies)

        self._log.debug(
            "scoring_batch_complete",
            batch=batch_idx,
            stories=len(batch),
            scored=len(entries),
            anomalies=anomalies,
        )
        return entries

    def _merge(
        self,
        stories: list[Story],
        votes: dict[str, list[float]],
        now: datetime,
    ) -> list[ScoredStory]:
        """Build composite scores for stories that received votes."""
        scored: list[ScoredStory] = []
        seen: set[str] = set()
        for story in stories:
            story_votes = votes.get(story.id)
            if not story_votes or story.id in seen:
                continue
            seen.add(story.id)

            oracle_score = sum(story_votes) / len(story_votes)
            fresh = freshness(story.published_at, now, self._decay_days)
            bonus = float(_round_half_up(self._config.recency_bonus_max * fresh))
            scored.append(
                ScoredStory(
                    story=story,
                    relevance_score=_clamp_score(oracle_score + bonus),
                    components=ScoreComponents(
                        oracle_score=oracle_score,
                        recency_bonus=bonus,
                        similarity=story.similarity_score,
                        freshness=fresh,
                        votes=len(story_votes),
                    ),
                )
            )

        scored.sort(key=_rank_key)
        return scored[: self._config.final_size]

    def _fallback(self, stories: list[Story], now: datetime) -> list[ScoredStory]:
        """Assign position-curve scores in incoming order."""
        final_size = self._config.final_size
        scored: list[ScoredStory] = []
        for position, story in enumerate(stories[:final_size]):
            curve_score = fallback_curve(
                position,
                final_size,
                self._config.fallback_score_max,
                self._config.fallback_score_min,
            )
            scored.append(
                ScoredStory(
                    story=story,
                    relevance_score=curve_score,
                    components=ScoreComponents(
                        oracle_score=curve_score,
                        recency_bonus=0.0,
                        similarity=story.similarity_score,
                        freshness=freshness(story.published_at, now, self._decay_days),
                        fallback=True,
                    ),
                )
            )
        scored.sort(key=_rank_key)
        return scored
