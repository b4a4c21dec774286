"""Pipeline orchestrator: encode, retrieve, constrain, score, deliver."""

import time
import uuid
from collections.abc import Callable
from datetime import UTC, datetime

import structlog

from personal_feed.config import PipelineConfig
from personal_feed.errors import EncodingError, PipelineError, RetrievalError
from personal_feed.llm import EmbeddingClient, LlmClient
from personal_feed.observability import FeedLogger, bind_run_context, clear_run_context
from personal_feed.ranker.constants import TOP_BREAKDOWN_COUNT
from personal_feed.ranker.constraints import ConstraintFilter
from personal_feed.ranker.encoder import ProfileEncoder
from personal_feed.ranker.metrics import PipelineMetrics
from personal_feed.ranker.models import (
    FeedOutcome,
    FeedStatus,
    RankedResult,
    ScoringMode,
    UserProfile,
)
from personal_feed.ranker.retriever import CandidateRetriever
from personal_feed.ranker.scorer import RelevanceScorer
from personal_feed.ranker.state_machine import PipelineStateMachine
from personal_feed.ranker.timeutil import relative_time
from personal_feed.store import StoryStore


logger = structlog.get_logger()


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _new_run_id() -> str:
    return uuid.uuid4().hex[:12]


class FeedPipeline:
    """Runs one feed request end to end.

    The pipeline holds only immutable collaborators, so a single instance
    can serve concurrent requests. Every run gets its own run id, state
    machine and metrics.
    """

    def __init__(  # noqa: PLR0913
        self,
        encoder: ProfileEncoder,
        retriever: CandidateRetriever,
        constraint_filter: ConstraintFilter,
        scorer: RelevanceScorer,
        log: FeedLogger | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """Initialize the pipeline.

        Args:
            encoder: Profile encoder.
            retriever: Candidate retriever.
            constraint_filter: Constraint filter.
            scorer: Relevance scorer.
            log: Logger; defaults to the module logger.
            clock: Source of the reference time for a run.
        """
        self._encoder = encoder
        self._retriever = retriever
        self._filter = constraint_filter
        self._scorer = scorer
        self._base_log = log or logger
        self._clock = clock

    @classmethod
    def from_config(  # noqa: PLR0913
        cls,
        config: PipelineConfig,
        embedding_client: EmbeddingClient,
        store: StoryStore,
        llm_client: LlmClient | None,
        log: FeedLogger | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> "FeedPipeline":
        """Wire all components from one configuration.

        Args:
            config: Pipeline configuration.
            embedding_client: Embedding oracle.
            store: Similarity store.
            llm_client: Scoring oracle; None runs scoring in fallback mode.
            log: Logger injected into every component.
            clock: Source of the reference time for a run.

        Returns:
            Configured pipeline.
        """
        return cls(
            encoder=ProfileEncoder(embedding_client, config.encoder, log=log),
            retriever=CandidateRetriever(store, config.retrieval, log=log),
            constraint_filter=ConstraintFilter(config.filter, config.freshness, log=log),
            scorer=RelevanceScorer(llm_client, config.scoring, config.freshness, log=log),
            log=log,
            clock=clock,
        )

    async def run(self, profile: UserProfile) -> list[RankedResult]:
        """Return the ranked feed for a profile.

        Raises:
            PipelineError: If encoding or retrieval fails.
        """
        outcome = await self.execute(profile)
        return outcome.results

    async def execute(
        self,
        profile: UserProfile,
        *,
        run_id: str | None = None,
    ) -> FeedOutcome:
        """Run the pipeline and report status alongside results.

        Args:
            profile: Validated reader profile.
            run_id: Optional run identifier; generated when omitted.

        Returns:
            FeedOutcome; ``status`` is EMPTY when nothing was retrieved or
            survived the constraints and DEGRADED when fallback scoring
            was used.

        Raises:
            PipelineError: If encoding or retrieval fails.
        """
        run_id = run_id or _new_run_id()
        bind_run_context(run_id)
        try:
            return await self._execute(profile, run_id)
        finally:
            clear_run_context()

    async def _execute(self, profile: UserProfile, run_id: str) -> FeedOutcome:
        log = self._base_log.bind(component="ranker", subcomponent="pipeline", run_id=run_id)
        machine = PipelineStateMachine(run_id, log=self._base_log)
        metrics = PipelineMetrics()
        now = self._clock()

        log.info(
            "pipeline_started",
            role=profile.role,
            interest_count=len(profile.interests),
        )

        started = time.perf_counter()
        try:
            vector = await self._encoder.encode(profile)
        except EncodingError as exc:
            machine.to_failed()
            log.error("pipeline_failed", stage="encode", error=exc.message)
            raise PipelineError(exc, stage="encode") from exc
        machine.to_encoded()
        metrics.record_stage_duration("encode", (time.perf_counter() - started) * 1000)

        started = time.perf_counter()
        try:
            candidates = await self._retriever.retrieve(vector, now=now, metrics=metrics)
        except RetrievalError as exc:
            machine.to_failed()
            log.error("pipeline_failed", stage="retrieve", error=exc.message)
            raise PipelineError(exc, stage="retrieve") from exc
        machine.to_retrieved()
        metrics.record_stage_duration("retrieve", (time.perf_counter() - started) * 1000)

        if not candidates:
            machine.to_empty()
            log.info("pipeline_empty", stage="retrieve")
            return self._empty_outcome(run_id, metrics)

        started = time.perf_counter()
        constrained = self._filter.apply(candidates, now=now, metrics=metrics)
        metrics.record_stage_duration("constrain", (time.perf_counter() - started) * 1000)

        if not constrained:
            machine.to_constrained()
            machine.to_empty()
            log.info("pipeline_empty", stage="constrain")
            return self._empty_outcome(run_id, metrics)
        machine.to_constrained()

        started = time.perf_counter()
        scoring = await self._scorer.score(
            profile, constrained, now=now, run_id=run_id, metrics=metrics
        )
        machine.to_scored()
        metrics.record_stage_duration("score", (time.perf_counter() - started) * 1000)

        results = [
            RankedResult(
                story=item.story,
                relevance_score=item.relevance_score,
                display_time=relative_time(item.story.published_at, now),
                components=item.components,
            )
            for item in scoring.scored
        ]
        for result in results:
            metrics.record_score(result.relevance_score)

        self._log_top_breakdowns(log, results)
        machine.to_delivered()

        status = FeedStatus.DEGRADED if scoring.mode == ScoringMode.FALLBACK else FeedStatus.OK
        log.info(
            "pipeline_complete",
            status=status.value,
            results=len(results),
            metrics=metrics.to_dict(),
        )
        return FeedOutcome(
            results=results,
            status=status,
            scoring_mode=scoring.mode,
            run_id=run_id,
            metrics=metrics.to_dict(),
        )

    @staticmethod
    def _empty_outcome(run_id: str, metrics: PipelineMetrics) -> FeedOutcome:
        return FeedOutcome(
            results=[],
            status=FeedStatus.EMPTY,
            scoring_mode=ScoringMode.NORMAL,
            run_id=run_id,
            metrics=metrics.to_dict(),
        )

    @staticmethod
    def _log_top_breakdowns(log: FeedLogger, results: list[RankedResult]) -> None:
        """Log score explanations of the highest-ranked results."""
        breakdown = [
            {
                "story_id": result.story.id,
                "title": result.story.title[:80],
                "relevance_score": result.relevance_score,
                **result.components.to_dict(),
            }
            for result in results[:TOP_BREAKDOWN_COUNT]
        ]
        log.info("top_score_breakdown", top=breakdown)
