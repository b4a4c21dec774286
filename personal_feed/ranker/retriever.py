"""Candidate retriever: similarity search with retry and re-scoring."""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from datetime import UTC, datetime
from typing import Any

import structlog
from pydantic import ValidationError

from personal_feed.config import RetrievalConfig
from personal_feed.errors import RetrievalError
from personal_feed.observability import FeedLogger
from personal_feed.ranker.metrics import PipelineMetrics
from personal_feed.ranker.models import Story
from personal_feed.ranker.similarity import cosine_similarity
from personal_feed.ranker.timeutil import age_days
from personal_feed.retry import RetryExhaustedError, RetryPolicy, call_with_retry
from personal_feed.store import StoreError, StoryStore, is_transient_store_error


logger = structlog.get_logger()

_ROW_FIELDS = tuple(name for name in Story.model_fields if name != "similarity_score")


class CandidateRetriever:
    """Fetches candidate stories above a similarity threshold.

    Similarity is recomputed locally from each row's embedding, so a row
    with a missing or corrupt vector scores 0 instead of failing the run.
    """

    def __init__(
        self,
        store: StoryStore,
        config: RetrievalConfig,
        log: FeedLogger | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the retriever.

        Args:
            store: Similarity store.
            config: Pool size, threshold, retry and timeout settings.
            log: Logger; defaults to the module logger.
            sleep: Awaitable sleep used between retries.
        """
        self._store = store
        self._config = config
        self._sleep = sleep
        self._policy = RetryPolicy(
            max_attempts=config.max_attempts,
            base_delay_ms=config.retry_delay_ms,
        )
        self._log = (log or logger).bind(component="ranker", subcomponent="retriever")

    async def retrieve(
        self,
        query_vector: Sequence[float],
        pool_size: int | None = None,
        similarity_threshold: float | None = None,
        *,
        now: datetime | None = None,
        metrics: PipelineMetrics | None = None,
    ) -> list[Story]:
        """Retrieve up to ``pool_size`` candidates.

        Args:
            query_vector: Profile embedding.
            pool_size: Result limit; defaults to the configured pool size.
            similarity_threshold: Minimum similarity; defaults to config.
            now: Reference time for the recency window.
            metrics: Run metrics to update.

        Returns:
            Stories ordered by similarity descending, id ascending on ties.
            May be empty.

        Raises:
            RetrievalError: If the store fails with a non-transient error or
                keeps failing after all attempts.
        """
        if pool_size is None:
            pool_size = self._config.pool_size
        threshold = (
            self._config.similarity_threshold
            if similarity_threshold is None
            else similarity_threshold
        )
        match_count = pool_size * self._config.overfetch_factor
        now = now or datetime.now(UTC)
        window_days = self._config.recency_window_days

        rows = await self._search(query_vector, threshold, match_count, metrics)

        candidates: list[Story] = []
        skipped = 0
        stale = 0
        for row in rows:
            story = self._parse_row(row)
            if story is None:
                skipped += 1
                continue
            if age_days(story.published_at, now) > window_days:
                stale += 1
                continue
            similarity = (
                cosine_similarity(query_vector, story.embedding)
                if story.embedding is not None
                else 0.0
            )
            if similarity >= threshold:
                candidates.append(story.with_similarity(similarity))

        candidates.sort(key=lambda s: (-s.similarity_score, s.id))
        result = candidates[:pool_size]

        if metrics is not None:
            metrics.record_retrieval(rows=len(rows), skipped=skipped, kept=len(result))

        self._log.info(
            "candidates_retrieved",
            rows=len(rows),
            skipped=skipped,
            stale=stale,
            above_threshold=len(candidates),
            returned=len(result),
            threshold=threshold,
        )
        return result

    async def _search(
        self,
        query_vector: Sequence[float],
        threshold: float,
        match_count: int,
        metrics: PipelineMetrics | None,
    ) -> list[dict[str, Any]]:
        attempts = 0

        async def attempt() -> list[dict[str, Any]]:
            nonlocal attempts
            attempts += 1
            if metrics is not None:
                metrics.record_retrieval_attempt()
            try:
                return await asyncio.wait_for(
                    self._store.search(query_vector, threshold, match_count),
                    timeout=self._config.timeout_seconds,
                )
            except TimeoutError as exc:
                msg = f"Store call exceeded {self._config.timeout_seconds}s"
                raise StoreError(msg, transient=True) from exc

        try:
            return await call_with_retry(
                attempt,
                policy=self._policy,
                is_retryable=is_transient_store_error,
                log=self._log,
                sleep=self._sleep,
            )
        except RetryExhaustedError as exc:
            self._log.error(
                "retrieval_failed",
                attempts=exc.attempts,
                error=str(exc.last_error),
            )
            msg = f"Story search failed after {exc.attempts} attempts: {exc.last_error}"
            raise RetrievalError(msg, attempts=exc.attempts) from exc
        except Exception as exc:
            self._log.error(
                "retrieval_failed",
                attempts=attempts,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            msg = f"Story search failed: {exc}"
            raise RetrievalError(msg, attempts=attempts) from exc

    def _parse_row(self, row: dict[str, Any]) -> Story | None:
        """Validate one store row; None if it lacks required fields."""
        try:
            return Story.model_validate({k: row[k] for k in _ROW_FIELDS if k in row})
        except ValidationError as exc:
            self._log.warning(
                "retrieval_row_skipped",
                story_id=str(row.get("id")),
                errors=exc.error_count(),
            )
            return None
