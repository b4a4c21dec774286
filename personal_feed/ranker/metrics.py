"""Per-run metrics for the ranking pipeline."""

from dataclasses import dataclass, field


@dataclass
class PipelineMetrics:
    """Counters and timings collected during one pipeline run.

    A fresh instance is created for every request; nothing is shared
    between concurrent runs.

    Attributes:
        retrieval_attempts: Store calls made, including retries.
        rows_returned: Raw rows returned by the store.
        rows_skipped: Malformed rows skipped.
        candidates_retrieved: Candidates kept after thresholding.
        dropped_total: Stories removed by the constraint filter.
        dropped_by_reason: Dropped count per reason.
        batches_dispatched: Scoring batches sent to the oracle.
        batches_failed: Batches that raised or returned unusable output.
        batches_timed_out: Batches that exceeded the call timeout.
        scoring_anomalies: Discarded oracle entries (unknown id, bad score).
        scoring_mode: Scoring mode used.
        stage_durations_ms: Wall time per stage.
        score_values: Final scores for percentile calculation.
    """

    retrieval_attempts: int = 0
    rows_returned: int = 0
    rows_skipped: int = 0
    candidates_retrieved: int = 0
    dropped_total: int = 0
    dropped_by_reason: dict[str, int] = field(default_factory=dict)
    batches_dispatched: int = 0
    batches_failed: int = 0
    batches_timed_out: int = 0
    scoring_anomalies: int = 0
    scoring_mode: str = ""
    stage_durations_ms: dict[str, float] = field(default_factory=dict)
    score_values: list[float] = field(default_factory=list)

    def record_retrieval_attempt(self) -> None:
        """Record one store call."""
        self.retrieval_attempts += 1

    def record_retrieval(self, rows: int, skipped: int, kept: int) -> None:
        """Record retrieval counts.

        Args:
            rows: Rows returned by the store.
            skipped: Malformed rows skipped.
            kept: Candidates returned to the pipeline.
        """
        self.rows_returned = rows
        self.rows_skipped = skipped
        self.candidates_retrieved = kept

    def record_drop(self, reason: str) -> None:
        """Record a story removed by the constraint filter."""
        self.dropped_total += 1
        self.dropped_by_reason[reason] = self.dropped_by_reason.get(reason, 0) + 1

    def record_batch_dispatched(self) -> None:
        """Record a scoring batch sent to the oracle."""
        self.batches_dispatched += 1

    def record_batch_failed(self, timed_out: bool = False) -> None:
        """Record a failed scoring batch.

        Args:
            timed_out: Whether the failure was a timeout.
        """
        self.batches_failed += 1
        if timed_out:
            self.batches_timed_out += 1

    def record_anomaly(self, count: int = 1) -> None:
        """Record discarded oracle entries."""
        self.scoring_anomalies += count

    def record_scoring_mode(self, mode: str) -> None:
        """Record the scoring mode used."""
        self.scoring_mode = mode

    def record_stage_duration(self, stage: str, duration_ms: float) -> None:
        """Record the wall time of a stage.

        Args:
            stage: Stage name.
            duration_ms: Duration in milliseconds.
        """
        self.stage_durations_ms[stage] = round(duration_ms, 2)

    def record_score(self, score: float) -> None:
        """Record a final score for percentile calculation."""
        self.score_values.append(score)

    def get_score_percentiles(self) -> dict[str, float]:
        """Calculate score percentiles (p50/p90/p99).

        Returns:
            Dictionary with p50, p90, p99 values.
        """
        if not self.score_values:
            return {"p50": 0.0, "p90": 0.0, "p99": 0.0}

        sorted_scores = sorted(self.score_values)
        n = len(sorted_scores)

        def percentile(p: float) -> float:
            idx = int(p * n / 100)
            return sorted_scores[min(idx, n - 1)]

        return {
            "p50": percentile(50),
            "p90": percentile(90),
            "p99": percentile(99),
        }

    def to_dict(self) -> dict[str, object]:
        """Convert metrics to dictionary."""
        return {
            "retrieval_attempts": self.retrieval_attempts,
            "rows_returned": self.rows_returned,
            "rows_skipped": self.rows_skipped,
            "candidates_retrieved": self.candidates_retrieved,
            "dropped_total": self.dropped_total,
            "dropped_by_reason": dict(self.dropped_by_reason),
            "batches_dispatched": self.batches_dispatched,
            "batches_failed": self.batches_failed,
            "batches_timed_out": self.batches_timed_out,
            "scoring_anomalies": self.scoring_anomalies,
            "scoring_mode": self.scoring_mode,
            "stage_durations_ms": dict(self.stage_durations_ms),
            "score_percentiles": self.get_score_percentiles(),
        }
