"""Unit tests for per-run pipeline metrics."""

from personal_feed.ranker.metrics import PipelineMetrics


class TestPipelineMetrics:
    """Tests for PipelineMetrics."""

    def test_percentiles_empty(self) -> None:
        """No scores should report zero percentiles."""
        assert PipelineMetrics().get_score_percentiles() == {"p50": 0.0, "p90": 0.0, "p99": 0.0}

    def test_percentiles(self) -> None:
        """Percentiles should come from the sorted scores."""
        metrics = PipelineMetrics()
        for score in range(1, 101):
            metrics.record_score(float(score))

        percentiles = metrics.get_score_percentiles()

        assert percentiles["p50"] == 51.0
        assert percentiles["p99"] == 100.0

    def test_counters_and_dict(self) -> None:
        """Recorded values should appear in to_dict."""
        metrics = PipelineMetrics()
        metrics.record_drop("duplicate_id")
        metrics.record_drop("duplicate_id")
        metrics.record_batch_dispatched()
        metrics.record_batch_failed(timed_out=True)
        metrics.record_stage_duration("encode", 12.3456)

        data = metrics.to_dict()

        assert data["dropped_total"] == 2
        assert data["dropped_by_reason"] == {"duplicate_id": 2}
        assert data["batches_failed"] == 1
        assert data["batches_timed_out"] == 1
        assert data["stage_durations_ms"] == {"encode": 12.35}

    def test_instances_are_independent(self) -> None:
        """Two runs should never share counters."""
        first = PipelineMetrics()
        second = PipelineMetrics()

        first.record_drop("blocked_source")

        assert second.dropped_total == 0
        assert second.dropped_by_reason == {}
