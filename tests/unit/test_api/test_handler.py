"""Unit tests for the public feed entry point."""

from typing import Any

import pytest

from personal_feed.api import handle_feed_request, parse_profile
from personal_feed.config import EncoderConfig, PipelineConfig, RetrievalConfig
from personal_feed.errors import ProfileValidationError
from personal_feed.llm.errors import LlmApiError
from personal_feed.ranker import FeedPipeline
from personal_feed.store import StoreError
from tests.helpers.fakes import (
    FakeEmbeddingClient,
    FakeStore,
    RecordingLogger,
    ScriptedOracle,
    make_row,
)
from tests.helpers.time import FIXED_NOW


VALID_PAYLOAD: dict[str, Any] = {
    "role": "Backend Engineer",
    "interests": ["Rust", "Postgres"],
    "projects": "Migrating billing to event sourcing",
    "timestamp": "2025-06-13T11:00:00Z",
    "name": "ignored extra field",
}


def _pipeline(
    store: FakeStore,
    oracle: ScriptedOracle | None = None,
    embedding: FakeEmbeddingClient | None = None,
) -> FeedPipeline:
    config = PipelineConfig(
        encoder=EncoderConfig(dimensions=3),
        retrieval=RetrievalConfig(retry_delay_ms=0),
    )
    return FeedPipeline.from_config(
        config,
        embedding_client=embedding or FakeEmbeddingClient(),
        store=store,
        llm_client=oracle,
        log=RecordingLogger(),
        clock=lambda: FIXED_NOW,
    )


class TestParseProfile:
    """Tests for parse_profile."""

    def test_extra_keys_ignored(self) -> None:
        """Unknown payload keys should not fail validation."""
        profile = parse_profile(VALID_PAYLOAD)
        assert profile.role == "Backend Engineer"
        assert profile.timestamp.year == 2025

    def test_null_timestamp_defaults_to_now(self) -> None:
        """A null timestamp should be replaced by the current time."""
        profile = parse_profile({**VALID_PAYLOAD, "timestamp": None})
        assert profile.timestamp.tzinfo is not None

    def test_non_object_payload(self) -> None:
        """Non-object bodies should be rejected."""
        with pytest.raises(ProfileValidationError) as exc_info:
            parse_profile(["role"])
        assert exc_info.value.errors[0]["type"] == "dict_type"


class TestHandleFeedRequest:
    """Tests for handle_feed_request."""

    @pytest.mark.asyncio
    async def test_success_envelope(self) -> None:
        """A valid request should return ranked stories and a summary."""
        store = FakeStore([make_row("a"), make_row("b", embedding=(0.6, 0.8, 0.0))])
        oracle = ScriptedOracle({"a": 60, "b": 80})

        response = await handle_feed_request(VALID_PAYLOAD, _pipeline(store, oracle))

        assert response.status_code == 200
        assert response.ok
        body = response.to_json_dict()
        assert body["success"] is True
        assert body["personalized"] is True
        assert body["count"] == 2
        assert body["status"] == "ok"
        assert body["userPreferences"] == {
            "role": "Backend Engineer",
            "interestCount": 2,
            "timestamp": "2025-06-13T11:00:00+00:00",
        }
        first = body["stories"][0]
        assert first["id"] == "b"
        assert first["relevance_score"] == 85.0
        assert first["time"] == "2 hours ago"
        assert "embedding" not in first

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides",
        [
            {"role": "   "},
            {"interests": []},
            {"projects": ""},
        ],
    )
    async def test_validation_failure_is_400(self, overrides: dict[str, Any]) -> None:
        """Missing required fields should produce a 400 without running the pipeline."""
        store = FakeStore([make_row("a")])

        response = await handle_feed_request({**VALID_PAYLOAD, **overrides}, _pipeline(store))

        assert response.status_code == 400
        body = response.to_json_dict()
        assert body["success"] is False
        assert body["kind"] == "VALIDATION"
        assert body["error"].startswith("All fields are required")
        assert body["errors"]
        assert body["timestamp"]
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_pipeline_failure_is_500(self) -> None:
        """Fatal pipeline errors should produce a structured 500."""
        store = FakeStore(StoreError("bad request", status_code=400))

        response = await handle_feed_request(VALID_PAYLOAD, _pipeline(store))

        assert response.status_code == 500
        body = response.to_json_dict()
        assert body["error"] == "Failed to retrieve personalized feed"
        assert body["kind"] == "PIPELINE"
        assert body["details"].startswith("Failed to retrieve personalized stories:")

    @pytest.mark.asyncio
    async def test_encoding_failure_is_500(self) -> None:
        """An embedding outage should produce a 500."""
        embedding = FakeEmbeddingClient(error=LlmApiError("quota exceeded", status_code=429))

        response = await handle_feed_request(
            VALID_PAYLOAD, _pipeline(FakeStore([]), embedding=embedding)
        )

        assert response.status_code == 500
        assert "quota exceeded" in response.to_json_dict()["details"]

    @pytest.mark.asyncio
    async def test_empty_feed(self) -> None:
        """No candidates should still be a successful response."""
        response = await handle_feed_request(VALID_PAYLOAD, _pipeline(FakeStore([])))

        body = response.to_json_dict()
        assert response.status_code == 200
        assert body["count"] == 0
        assert body["stories"] == []
        assert body["status"] == "empty"
        assert body["personalized"] is False
