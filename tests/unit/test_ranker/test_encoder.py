"""Unit tests for the profile encoder."""

import math

import pytest

from personal_feed.config import EncoderConfig
from personal_feed.errors import EncodingError
from personal_feed.llm.errors import LlmApiError
from personal_feed.ranker.encoder import ProfileEncoder, build_profile_text
from personal_feed.ranker.models import UserProfile
from tests.helpers.fakes import FakeEmbeddingClient, RecordingLogger


PROFILE = UserProfile(
    role="ML Engineer",
    interests=["LLMs", "vector search"],
    projects="Building a RAG assistant",
)


def _encoder(client: FakeEmbeddingClient, **config: object) -> ProfileEncoder:
    return ProfileEncoder(client, EncoderConfig(dimensions=3, **config), log=RecordingLogger())


class TestBuildProfileText:
    """Tests for the profile text template."""

    def test_fixed_field_order(self) -> None:
        """Role, interests and projects should appear in a fixed template."""
        assert build_profile_text(PROFILE) == (
            "Professional role: ML Engineer. "
            "Key interests and technologies: LLMs, vector search. "
            "Current projects and priorities: Building a RAG assistant"
        )


class TestEncode:
    """Tests for ProfileEncoder.encode."""

    @pytest.mark.asyncio
    async def test_returns_vector_and_uses_named_model(self) -> None:
        """Should return the oracle vector and send the configured model."""
        client = FakeEmbeddingClient(vector=[0.1, 0.2, 0.3])

        vector = await _encoder(client, model="embed-x").encode(PROFILE)

        assert vector == (0.1, 0.2, 0.3)
        assert client.calls == [(build_profile_text(PROFILE), "embed-x")]

    @pytest.mark.asyncio
    async def test_oracle_failure_raises_encoding_error(self) -> None:
        """Oracle errors should surface as EncodingError."""
        client = FakeEmbeddingClient(error=LlmApiError("boom", status_code=401))

        with pytest.raises(EncodingError, match="boom"):
            await _encoder(client).encode(PROFILE)

    @pytest.mark.asyncio
    async def test_timeout_raises_encoding_error(self) -> None:
        """A slow oracle should hit the configured timeout."""
        client = FakeEmbeddingClient(delay=0.5)

        with pytest.raises(EncodingError, match="timed out"):
            await _encoder(client, timeout_seconds=0.01).encode(PROFILE)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "vector",
        [[], [0.1, 0.2], [0.1, math.nan, 0.3], [0.1, math.inf, 0.3]],
    )
    async def test_malformed_vectors_are_rejected(self, vector: list[float]) -> None:
        """Empty, wrong-sized or non-finite vectors should be fatal."""
        client = FakeEmbeddingClient(vector=vector)

        with pytest.raises(EncodingError):
            await _encoder(client).encode(PROFILE)
