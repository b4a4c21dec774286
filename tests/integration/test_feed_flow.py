"""End-to-end feed flow through the HTTP adapters against a mocked network."""

import json
import re
from datetime import timedelta
from typing import Any

import httpx
import pytest

from personal_feed.api import handle_feed_request
from personal_feed.config import EncoderConfig, FilterConfig, PipelineConfig, RetrievalConfig
from personal_feed.llm.openai_client import OpenAiClient
from personal_feed.ranker import FeedPipeline
from personal_feed.retry import RetryPolicy
from personal_feed.store import SupabaseStoryStore
from tests.helpers.fakes import RecordingLogger, make_row
from tests.helpers.time import FIXED_NOW


PAYLOAD = {
    "role": "Platform Engineer",
    "interests": ["Kubernetes", "eBPF"],
    "projects": "Cutting cluster costs",
}

_PROMPT_ID = re.compile(r"\(ID: ([^)]+)\)")


class FakeServices:
    """Routes OpenAI and Supabase requests to canned handlers."""

    def __init__(self, rows: list[dict[str, Any]], scores: dict[str, float] | None) -> None:
        self.rows = rows
        self.scores = scores
        self.paths: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.paths.append(request.url.path)
        if request.url.path.endswith("/embeddings"):
            return httpx.Response(200, json={"data": [{"embedding": [1.0, 0.0, 0.0]}]})
        if request.url.path.endswith("/rpc/hybrid_story_search"):
            return httpx.Response(200, json=self.rows)
        if request.url.path.endswith("/chat/completions"):
            if self.scores is None:
                return httpx.Response(503)
            prompt = json.loads(request.content)["messages"][-1]["content"]
            rankings = [
                {"story_id": sid, "relevance_score": self.scores[sid]}
                for sid in _PROMPT_ID.findall(prompt)
                if sid in self.scores
            ]
            content = json.dumps({"rankings": rankings})
            return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})
        return httpx.Response(404)


def _pipeline(services: FakeServices, **filter_config: Any) -> FeedPipeline:
    http = httpx.AsyncClient(transport=httpx.MockTransport(services))
    openai = OpenAiClient(
        api_key="sk-test",
        retry_policy=RetryPolicy(max_attempts=2, base_delay_ms=0),
        http_client=http,
    )
    config = PipelineConfig(
        encoder=EncoderConfig(dimensions=3),
        retrieval=RetrievalConfig(retry_delay_ms=0),
        filter=FilterConfig(**filter_config),
    )
    return FeedPipeline.from_config(
        config,
        embedding_client=openai,
        store=SupabaseStoryStore("https://proj.supabase.co", "key", http_client=http),
        llm_client=openai,
        log=RecordingLogger(),
        clock=lambda: FIXED_NOW,
    )


class TestFeedFlow:
    """Full request flow tests."""

    @pytest.mark.asyncio
    async def test_ranked_feed_with_constraints(self) -> None:
        """Duplicates, blocked sources and caps should be applied before scoring."""
        rows = [
            make_row("1", title="GPT-5 Launch", source_name="Wire"),
            make_row("2", title="gpt-5  launch", source_name="Other Wire"),
            make_row("3", title="eBPF deep dive", source_name="Kernel Blog"),
            make_row("4", title="Spam", source_name="Spam Farm"),
            make_row(
                "5",
                title="Old k8s news",
                source_name="Wire",
                embedding="[0.6,0.8,0.0]",
                published_at=(FIXED_NOW - timedelta(days=20)).isoformat(),
            ),
            make_row("6", title="Corrupt vector", embedding="[0.1,0.2]"),
        ]
        services = FakeServices(rows, {"1": 50, "3": 90, "5": 70})

        response = await handle_feed_request(
            PAYLOAD, _pipeline(services, blocked_sources=["spam farm"])
        )

        body = response.to_json_dict()
        assert response.status_code == 200
        assert body["status"] == "ok"
        assert [story["id"] for story in body["stories"]] == ["3", "5", "1"]
        assert body["stories"][0]["relevance_score"] == 95.0
        assert body["stories"][1]["relevance_score"] == 70.0
        assert body["stories"][1]["time"] == "20 days ago"
        assert services.paths.count("/v1/chat/completions") == 1

    @pytest.mark.asyncio
    async def test_scoring_outage_degrades(self) -> None:
        """A scoring outage should still return a fallback-ranked feed."""
        rows = [make_row(str(i), title=f"Story {i}") for i in range(5)]
        services = FakeServices(rows, scores=None)

        response = await handle_feed_request(PAYLOAD, _pipeline(services))

        body = response.to_json_dict()
        assert response.status_code == 200
        assert body["status"] == "degraded"
        assert body["count"] == 5
        assert body["stories"][0]["relevance_score"] == 75.0
        scores = [story["relevance_score"] for story in body["stories"]]
        assert scores == sorted(scores, reverse=True)
