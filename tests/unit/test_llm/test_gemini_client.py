"""Unit tests for the Gemini API key client."""

import json

import httpx
import pytest

from personal_feed.llm.errors import LlmApiError, LlmProcessingError
from personal_feed.llm.gemini_client import GeminiApiKeyClient
from personal_feed.retry import RetryPolicy


def _client(transport: httpx.MockTransport) -> GeminiApiKeyClient:
    return GeminiApiKeyClient(
        api_key="AIza-test",
        model="gemini-2.5-flash",
        retry_policy=RetryPolicy(max_attempts=2, base_delay_ms=0),
        http_client=httpx.AsyncClient(transport=transport),
    )


class TestGenerateContent:
    """Tests for GeminiApiKeyClient.generate_content."""

    @pytest.mark.asyncio
    async def test_success_and_request_shape(self) -> None:
        """Should send an API-key request asking for JSON output."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200, json={"candidates": [{"content": {"parts": [{"text": "{}"}]}}]}
            )

        text = await _client(httpx.MockTransport(handler)).generate_content(
            "prompt", system_instruction="sys"
        )

        assert text == "{}"
        request = seen[0]
        assert request.headers["x-goog-api-key"] == "AIza-test"
        assert request.url.path.endswith("/gemini-2.5-flash:generateContent")
        body = json.loads(request.content)
        assert body["generationConfig"]["responseMimeType"] == "application/json"
        assert body["systemInstruction"]["parts"][0]["text"] == "sys"

    @pytest.mark.asyncio
    async def test_no_candidates_raises(self) -> None:
        """A response without candidates should raise."""
        transport = httpx.MockTransport(lambda _: httpx.Response(200, json={"candidates": []}))

        with pytest.raises(LlmProcessingError, match="No candidates"):
            await _client(transport).generate_content("prompt")

    @pytest.mark.asyncio
    async def test_retries_then_fails(self) -> None:
        """Persistent 500s should exhaust the retry policy."""
        calls = 0

        def handler(_: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(500)

        with pytest.raises(LlmApiError, match="after 2 attempts"):
            await _client(httpx.MockTransport(handler)).generate_content("prompt")

        assert calls == 2

    @pytest.mark.asyncio
    async def test_invalid_json_body_raises_processing_error(self) -> None:
        """A 200 with a non-JSON body should raise LlmProcessingError."""
        transport = httpx.MockTransport(lambda _: httpx.Response(200, text="not json"))

        with pytest.raises(LlmProcessingError, match="invalid JSON"):
            await _client(transport).generate_content("prompt")
