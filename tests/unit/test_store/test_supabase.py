"""Unit tests for the Supabase similarity search adapter."""

import json

import httpx
import pytest

from personal_feed.store import StoreError, SupabaseStoryStore, is_transient_store_error


def _store(handler: httpx.MockTransport) -> SupabaseStoryStore:
    return SupabaseStoryStore(
        "https://proj.supabase.co/",
        "service-key",
        http_client=httpx.AsyncClient(transport=handler),
    )


class TestSearch:
    """Tests for SupabaseStoryStore.search."""

    @pytest.mark.asyncio
    async def test_calls_rpc_with_parameters(self) -> None:
        """Should post the vector, threshold and count to the RPC endpoint."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[{"id": 1, "title": "t"}])

        rows = await _store(httpx.MockTransport(handler)).search((0.1, 0.2), 0.4, 70)

        assert rows == [{"id": 1, "title": "t"}]
        request = seen[0]
        assert str(request.url) == "https://proj.supabase.co/rest/v1/rpc/hybrid_story_search"
        assert request.headers["apikey"] == "service-key"
        assert request.headers["Authorization"] == "Bearer service-key"
        assert json.loads(request.content) == {
            "query_embedding": [0.1, 0.2],
            "match_threshold": 0.4,
            "match_count": 70,
        }

    @pytest.mark.asyncio
    async def test_statement_timeout_is_transient(self) -> None:
        """A 57014 error body should be classified as transient."""
        transport = httpx.MockTransport(
            lambda _: httpx.Response(
                400,
                json={"code": "57014", "message": "canceling statement due to statement timeout"},
            )
        )

        with pytest.raises(StoreError) as exc_info:
            await _store(transport).search((0.1,), 0.4, 10)

        error = exc_info.value
        assert error.code == "57014"
        assert is_transient_store_error(error)

    @pytest.mark.asyncio
    async def test_client_error_is_permanent(self) -> None:
        """Other 4xx errors should not be retried."""
        transport = httpx.MockTransport(
            lambda _: httpx.Response(404, json={"code": "PGRST202", "message": "no function"})
        )

        with pytest.raises(StoreError) as exc_info:
            await _store(transport).search((0.1,), 0.4, 10)

        assert not is_transient_store_error(exc_info.value)
        assert "no function" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_network_error_is_transient(self) -> None:
        """Connection failures should be transient."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(StoreError) as exc_info:
            await _store(httpx.MockTransport(handler)).search((0.1,), 0.4, 10)

        assert exc_info.value.transient

    @pytest.mark.asyncio
    async def test_non_list_payload_raises(self) -> None:
        """A non-list body should be rejected."""
        transport = httpx.MockTransport(lambda _: httpx.Response(200, json={"rows": []}))

        with pytest.raises(StoreError, match="expected list"):
            await _store(transport).search((0.1,), 0.4, 10)


class TestStoreError:
    """Tests for StoreError classification."""

    @pytest.mark.parametrize("status", [429, 500, 502, 503, 504])
    def test_retryable_statuses(self, status: int) -> None:
        """Rate limits and server errors should be transient."""
        assert StoreError("x", status_code=status).transient

    def test_other_exceptions_are_not_transient(self) -> None:
        """Only StoreError instances can be transient."""
        assert not is_transient_store_error(RuntimeError("x"))
