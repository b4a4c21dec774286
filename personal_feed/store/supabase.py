"""Supabase PostgREST adapter for story similarity search."""

from collections.abc import Sequence
from http import HTTPStatus
from typing import Any

import httpx
import structlog

from personal_feed.store.errors import StoreError


logger = structlog.get_logger()

SEARCH_FUNCTION = "hybrid_story_search"


class SupabaseStoryStore:
    """Calls the ``hybrid_story_search`` RPC through PostgREST.

    Retries are the caller's concern; this adapter makes exactly one
    request per ``search`` and classifies failures via ``StoreError``.
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        *,
        timeout_seconds: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            url: Project URL, e.g. ``https://xyz.supabase.co``.
            api_key: Service or anon key.
            timeout_seconds: Per-request HTTP timeout.
            http_client: Shared async HTTP client; one is created if omitted.
        """
        self._endpoint = f"{url.rstrip('/')}/rest/v1/rpc/{SEARCH_FUNCTION}"
        self._api_key = api_key
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout_seconds)
        self._log = logger.bind(component="store", subcomponent="supabase")

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._http.aclose()

    async def search(
        self,
        query_vector: Sequence[float],
        match_threshold: float,
        match_count: int,
    ) -> list[dict[str, Any]]:
        """Run the similarity search RPC.

        Args:
            query_vector: Query embedding.
            match_threshold: Minimum similarity enforced by the database.
            match_count: Maximum number of rows.

        Returns:
            Raw result rows.

        Raises:
            StoreError: On network errors, error responses or bad payloads.
        """
        body = {
            "query_embedding": list(query_vector),
            "match_threshold": match_threshold,
            "match_count": match_count,
        }
        try:
            response = await self._http.post(
                self._endpoint,
                headers={
                    "apikey": self._api_key,
                    "Authorization": f"Bearer {self._api_key}",
                    "Content-Type": "application/json",
                },
                json=body,
            )
        except httpx.TimeoutException as exc:
            msg = f"Story search timed out: {exc}"
            raise StoreError(msg, transient=True) from exc
        except httpx.HTTPError as exc:
            msg = f"Story search request failed: {exc}"
            raise StoreError(msg, transient=True) from exc

        if response.status_code != HTTPStatus.OK:
            raise self._error_from_response(response)

        try:
            rows = response.json()
        except ValueError as exc:
            msg = "Story search returned invalid JSON"
            raise StoreError(msg, status_code=response.status_code) from exc

        if not isinstance(rows, list):
            msg = f"Story search returned {type(rows).__name__}, expected list"
            raise StoreError(msg, status_code=response.status_code)

        self._log.debug("story_search_completed", rows=len(rows))
        return [row for row in rows if isinstance(row, dict)]

    @staticmethod
    def _error_from_response(response: httpx.Response) -> StoreError:
        """Build a StoreError from a PostgREST error body."""
        code: str | None = None
        message = response.text[:200]
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict):
            raw_code = payload.get("code")
            code = str(raw_code) if raw_code is not None else None
            message = str(payload.get("message") or message)

        return StoreError(
            f"Story search failed ({response.status_code}): {message}",
            code=code,
            status_code=response.status_code,
        )
