"""Protocol interface for the story similarity store."""

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class StoryStore(Protocol):
    """Similarity search over stored stories.

    The store applies its own implicit filter (embedding present, recent
    publication, known source) and returns raw rows; callers validate them.
    """

    async def search(
        self,
        query_vector: Sequence[float],
        match_threshold: float,
        match_count: int,
    ) -> list[dict[str, Any]]:
        """Return up to ``match_count`` rows similar to the query vector.

        Raises:
            StoreError: If the call fails.
        """
        ...
