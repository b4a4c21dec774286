"""Response schemas for the scoring oracle."""

from typing import Annotated

from pydantic import Field, field_validator

from personal_feed.data_model import EdgeModel


class RankingEntry(EdgeModel):
    """One scored story as returned by the oracle.

    Attributes:
        story_id: Identifier echoed back from the prompt.
        relevance_score: Relevance from 0 to 100.
    """

    story_id: Annotated[str, Field(min_length=1)]
    relevance_score: Annotated[float, Field(ge=0.0, le=100.0)]

    @field_validator("story_id", mode="before")
    @classmethod
    def coerce_story_id(cls, v: object) -> object:
        """Accept integral numeric ids and strip surrounding whitespace."""
        if isinstance(v, bool):
            return v
        if isinstance(v, int):
            return str(v)
        if isinstance(v, float) and v.is_integer():
            return str(int(v))
        if isinstance(v, str):
            return v.strip()
        return v
