"""Response envelopes for the feed entry point.

Field names follow the feed UI contract, which uses camelCase for the
preferences summary.
"""

from dataclasses import dataclass
from typing import Any, Literal

from pydantic import ConfigDict, Field

from personal_feed.data_model import StrictBaseModel


class UserPreferencesSummary(StrictBaseModel):
    """Echo of the request profile included in a success response."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    role: str
    interest_count: int = Field(alias="interestCount")
    timestamp: str


class FeedSuccessResponse(StrictBaseModel):
    """Successful feed response.

    Attributes:
        stories: Flattened ranked stories with ``relevance_score`` and ``time``.
        personalized: True when results were ranked for this profile.
        count: Number of stories.
        status: Run status (ok, empty or degraded).
        run_id: Run identifier for log correlation.
        user_preferences: Summary of the request profile.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    success: Literal[True] = True
    stories: list[dict[str, Any]]
    personalized: bool = True
    count: int
    status: str
    run_id: str = Field(alias="runId")
    user_preferences: UserPreferencesSummary = Field(alias="userPreferences")


class FeedFailureResponse(StrictBaseModel):
    """Structured failure response.

    Attributes:
        error: Short human-readable summary.
        kind: Error kind (VALIDATION, ENCODING, RETRIEVAL, PIPELINE).
        details: Detailed message.
        errors: Per-field validation errors, if any.
        timestamp: ISO time of the failure.
    """

    success: Literal[False] = False
    error: str
    kind: str
    details: str
    errors: list[dict[str, str]] = Field(default_factory=list)
    timestamp: str


@dataclass(frozen=True)
class FeedHttpResponse:
    """Status code plus body, ready for any HTTP framework."""

    status_code: int
    body: FeedSuccessResponse | FeedFailureResponse

    @property
    def ok(self) -> bool:
        """Whether the request succeeded."""
        return self.body.success

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize the body with wire field names."""
        return self.body.model_dump(mode="json", by_alias=True)
