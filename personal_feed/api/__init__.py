"""Public feed entry point and response envelopes."""

from personal_feed.api.handler import handle_feed_request, parse_profile
from personal_feed.api.models import (
    FeedFailureResponse,
    FeedHttpResponse,
    FeedSuccessResponse,
    UserPreferencesSummary,
)


__all__ = [
    "FeedFailureResponse",
    "FeedHttpResponse",
    "FeedSuccessResponse",
    "UserPreferencesSummary",
    "handle_feed_request",
    "parse_profile",
]
