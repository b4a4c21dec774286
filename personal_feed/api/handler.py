"""Public entry point: validate a profile payload and run the pipeline."""

from collections.abc import Mapping
from datetime import UTC, datetime
from http import HTTPStatus
from typing import Any

import structlog
from pydantic import ValidationError

from personal_feed.api.models import (
    FeedFailureResponse,
    FeedHttpResponse,
    FeedSuccessResponse,
    UserPreferencesSummary,
)
from personal_feed.config.error_hints import summarize_validation_error
from personal_feed.errors import FeedError, PipelineError, ProfileValidationError
from personal_feed.ranker import FeedPipeline, FeedStatus, UserProfile


logger = structlog.get_logger()

_PROFILE_FIELDS = ("role", "interests", "projects", "timestamp")

_VALIDATION_MESSAGE = (
    "All fields are required: role, interests (at least 1), "
    "and projects must be filled out"
)
_PIPELINE_MESSAGE = "Failed to retrieve personalized feed"


def parse_profile(payload: object) -> UserProfile:
    """Validate a raw request payload into a profile.

    Unknown keys are ignored so clients can send their full preferences
    object.

    Args:
        payload: Decoded JSON request body.

    Returns:
        Validated profile.

    Raises:
        ProfileValidationError: If required fields are missing or empty.
    """
    if not isinstance(payload, Mapping):
        raise ProfileValidationError(
            _VALIDATION_MESSAGE,
            errors=[
                {
                    "loc": "<root>",
                    "msg": "Request body must be a JSON object",
                    "type": "dict_type",
                    "hint": "Send role, interests and projects as an object.",
                }
            ],
        )

    fields = {key: payload[key] for key in _PROFILE_FIELDS if key in payload}
    if fields.get("timestamp") is None:
        fields.pop("timestamp", None)

    try:
        return UserProfile.model_validate(fields)
    except ValidationError as exc:
        raise ProfileValidationError(
            _VALIDATION_MESSAGE, errors=summarize_validation_error(exc)
        ) from exc


def _failure(
    status: HTTPStatus,
    error: str,
    exc: FeedError,
    errors: list[dict[str, str]] | None = None,
) -> FeedHttpResponse:
    return FeedHttpResponse(
        status_code=status,
        body=FeedFailureResponse(
            error=error,
            kind=exc.kind.value,
            details=exc.message,
            errors=errors or [],
            timestamp=datetime.now(UTC).isoformat(),
        ),
    )


async def handle_feed_request(
    payload: Any,
    pipeline: FeedPipeline,
) -> FeedHttpResponse:
    """Serve one feed request.

    Args:
        payload: Decoded JSON request body.
        pipeline: Configured pipeline.

    Returns:
        200 with ranked stories, 400 for an invalid profile, or 500 when
        encoding or retrieval failed.
    """
    log = logger.bind(component="api", subcomponent="feed")

    try:
        profile = parse_profile(payload)
    except ProfileValidationError as exc:
        log.warning(
            "feed_request_invalid",
            fields=[err["loc"] for err in exc.errors],
        )
        return _failure(HTTPStatus.BAD_REQUEST, exc.message, exc, exc.errors)

    log.info(
        "feed_request_received",
        role=profile.role,
        interest_count=len(profile.interests),
        has_projects=bool(profile.projects),
    )

    try:
        outcome = await pipeline.execute(profile)
    except PipelineError as exc:
        log.error(
            "feed_request_failed",
            stage=exc.stage,
            cause_kind=exc.cause_kind.value,
            error=exc.message,
        )
        return _failure(HTTPStatus.INTERNAL_SERVER_ERROR, _PIPELINE_MESSAGE, exc)

    stories = [result.to_json_dict() for result in outcome.results]
    log.info(
        "feed_request_served",
        run_id=outcome.run_id,
        status=outcome.status.value,
        count=len(stories),
    )
    return FeedHttpResponse(
        status_code=HTTPStatus.OK,
        body=FeedSuccessResponse(
            stories=stories,
            personalized=outcome.status != FeedStatus.EMPTY,
            count=len(stories),
            status=outcome.status.value,
            run_id=outcome.run_id,
            user_preferences=UserPreferencesSummary(
                role=profile.role,
                interest_count=len(profile.interests),
                timestamp=profile.timestamp.isoformat(),
            ),
        ),
    )
