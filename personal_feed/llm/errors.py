"""Domain-specific error types for the oracle clients."""

from http import HTTPStatus


_RETRYABLE_STATUS_CODES = {
    HTTPStatus.TOO_MANY_REQUESTS,
    HTTPStatus.INTERNAL_SERVER_ERROR,
    HTTPStatus.BAD_GATEWAY,
    HTTPStatus.SERVICE_UNAVAILABLE,
    HTTPStatus.GATEWAY_TIMEOUT,
}


class LlmAuthError(Exception):
    """No usable credentials for an oracle."""


class LlmApiError(Exception):
    """Oracle API call failure.

    Attributes:
        status_code: HTTP status code from the API response, 0 for
            network-level failures.
        transient: Whether the failure is worth retrying.
    """

    def __init__(self, message: str, status_code: int = 0, transient: bool = False) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.transient = transient or status_code in _RETRYABLE_STATUS_CODES


class LlmProcessingError(Exception):
    """Response parsing or validation failure."""


def is_transient_llm_error(exc: Exception) -> bool:
    """Retry predicate for oracle calls."""
    return isinstance(exc, LlmApiError) and exc.transient
