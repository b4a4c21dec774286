"""Error types for the document store adapter."""

from http import HTTPStatus


# Postgres "canceling statement due to statement timeout".
STATEMENT_TIMEOUT_CODE = "57014"

_TRANSIENT_STATUS_CODES = {
    HTTPStatus.TOO_MANY_REQUESTS,
    HTTPStatus.INTERNAL_SERVER_ERROR,
    HTTPStatus.BAD_GATEWAY,
    HTTPStatus.SERVICE_UNAVAILABLE,
    HTTPStatus.GATEWAY_TIMEOUT,
}


class StoreError(Exception):
    """Document store call failure.

    Attributes:
        code: Database or PostgREST error code, if reported.
        status_code: HTTP status code, 0 for network-level failures.
        transient: Whether the failure is worth retrying.
    """

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status_code: int = 0,
        transient: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.status_code = status_code
        self.transient = (
            transient
            or code == STATEMENT_TIMEOUT_CODE
            or status_code in _TRANSIENT_STATUS_CODES
        )


def is_transient_store_error(exc: Exception) -> bool:
    """Retry predicate for store calls."""
    return isinstance(exc, StoreError) and exc.transient
