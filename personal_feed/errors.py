"""Error taxonomy for the feed pipeline.

Only validation, encoding and retrieval failures ever reach a caller.
Scoring problems are resolved inside the scorer and surface as a degraded
outcome instead of an exception.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Stable classification of caller-visible failures.

    - VALIDATION: client input malformed or incomplete
    - ENCODING: embedding oracle failed or returned a malformed vector
    - RETRIEVAL: document store failed after retries
    - PIPELINE: wrapper kind for any fatal failure inside a run
    """

    VALIDATION = "VALIDATION"
    ENCODING = "ENCODING"
    RETRIEVAL = "RETRIEVAL"
    PIPELINE = "PIPELINE"


class FeedError(Exception):
    """Base exception for caller-visible feed errors."""

    kind: ErrorKind = ErrorKind.PIPELINE

    def __init__(
        self,
        message: str,
        details: dict[str, str | int | float | bool | None] | None = None,
    ) -> None:
        """Initialize the error.

        Args:
            message: Human-readable error message.
            details: Additional structured error details.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, object]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "details": dict(self.details),
        }


class ProfileValidationError(FeedError):
    """Raised when a profile payload is missing or has empty required fields."""

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, errors: list[dict[str, str]] | None = None) -> None:
        """Initialize the error.

        Args:
            message: Human-readable summary.
            errors: Per-field error records (loc, msg, type, hint).
        """
        super().__init__(message)
        self.errors = errors or []

    def to_dict(self) -> dict[str, object]:
        """Convert error to dictionary including field errors."""
        data = super().to_dict()
        data["errors"] = list(self.errors)
        return data


class EncodingError(FeedError):
    """Raised when the profile cannot be turned into a query vector."""

    kind = ErrorKind.ENCODING


class RetrievalError(FeedError):
    """Raised when the document store fails after retries are exhausted."""

    kind = ErrorKind.RETRIEVAL

    def __init__(self, message: str, attempts: int = 0) -> None:
        """Initialize the error.

        Args:
            message: Human-readable error message.
            attempts: Number of store calls made before giving up.
        """
        super().__init__(message, details={"attempts": attempts})
        self.attempts = attempts


class PipelineError(FeedError):
    """Fatal pipeline failure wrapping its root cause.

    Attributes:
        cause: The underlying encoding or retrieval error.
        stage: Pipeline stage that failed.
    """

    kind = ErrorKind.PIPELINE

    def __init__(self, cause: FeedError, stage: str) -> None:
        """Initialize the error.

        Args:
            cause: Root cause raised by an upstream component.
            stage: Name of the stage that failed.
        """
        super().__init__(
            f"Failed to retrieve personalized stories: {cause.message}",
            details={"stage": stage, "cause_kind": cause.kind.value},
        )
        self.cause = cause
        self.stage = stage

    @property
    def cause_kind(self) -> ErrorKind:
        """Kind of the root cause."""
        return self.cause.kind
