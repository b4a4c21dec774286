"""Hints for validation errors.

Turns Pydantic error records into short, actionable messages. Used both
for pipeline YAML files and for incoming user profiles.
"""

from typing import Final

from pydantic import ValidationError


ERROR_HINTS: Final[dict[str, str]] = {
    "missing": "This field is required.",
    "int_type": "This field must be an integer (whole number).",
    "int_parsing": "This field must be an integer (whole number).",
    "float_type": "This field must be a number.",
    "float_parsing": "This field must be a number.",
    "string_type": "This field must be a text string.",
    "list_type": "This field must be a list/array.",
    "dict_type": "This field must be an object/mapping.",
    "extra_forbidden": "Unknown field. Check the spelling against the documented keys.",
    "greater_than": "The value is too small. Check the minimum allowed.",
    "greater_than_equal": "The value is too small. Check the minimum allowed.",
    "less_than_equal": "The value is too large. Check the maximum allowed.",
    "string_too_short": "The text is empty or too short.",
    "too_short": "At least one entry is required.",
    "string_pattern_mismatch": "The format is invalid, expected e.g. '1.0'.",
    "value_error": "Check the value format.",
    "file_not_found": "The file does not exist. Check the file path.",
    "yaml_parse_error": "Invalid YAML syntax. Check for proper indentation and formatting.",
}

FIELD_HINTS: Final[dict[str, str]] = {
    "role": "Describe the professional role, e.g. 'Data Scientist'.",
    "interests": "Provide at least one non-empty interest, e.g. ['LLMs'].",
    "projects": "Describe current projects in a sentence or two.",
    "pool_size": "Must be between 1 and 500.",
    "per_source_max": "Must be between 1 and 1000.",
    "similarity_threshold": "Must be between 0.0 and 1.0.",
    "freshness_weight": "Must be between 0.0 and 1.0.",
    "batch_size": "Must be between 1 and 50.",
    "max_concurrency": "Must be between 1 and 16.",
}


def get_error_hint(error_type: str, field_name: str | None = None) -> str:
    """Get a user-friendly hint for a validation error.

    Args:
        error_type: The Pydantic error type (e.g., 'missing').
        field_name: Optional dotted field path for field-specific hints.

    Returns:
        A user-friendly hint string.
    """
    if field_name:
        simple_field = field_name.split(".")[-1]
        if simple_field in FIELD_HINTS:
            return FIELD_HINTS[simple_field]

    return ERROR_HINTS.get(error_type, "Check the documentation for valid values.")


def format_validation_error(
    location: str,
    message: str,
    error_type: str,
    *,
    include_hint: bool = True,
) -> str:
    """Format a validation error with optional hint.

    Args:
        location: The error location (e.g., 'scoring.batch_size').
        message: The original error message.
        error_type: The error type.
        include_hint: Whether to include a hint.

    Returns:
        Formatted error string.
    """
    base = f"{location}: {message}"
    if include_hint:
        hint = get_error_hint(error_type, location)
        return f"{base}\n    Hint: {hint}"
    return base


def summarize_validation_error(exc: ValidationError) -> list[dict[str, str]]:
    """Flatten a Pydantic ValidationError into loc/msg/type/hint records.

    Args:
        exc: The validation error.

    Returns:
        One record per underlying error, in Pydantic's order.
    """
    records: list[dict[str, str]] = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err["loc"]) or "<root>"
        records.append(
            {
                "loc": location,
                "msg": err["msg"],
                "type": err["type"],
                "hint": get_error_hint(err["type"], location),
            }
        )
    return records
